"""Maven repository client backed by a local repository directory.

Artifacts are looked up in the local repository layout first and, unless the
client is offline, downloaded from the configured remote repositories.
Version ranges are resolved against ``maven-metadata.xml``.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from artifacts.coordinate import Coordinate
from common.errors import ArtifactNotFoundError
from common.http_client import download_file, robust_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants
from registry.base import ArtifactRepository
from versioning.ranges import select_version

logger = logging.getLogger(__name__)


def _metadata_versions(xml_text: str) -> List[str]:
    """Return versions listed in maven-metadata.xml in source order."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        return []
    versions_elem = root.find("versioning/versions")
    if versions_elem is None:
        return []
    return [
        item.text.strip()
        for item in versions_elem.findall("version")
        if isinstance(item.text, str) and item.text.strip()
    ]


class MavenRepository(ArtifactRepository):
    """Resolves artifacts from a local Maven repository with remote fallback."""

    def __init__(
        self,
        local_repository: Path,
        remote_repositories: Optional[Sequence[str]] = None,
        offline: bool = False,
    ):
        self.local_repository = Path(local_repository)
        self.remote_repositories = [
            url.rstrip("/") for url in (
                Constants.DEFAULT_REMOTE_REPOSITORIES if remote_repositories is None else remote_repositories
            )
        ]
        self.offline = offline

    def _artifact_dir(self, coordinate: Coordinate) -> Path:
        return self.local_repository.joinpath(*coordinate.group_id.split("."), coordinate.artifact_id)

    def _local_versions(self, coordinate: Coordinate) -> Set[str]:
        artifact_dir = self._artifact_dir(coordinate)
        versions: Set[str] = set()
        if not artifact_dir.is_dir():
            return versions
        for metadata in artifact_dir.glob("maven-metadata*.xml"):
            versions.update(_metadata_versions(metadata.read_text(encoding="utf-8")))
        versions.update(p.name for p in artifact_dir.iterdir() if p.is_dir())
        return versions

    def _remote_versions(self, coordinate: Coordinate) -> Set[str]:
        versions: Set[str] = set()
        if self.offline:
            return versions
        group_path = coordinate.group_id.replace(".", "/")
        for base in self.remote_repositories:
            url = f"{base}/{group_path}/{coordinate.artifact_id}/{Constants.MAVEN_METADATA_FILE}"
            status, _, text = robust_get(url)
            if status == 200 and text:
                versions.update(_metadata_versions(text))
        return versions

    def _resolve_range(self, coordinate: Coordinate) -> str:
        candidates: Iterable[str] = self._local_versions(coordinate) | self._remote_versions(coordinate)
        selected = select_version(coordinate.version_range or "", candidates)
        if selected is None:
            raise ArtifactNotFoundError(coordinate, f"no version matches {coordinate.version_range}")
        if is_debug_enabled(logger):
            logger.debug("Selected version", extra=extra_context(
                event="decision", component="maven_repository", action="resolve_range",
                target=coordinate.ga, version_range=coordinate.version_range, version=selected
            ))
        return selected

    def _download(self, coordinate: Coordinate, local_path: Path) -> bool:
        relative = coordinate.repository_path().as_posix()
        for base in self.remote_repositories:
            url = f"{base}/{relative}"
            status = download_file(url, local_path, context="maven")
            if status == 200:
                logger.info("Downloaded %s from %s", coordinate, safe_url(base))
                return True
            logger.debug("Artifact %s not available from %s (status %s)", coordinate, safe_url(base), status)
        return False

    def resolve(self, coordinate: Coordinate) -> Coordinate:
        """Resolve one coordinate to a concrete version and local file.

        Raises:
            ArtifactNotFoundError: If neither the local repository nor any
                remote repository provides the artifact.
        """
        resolved_version = coordinate.version
        if not resolved_version:
            if not coordinate.version_range:
                raise ArtifactNotFoundError(coordinate, "no version")
            resolved_version = self._resolve_range(coordinate)
        candidate = coordinate.with_resolution(resolved_version, None)
        local_path = self.local_repository / candidate.repository_path()
        if not local_path.is_file():
            if self.offline or not self._download(candidate, local_path):
                raise ArtifactNotFoundError(coordinate, f"not found in {self.local_repository}"
                                            + ("" if self.offline else " or remote repositories"))
        return candidate.with_resolution(resolved_version, local_path)
