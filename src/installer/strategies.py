"""Artifact installer strategies.

Every strategy answers the same questions for a resolved artifact: which file
a fat module embeds, which version a thin module references, and which file
a copy-artifact task copies. They differ in how artifacts are resolved and
whether their bytes go through the namespace transformer:

* ``PassThroughInstaller``: artifacts are used as resolved.
* ``TransformingInstaller``: every non-excluded artifact is transformed.
* ``PinnedRepositoryInstaller``: pre-transformed artifacts are taken from a
  pinned local repository; only overridden artifacts missing from it are
  transformed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from artifacts.cache import InstallationCache
from artifacts.coordinate import Coordinate
from common.errors import ArtifactNotFoundError
from common.io_utils import copy_file
from versioning.properties import VersionProperties
from .transformer import TransformResult, Transformer, transformed_file_name

logger = logging.getLogger(__name__)

Resolver = Callable[[Coordinate], Coordinate]


class NamespaceTransform:
    """Transformation settings shared by the transforming strategies.

    Results are memoized per (artifact, target) so installing the same
    artifact to the same place twice runs the transformer once.
    """

    def __init__(
        self,
        transformer: Transformer,
        suffix: str,
        work_dir: Path,
        excluded: Iterable[str] = (),
        verbose: bool = False,
    ):
        self.transformer = transformer
        self.suffix = suffix
        self.work_dir = Path(work_dir)
        self.excluded: FrozenSet[str] = frozenset(excluded)
        self.verbose = verbose
        self._done: Dict[Tuple[Coordinate, Path], TransformResult] = {}

    def is_excluded(self, coordinate: Coordinate) -> bool:
        return coordinate.ga in self.excluded

    def file_name(self, coordinate: Coordinate, path: Path) -> str:
        return transformed_file_name(coordinate.version or "", path.name, self.suffix)

    def _apply(self, coordinate: Coordinate, source: Path, target: Path) -> TransformResult:
        if self.is_excluded(coordinate):
            logger.debug("%s is excluded from transformation", coordinate)
            return TransformResult(source, False)
        key = (coordinate, target)
        done = self._done.get(key)
        if done is not None and done.path.exists():
            return done
        result = self.transformer.transform(source, target, verbose=self.verbose)
        if result.applied:
            logger.debug("Transformed %s to %s", coordinate, result.path)
        else:
            logger.debug("Transformation of %s not applicable, using original", coordinate)
        self._done[key] = result
        return result

    def to_directory(self, coordinate: Coordinate, source: Path, target_dir: Path) -> TransformResult:
        return self._apply(coordinate, source, target_dir / self.file_name(coordinate, source))

    def to_repository(self, coordinate: Coordinate, source: Path, repository: Path) -> TransformResult:
        return self._apply(coordinate, source, repository / coordinate.repository_path(self.suffix))

    def to_work_dir(self, coordinate: Coordinate, source: Path) -> TransformResult:
        return self.to_directory(coordinate, source, self.work_dir)


class ArtifactInstaller:
    """Common contract of the installer strategies."""

    def __init__(
        self,
        resolver: Resolver,
        versions: VersionProperties,
        cache: InstallationCache,
        output_repo: Optional[Path] = None,
        transform: Optional[NamespaceTransform] = None,
    ):
        self._resolver = resolver
        self._versions = versions
        self._cache = cache
        self.output_repo = Path(output_repo) if output_repo is not None else None
        self.transform = transform

    def resolve(self, coordinate: Coordinate) -> Coordinate:
        """Resolve ``coordinate`` to a concrete version and local path."""
        return self._resolver(coordinate)

    def is_overridden(self, coordinate: Coordinate) -> bool:
        return self._versions.is_overridden(coordinate)

    def is_local(self, coordinate: Coordinate) -> bool:
        """Return True when ``coordinate`` resolves without the repository."""
        return False

    def install_fat(self, coordinate: Coordinate, target_dir: Path) -> str:
        """Place the artifact in ``target_dir``; return the file name used."""
        raise NotImplementedError

    def install_thin(self, coordinate: Coordinate) -> str:
        """Make the artifact available externally; return the version to reference."""
        raise NotImplementedError

    def install_copied(self, coordinate: Coordinate) -> Path:
        """Return the file a copy-artifact task copies from."""
        raise NotImplementedError

    @staticmethod
    def _source(coordinate: Coordinate) -> Path:
        if coordinate.path is None:
            raise ArtifactNotFoundError(coordinate, "artifact has not been resolved")
        return coordinate.path

    def _copy_into(self, coordinate: Coordinate, target_dir: Path, file_name: Optional[str] = None) -> str:
        source = self._source(coordinate)
        target = target_dir / (file_name or source.name)
        copy_file(source, target)
        self._cache.add_record(coordinate, target)
        return target.name

    def _install_in_output_repo(self, coordinate: Coordinate, source: Path, version_suffix: str = "") -> None:
        if self.output_repo is None:
            return
        target = self.output_repo / coordinate.repository_path(version_suffix)
        if target.resolve() != source.resolve():
            copy_file(source, target)
        self._cache.add_record(coordinate, target)

    def _install_transformed_fat(self, coordinate: Coordinate, target_dir: Path) -> str:
        result = self.transform.to_directory(coordinate, self._source(coordinate), target_dir)
        if result.applied:
            self._cache.add_record(coordinate, result.path)
            return result.path.name
        return self._copy_into(coordinate, target_dir)

    def _install_transformed_thin(self, coordinate: Coordinate, repository: Path) -> str:
        result = self.transform.to_repository(coordinate, self._source(coordinate), repository)
        if result.applied:
            self._cache.add_record(coordinate, result.path)
            return f"{coordinate.version}{self.transform.suffix}"
        self._install_in_output_repo(coordinate, self._source(coordinate))
        return coordinate.version


class PassThroughInstaller(ArtifactInstaller):
    """Installs artifacts exactly as resolved."""

    def install_fat(self, coordinate: Coordinate, target_dir: Path) -> str:
        return self._copy_into(coordinate, target_dir)

    def install_thin(self, coordinate: Coordinate) -> str:
        self._install_in_output_repo(coordinate, self._source(coordinate))
        return coordinate.version

    def install_copied(self, coordinate: Coordinate) -> Path:
        return self._source(coordinate)


class TransformingInstaller(ArtifactInstaller):
    """Transforms every artifact that is not excluded."""

    def __init__(self, resolver: Resolver, versions: VersionProperties, cache: InstallationCache,
                 transform: NamespaceTransform, output_repo: Optional[Path] = None):
        super().__init__(resolver, versions, cache, output_repo, transform)

    def install_fat(self, coordinate: Coordinate, target_dir: Path) -> str:
        return self._install_transformed_fat(coordinate, target_dir)

    def install_thin(self, coordinate: Coordinate) -> str:
        if self.output_repo is None:
            raise ArtifactNotFoundError(coordinate, "no output repository to install the transformed artifact")
        return self._install_transformed_thin(coordinate, self.output_repo)

    def install_copied(self, coordinate: Coordinate) -> Path:
        return self.transform.to_work_dir(coordinate, self._source(coordinate)).path


class PinnedRepositoryResolver:
    """Looks artifacts up in a pinned pre-transformed repository first.

    The pinned repository stores transformed artifacts under the version
    with the transformation suffix appended. Misses fall back to the regular
    resolver with the untransformed coordinate.
    """

    def __init__(self, pinned_repo: Path, suffix: str, fallback: Resolver):
        self.pinned_repo = Path(pinned_repo)
        self.suffix = suffix
        self._fallback = fallback

    def pinned_path(self, coordinate: Coordinate) -> Path:
        return self.pinned_repo / coordinate.repository_path(self.suffix)

    def is_pinned(self, coordinate: Coordinate) -> bool:
        """Return True if ``coordinate`` was resolved from the pinned repository."""
        return coordinate.path is not None and coordinate.has_version and \
            coordinate.path == self.pinned_path(coordinate)

    def __call__(self, coordinate: Coordinate) -> Coordinate:
        if coordinate.has_version:
            local = self.pinned_path(coordinate)
            if local.is_file():
                logger.debug("Using pinned artifact %s", local)
                return coordinate.with_resolution(coordinate.version, local)
        return self._fallback(coordinate)


class PinnedRepositoryInstaller(ArtifactInstaller):
    """Uses pre-transformed artifacts; transforms only unpinned overrides."""

    def __init__(self, resolver: PinnedRepositoryResolver, versions: VersionProperties, cache: InstallationCache,
                 transform: Optional[NamespaceTransform], output_repo: Optional[Path] = None):
        super().__init__(resolver, versions, cache, output_repo, transform)
        self.pinned = resolver

    def is_local(self, coordinate: Coordinate) -> bool:
        return coordinate.has_version and self.pinned.pinned_path(coordinate).is_file()

    def _needs_transform(self, coordinate: Coordinate) -> bool:
        return not self.pinned.is_pinned(coordinate) and self.is_overridden(coordinate)

    def install_fat(self, coordinate: Coordinate, target_dir: Path) -> str:
        if self._needs_transform(coordinate):
            return self._install_transformed_fat(coordinate, target_dir)
        return self._copy_into(coordinate, target_dir)

    def install_thin(self, coordinate: Coordinate) -> str:
        if self.pinned.is_pinned(coordinate):
            self._install_in_output_repo(coordinate, self._source(coordinate), self.pinned.suffix)
            return f"{coordinate.version}{self.pinned.suffix}"
        if self.is_overridden(coordinate):
            # without an output repository the pinned repository is the one
            # the thin server reads from
            return self._install_transformed_thin(coordinate, self.output_repo or self.pinned.pinned_repo)
        self._install_in_output_repo(coordinate, self._source(coordinate))
        return coordinate.version

    def install_copied(self, coordinate: Coordinate) -> Path:
        if self._needs_transform(coordinate):
            return self.transform.to_work_dir(coordinate, self._source(coordinate)).path
        return self._source(coordinate)
