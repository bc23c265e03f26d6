"""Maven artifact coordinate value type."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from constants import Constants


def is_version_range(version: Optional[str]) -> bool:
    """Return True if ``version`` uses Maven range notation."""
    return bool(version) and version[0] in "[("


@dataclass(frozen=True)
class Coordinate:
    """Identifies one artifact.

    Equality and hashing use group, artifact, classifier, extension and
    version only: the range is resolution input and the path is resolution
    output, neither is part of the identity.
    """

    group_id: str
    artifact_id: str
    version: Optional[str] = None
    classifier: Optional[str] = None
    extension: str = Constants.JAR_EXTENSION
    version_range: Optional[str] = field(default=None, compare=False)
    path: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # "" and None classifiers are the same artifact
        if self.classifier == "":
            object.__setattr__(self, "classifier", None)

    @classmethod
    def parse(cls, coords: str) -> "Coordinate":
        """Parse ``group:artifact[:version[:classifier[:extension]]]``.

        Empty fields keep their defaults; a version in range notation is
        stored as ``version_range`` with no concrete version.
        """
        parts = coords.strip().split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Unexpected artifact coordinates format: {coords}")
        version = parts[2] if len(parts) > 2 and parts[2] else None
        classifier = parts[3] if len(parts) > 3 and parts[3] else None
        extension = parts[4] if len(parts) > 4 and parts[4] else Constants.JAR_EXTENSION
        version_range = None
        if is_version_range(version):
            version_range, version = version, None
        return cls(parts[0], parts[1], version, classifier, extension, version_range)

    @property
    def ga(self) -> str:
        """``group:artifact``."""
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def version_key(self) -> str:
        """Key under which the version properties list this artifact."""
        if self.classifier:
            return f"{self.ga}::{self.classifier}"
        return self.ga

    @property
    def has_version(self) -> bool:
        return bool(self.version)

    @property
    def is_resolved(self) -> bool:
        return self.path is not None and self.has_version

    def key(self) -> Tuple[str, str, str, str, str]:
        """Identity tuple used by caches."""
        return (self.group_id, self.artifact_id, self.classifier or "", self.extension, self.version or "")

    def file_name(self, version_suffix: str = "") -> str:
        """Repository file name, e.g. ``bar-1.2.3-tests.jar``."""
        name = f"{self.artifact_id}-{self.version}{version_suffix}"
        if self.classifier:
            name = f"{name}-{self.classifier}"
        return f"{name}.{self.extension}"

    def repository_path(self, version_suffix: str = "") -> Path:
        """Relative path of the artifact in a Maven repository layout."""
        return Path(
            *self.group_id.split("."),
            self.artifact_id,
            f"{self.version}{version_suffix}",
            self.file_name(version_suffix),
        )

    def thin_coords(self, version: Optional[str] = None) -> str:
        """``group:artifact:version[:classifier]`` as referenced by thin modules."""
        coords = f"{self.ga}:{version or self.version}"
        if self.classifier:
            coords = f"{coords}:{self.classifier}"
        return coords

    def with_resolution(self, version: Optional[str], path: Optional[Path]) -> "Coordinate":
        """Return a copy carrying a concrete version and local path."""
        return replace(self, version=version, path=path)

    def __str__(self) -> str:
        version = self.version or self.version_range or ""
        return f"{self.ga}:{version}:{self.classifier or ''}:{self.extension}"
