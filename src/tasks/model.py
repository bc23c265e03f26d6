"""Package task descriptors read from ``tasks.xml``."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from constants import Phase


@dataclass
class FileFilter:
    """Glob pattern matched against a relative path."""

    pattern: str
    include: bool = True

    def matches(self, path: str) -> bool:
        return fnmatch.fnmatch(path, self.pattern)


@dataclass
class CopyArtifact:
    """Copy (or extract) a resolved artifact into the staged directory."""

    artifact: str
    to_location: str
    extract: bool = False
    optional: bool = False
    feature_pack_version: bool = False
    filters: List[FileFilter] = field(default_factory=list)
    phase: Phase = Phase.PROCESSING

    @property
    def includes(self) -> List[str]:
        return [f.pattern for f in self.filters if f.include]

    @property
    def excludes(self) -> List[str]:
        return [f.pattern for f in self.filters if not f.include]


@dataclass
class CopyPath:
    """Copy a package resource into the staged directory."""

    src: str
    relative_to: str = "content"
    target: Optional[str] = None
    replace_props: bool = False
    phase: Phase = Phase.PROCESSING


@dataclass
class DeletePath:
    """Delete a staged path."""

    path: str
    recursive: bool = False
    if_empty: bool = False
    phase: Phase = Phase.PROCESSING


@dataclass
class XslTransform:
    """Transform a staged XML file with a staged XSL stylesheet."""

    src: str
    output: str
    stylesheet: str
    params: Dict[str, str] = field(default_factory=dict)
    feature_pack_properties: bool = False
    phase: Phase = Phase.PROCESSING


Task = Union[CopyArtifact, CopyPath, DeletePath, XslTransform]


@dataclass
class PackageTasks:
    """Everything a package's ``tasks.xml`` asks for."""

    tasks: List[Task] = field(default_factory=list)
    mkdirs: List[str] = field(default_factory=list)
    unix_line_endings: List[FileFilter] = field(default_factory=list)
    windows_line_endings: List[FileFilter] = field(default_factory=list)

    @property
    def has_tasks(self) -> bool:
        return bool(self.tasks)

    @property
    def has_line_endings(self) -> bool:
        return bool(self.unix_line_endings or self.windows_line_endings)
