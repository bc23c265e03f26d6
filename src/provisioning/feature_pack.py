"""On-disk layout of an unpacked feature pack."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from common.io_utils import read_lines, read_properties
from constants import Layout


class Package:
    """A package directory inside a feature pack."""

    def __init__(self, feature_pack: "FeaturePack", root: Path):
        self.feature_pack = feature_pack
        self.root = Path(root)
        self.name = self.root.name

    @property
    def content_dir(self) -> Path:
        return self.root / Layout.CONTENT

    @property
    def wildfly_dir(self) -> Path:
        return self.root / Layout.PM / Layout.WILDFLY

    @property
    def module_dir(self) -> Path:
        return self.wildfly_dir / Layout.MODULE

    @property
    def tasks_file(self) -> Path:
        return self.wildfly_dir / Layout.TASKS_XML

    def __repr__(self) -> str:
        return f"Package({self.feature_pack.name}/{self.name})"


class FeaturePack:
    """An unpacked feature pack.

    Packages are processed in name order.
    """

    def __init__(self, root: Path, name: Optional[str] = None):
        self.root = Path(root)
        self.name = name or self.root.name

    @property
    def resources_dir(self) -> Path:
        return self.root / Layout.RESOURCES

    @property
    def wildfly_resources(self) -> Path:
        return self.resources_dir / Layout.WILDFLY

    @property
    def packages_dir(self) -> Path:
        return self.root / Layout.PACKAGES

    @property
    def finalize_script(self) -> Path:
        return self.wildfly_resources / Layout.SCRIPTS / Layout.FINALIZE_CLI

    def exists(self) -> bool:
        return self.root.is_dir()

    def packages(self) -> List[Package]:
        if not self.packages_dir.is_dir():
            return []
        return [Package(self, p) for p in sorted(self.packages_dir.iterdir()) if p.is_dir()]

    def _props(self, name: str) -> Dict[str, str]:
        path = self.wildfly_resources / name
        return read_properties(path) if path.is_file() else {}

    def artifact_versions(self) -> Dict[str, str]:
        return self._props(Layout.ARTIFACT_VERSIONS_PROPS)

    def task_properties(self) -> Dict[str, str]:
        return self._props(Layout.WILDFLY_TASKS_PROPS)

    def transform_excludes(self) -> List[str]:
        path = self.wildfly_resources / Layout.TRANSFORM_EXCLUDES
        return [line for line in read_lines(path) if not line.startswith("#")] if path.is_file() else []

    def schema_groups(self) -> List[str]:
        path = self.packages_dir / Layout.DOCS_SCHEMA / Layout.PM / Layout.WILDFLY / Layout.SCHEMA_GROUPS_TXT
        return read_lines(path) if path.is_file() else []

    def __repr__(self) -> str:
        return f"FeaturePack({self.name})"
