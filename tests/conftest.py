"""Shared fixtures: an in-memory artifact repository, a fake transformer and
a builder for unpacked feature packs."""
from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from artifacts.coordinate import Coordinate
from common.errors import ArtifactNotFoundError
from installer.transformer import TransformResult, Transformer
from registry.base import ArtifactRepository
from versioning.ranges import select_version


def make_jar(path: Path, entries: Optional[Dict[str, str]] = None) -> Path:
    """Write a small zip archive with the given text entries."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in (entries or {"META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n"}).items():
            zf.writestr(name, content)
    return path


class FakeRepository(ArtifactRepository):
    """Local Maven layout repository that counts calls."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.resolve_calls: List[Coordinate] = []
        self.resolve_all_calls: List[List[Coordinate]] = []

    def add(self, coords: str, entries: Optional[Dict[str, str]] = None) -> Path:
        coordinate = Coordinate.parse(coords)
        return make_jar(self.root / coordinate.repository_path(), entries)

    def resolve(self, coordinate: Coordinate) -> Coordinate:
        self.resolve_calls.append(coordinate)
        version = coordinate.version
        if not version and coordinate.version_range:
            artifact_dir = self.root.joinpath(*coordinate.group_id.split("."), coordinate.artifact_id)
            candidates = [p.name for p in artifact_dir.iterdir()] if artifact_dir.is_dir() else []
            version = select_version(coordinate.version_range, candidates)
        if not version:
            raise ArtifactNotFoundError(coordinate, "no version")
        resolved = coordinate.with_resolution(version, None)
        path = self.root / resolved.repository_path()
        if not path.is_file():
            raise ArtifactNotFoundError(coordinate)
        return resolved.with_resolution(version, path)

    def resolve_all(self, coordinates):
        self.resolve_all_calls.append(list(coordinates))
        return super().resolve_all(coordinates)


class CopyingTransformer(Transformer):
    """Copies the source to the target, marking the output as transformed.

    Artifacts whose file name contains one of ``not_applicable`` are reported
    as not needing transformation.
    """

    def __init__(self, not_applicable=()):
        self.not_applicable = tuple(not_applicable)
        self.calls: List[tuple] = []

    def transform(self, source: Path, target: Path, *, verbose: bool = False) -> TransformResult:
        self.calls.append((source, target))
        if any(marker in source.name for marker in self.not_applicable):
            return TransformResult(source, False)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        return TransformResult(target, True)


class FeaturePackBuilder:
    """Writes an unpacked feature pack below ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.wildfly = self.root / "resources" / "wildfly"

    def artifact_versions(self, props: Dict[str, str]) -> "FeaturePackBuilder":
        self._write_props(self.wildfly / "artifact-versions.properties", props)
        return self

    def task_properties(self, props: Dict[str, str]) -> "FeaturePackBuilder":
        self._write_props(self.wildfly / "wildfly-tasks.properties", props)
        return self

    def excludes(self, *lines: str) -> "FeaturePackBuilder":
        self._write(self.wildfly / "jakarta-transform-excludes.txt", "\n".join(lines) + "\n")
        return self

    def schema_groups(self, *groups: str) -> "FeaturePackBuilder":
        path = self.root / "packages" / "docs.schema" / "pm" / "wildfly" / "schema-groups.txt"
        self._write(path, "\n".join(groups) + "\n")
        return self

    def finalize_script(self, text: str = "echo done\n") -> "FeaturePackBuilder":
        self._write(self.wildfly / "scripts" / "finalize.cli", text)
        return self

    def module(self, package: str, relative: str, xml: str) -> "FeaturePackBuilder":
        self._write(self.root / "packages" / package / "pm" / "wildfly" / "module" / relative, xml)
        return self

    def module_resource(self, package: str, relative: str, text: str) -> "FeaturePackBuilder":
        return self.module(package, relative, text)

    def content(self, package: str, relative: str, text: str) -> "FeaturePackBuilder":
        self._write(self.root / "packages" / package / "content" / relative, text)
        return self

    def tasks(self, package: str, xml: str) -> "FeaturePackBuilder":
        self._write(self.root / "packages" / package / "pm" / "wildfly" / "tasks.xml", xml)
        return self

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def _write_props(self, path: Path, props: Dict[str, str]) -> None:
        self._write(path, "".join(f"{k}={v}\n" for k, v in props.items()))


MODULE_NS = "urn:jboss:module:1.9"


def module_xml(name: str, *artifacts: str, version: Optional[str] = None) -> str:
    """Module descriptor template referencing ``artifacts``."""
    version_attr = f' version="{version}"' if version else ""
    items = "\n".join(f'        <artifact name="{a}"/>' for a in artifacts)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<module xmlns="{MODULE_NS}" name="{name}"{version_attr}>\n'
        "    <!-- resources -->\n"
        "    <resources>\n"
        f"{items}\n"
        "    </resources>\n"
        "</module>\n"
    )


@pytest.fixture
def repository(tmp_path):
    return FakeRepository(tmp_path / "maven-repo")


@pytest.fixture
def transformer():
    return CopyingTransformer()


@pytest.fixture
def feature_pack(tmp_path):
    def _build(name: str = "fp") -> FeaturePackBuilder:
        return FeaturePackBuilder(tmp_path / "feature-packs" / name)
    return _build
