"""Module descriptor templates and their artifact references."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Mapping, Optional

from artifacts.coordinate import Coordinate
from versioning.expressions import parse_expression, resolve_expression, to_artifact_coords

logger = logging.getLogger(__name__)

MODULE = "module"
ARTIFACT = "artifact"
RESOURCE_ROOT = "resource-root"
NAME = "name"
PATH = "path"
VERSION = "version"

_UNSET = object()


def split_tag(tag: str):
    """Return ``(namespace, local_name)`` of an ElementTree tag."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return split_tag(tag)[1]


def qualified(namespace: str, local: str) -> str:
    return f"{{{namespace}}}{local}" if namespace else local


class ModuleArtifactReference:
    """One ``<artifact name="..."/>`` of a module template.

    The unresolved coordinate comes from the version properties alone. The
    resolved coordinate is obtained through the installer once and memoized
    for the lifetime of the reference.
    """

    def __init__(self, element: ET.Element, version_props: Mapping[str, str], installer,
                 optional: bool = False):
        self._element = element
        self._version_props = version_props
        self._installer = installer
        self.optional = optional
        self.expression = element.get(NAME, "")
        parsed = parse_expression(self.expression)
        self.jandex = bool(parsed and parsed[1])
        self._unresolved = _UNSET
        self._resolved = _UNSET
        self._rewritten = False

    @property
    def element(self) -> ET.Element:
        return self._element

    def unresolved_coordinate(self) -> Optional[Coordinate]:
        """Coordinate named by the expression, without repository access.

        Returns None when an optional expression names no known artifact.
        """
        if self._unresolved is _UNSET:
            coords = resolve_expression(self.expression, self._version_props, self.optional)
            self._unresolved = None if coords is None else \
                to_artifact_coords(self._version_props, coords, self.optional)
        return self._unresolved

    def resolved_coordinate(self) -> Optional[Coordinate]:
        """Coordinate with concrete version and local path (memoized)."""
        if self._resolved is _UNSET:
            unresolved = self.unresolved_coordinate()
            if unresolved is None:
                self._resolved = None
            else:
                logger.debug("Resolving %s", unresolved)
                self._resolved = self._installer.resolve(unresolved)
        return self._resolved

    def has_artifact(self) -> bool:
        return self.resolved_coordinate() is not None

    def _begin_rewrite(self) -> None:
        if self._rewritten:
            raise ValueError(f"Artifact reference {self.expression} has already been rewritten")
        self._rewritten = True

    def apply_fat_rewrite(self, file_name: str) -> None:
        """Turn the element into ``<resource-root path="file_name"/>``."""
        self._begin_rewrite()
        namespace, _ = split_tag(self._element.tag)
        self._element.tag = qualified(namespace, RESOURCE_ROOT)
        self._element.attrib.pop(NAME, None)
        self._element.set(PATH, file_name)

    def apply_thin_rewrite(self, coords: str) -> None:
        """Reference the artifact by external coordinates."""
        self._begin_rewrite()
        self._element.set(NAME, coords)


class ModuleTemplate:
    """Parsed module descriptor template.

    Comments are preserved. Templates whose root element is not ``module``
    (aliases, absent modules) are not processed and are copied as they are.
    """

    def __init__(self, source: Path, target: Path):
        self.source = Path(source)
        self.target = Path(target)
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        self._tree = ET.parse(self.source, parser=parser)
        self._namespace, self._root_name = split_tag(self._tree.getroot().tag)

    @property
    def root(self) -> ET.Element:
        return self._tree.getroot()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def is_module(self) -> bool:
        return self._root_name == MODULE

    @property
    def version(self) -> Optional[str]:
        return self.root.get(VERSION)

    @version.setter
    def version(self, value: str) -> None:
        self.root.set(VERSION, value)

    def artifact_elements(self) -> List[ET.Element]:
        return [e for e in self.root.iter() if local_name(e.tag) == ARTIFACT]

    def references(self, version_props: Mapping[str, str], installer,
                   optional: bool = False) -> List[ModuleArtifactReference]:
        """Wrap every artifact element of a module template."""
        if not self.is_module:
            return []
        return [ModuleArtifactReference(e, version_props, installer, optional) for e in self.artifact_elements()]

    def store(self) -> None:
        """Serialize the (possibly rewritten) template to its target path."""
        if self._namespace:
            ET.register_namespace("", self._namespace)
        self.target.parent.mkdir(parents=True, exist_ok=True)
        self._tree.write(self.target, encoding="UTF-8", xml_declaration=True)
