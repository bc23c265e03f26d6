"""Parser for package ``tasks.xml`` descriptors.

Only the attributes the installer uses are read; element namespaces are
ignored so every schema version of the descriptor is accepted.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional

from common.errors import TaskError
from constants import Phase
from modules.template import local_name
from .model import CopyArtifact, CopyPath, DeletePath, FileFilter, PackageTasks, XslTransform

logger = logging.getLogger(__name__)


def _bool(element: ET.Element, name: str, default: bool = False) -> bool:
    value = element.get(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


def _phase(element: ET.Element) -> Phase:
    value = (element.get("phase") or Phase.PROCESSING.value).strip().upper()
    try:
        return Phase(value)
    except ValueError as exc:
        raise TaskError(f"Unknown task phase {value}") from exc


def _required(element: ET.Element, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise TaskError(f"<{local_name(element.tag)}> is missing attribute '{name}'")
    return value


def _filters(element: Optional[ET.Element]) -> List[FileFilter]:
    if element is None:
        return []
    return [
        FileFilter(_required(child, "pattern"), _bool(child, "include", True))
        for child in element
        if local_name(child.tag) == "filter"
    ]


def _params(element: ET.Element) -> Dict[str, str]:
    """Read <param name= value=/> children, directly or inside <params>."""
    params: Dict[str, str] = {}
    for child in element:
        tag = local_name(child.tag)
        if tag == "params":
            params.update(_params(child))
        elif tag == "param":
            params[_required(child, "name")] = _required(child, "value")
    return params


def parse_tasks(root: ET.Element) -> PackageTasks:
    """Build PackageTasks from a parsed ``<tasks>`` element."""
    result = PackageTasks()
    for element in root:
        name = local_name(element.tag)
        if name == "copy-artifact":
            result.tasks.append(CopyArtifact(
                artifact=_required(element, "artifact"),
                to_location=_required(element, "to-location"),
                extract=_bool(element, "extract"),
                optional=_bool(element, "optional"),
                feature_pack_version=_bool(element, "feature-pack-version"),
                filters=_filters(element),
                phase=_phase(element),
            ))
        elif name == "copy-path":
            result.tasks.append(CopyPath(
                src=_required(element, "src"),
                relative_to=element.get("relative-to", "content"),
                target=element.get("target"),
                replace_props=_bool(element, "replace-props"),
                phase=_phase(element),
            ))
        elif name == "delete":
            result.tasks.append(DeletePath(
                path=_required(element, "path"),
                recursive=_bool(element, "recursive"),
                if_empty=_bool(element, "if-empty"),
                phase=_phase(element),
            ))
        elif name in ("transform", "xsl-transform"):
            result.tasks.append(XslTransform(
                src=_required(element, "src"),
                output=_required(element, "output"),
                stylesheet=_required(element, "stylesheet"),
                params=_params(element),
                feature_pack_properties=_bool(element, "feature-pack-properties"),
                phase=_phase(element),
            ))
        elif name == "mkdirs":
            result.mkdirs.extend(_required(d, "name") for d in element if local_name(d.tag) == "dir")
        elif name == "line-endings":
            for group in element:
                if local_name(group.tag) == "unix":
                    result.unix_line_endings.extend(_filters(group))
                elif local_name(group.tag) == "windows":
                    result.windows_line_endings.extend(_filters(group))
        elif name:
            logger.warning("Ignoring unsupported package task <%s>", name)
    return result


def load_tasks(path: Path) -> PackageTasks:
    """Parse a ``tasks.xml`` file."""
    try:
        tree = ET.parse(path)
    except ET.ParseError as exc:
        raise TaskError(f"Failed to parse {path}: {exc}") from exc
    return parse_tasks(tree.getroot())
