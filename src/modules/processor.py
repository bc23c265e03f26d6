"""Thin and fat module template processing."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Mapping, Optional

from common.errors import UnresolvedVersionError
from versioning.expressions import parse_expression, to_artifact_coords
from .schemas import SchemaExtractor
from .template import ModuleArtifactReference, ModuleTemplate, PATH, RESOURCE_ROOT, qualified, split_tag

logger = logging.getLogger(__name__)


class ModuleTemplateProcessor:
    """Logic shared by thin and fat processing of one module template.

    Artifact references must already be resolvable from the preloaded batch
    so every template sees the same outcome for the same artifact.
    """

    def __init__(self, installer, template: ModuleTemplate, version_props: Mapping[str, str],
                 schemas: Optional[SchemaExtractor] = None):
        self.installer = installer
        self.template = template
        self.version_props = version_props
        self.schemas = schemas

    @property
    def target_dir(self) -> Path:
        return self.template.target.parent

    def process(self) -> None:
        if not self.template.is_module:
            return
        self.process_module_version()
        self.process_artifacts()

    def process_module_version(self) -> None:
        """Replace a ``${...}`` module version with the artifact version."""
        parsed = parse_expression(self.template.version or "")
        if parsed is None:
            return
        key, _ = parsed
        artifact = to_artifact_coords(self.version_props, key)
        if not artifact.has_version:
            raise UnresolvedVersionError(key)
        self.template.version = artifact.version

    def process_artifacts(self) -> None:
        for reference in self.template.references(self.version_props, self.installer):
            if not reference.has_artifact():
                continue
            artifact = reference.resolved_coordinate()
            self.process_artifact(reference)
            if self.schemas is not None:
                self.schemas.process(artifact.group_id, artifact.path)

    def process_artifact(self, reference: ModuleArtifactReference) -> None:
        raise NotImplementedError


class ThinModuleTemplateProcessor(ModuleTemplateProcessor):
    """References artifacts by ``group:artifact:version[:classifier]``."""

    def process_artifact(self, reference: ModuleArtifactReference) -> None:
        artifact = reference.resolved_coordinate()
        installed_version = self.installer.install_thin(artifact)
        reference.apply_thin_rewrite(artifact.thin_coords(installed_version))


class FatModuleTemplateProcessor(ModuleTemplateProcessor):
    """Copies artifacts next to the module descriptor."""

    def __init__(self, installer, template: ModuleTemplate, version_props: Mapping[str, str],
                 schemas: Optional[SchemaExtractor] = None, indexer=None):
        super().__init__(installer, template, version_props, schemas)
        self.indexer = indexer

    def process_artifact(self, reference: ModuleArtifactReference) -> None:
        artifact = reference.resolved_coordinate()
        file_name = self.installer.install_fat(artifact, self.target_dir)
        if reference.jandex:
            self._add_index(reference, self.target_dir / file_name)
        reference.apply_fat_rewrite(file_name)

    def _add_index(self, reference: ModuleArtifactReference, jar: Path) -> None:
        if self.indexer is None:
            logger.debug("No indexer configured, skipping jandex index of %s", jar.name)
            return
        index_name = self.indexer.index(jar, self.target_dir)
        parent = self._parent_of(reference.element)
        namespace, _ = split_tag(reference.element.tag)
        index_root = ET.Element(qualified(namespace, RESOURCE_ROOT), {PATH: index_name})
        index_root.tail = reference.element.tail
        parent.insert(list(parent).index(reference.element), index_root)

    def _parent_of(self, element: ET.Element) -> ET.Element:
        for candidate in self.template.root.iter():
            if element in list(candidate):
                return candidate
        raise ValueError("Artifact element is not part of the template")
