"""Module descriptor templates and their processing."""

from .template import ModuleArtifactReference, ModuleTemplate
from .schemas import SchemaExtractor
from .processor import FatModuleTemplateProcessor, ModuleTemplateProcessor, ThinModuleTemplateProcessor

__all__ = [
    "FatModuleTemplateProcessor",
    "ModuleArtifactReference",
    "ModuleTemplate",
    "ModuleTemplateProcessor",
    "SchemaExtractor",
    "ThinModuleTemplateProcessor",
]
