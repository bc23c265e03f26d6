"""Installation orchestration over unpacked feature packs."""

from .options import InstallOptions, MavenOptions
from .feature_pack import FeaturePack, Package
from .hooks import CommandHook, CommandIndexer, Hooks
from .installation import Installation, InstallationReport

__all__ = [
    "CommandHook",
    "CommandIndexer",
    "FeaturePack",
    "Hooks",
    "InstallOptions",
    "Installation",
    "InstallationReport",
    "MavenOptions",
    "Package",
]
