"""Artifact coordinates, the installation cache and batch resolution."""

from .coordinate import Coordinate, is_version_range
from .cache import InstallationCache
from .batch import BatchResolver

__all__ = [
    "Coordinate",
    "is_version_range",
    "InstallationCache",
    "BatchResolver",
]
