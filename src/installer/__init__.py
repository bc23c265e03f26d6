"""Artifact installer strategies and the namespace transformer contract."""

from .transformer import CommandTransformer, TransformResult, Transformer, transformed_file_name
from .strategies import (
    ArtifactInstaller,
    NamespaceTransform,
    PassThroughInstaller,
    PinnedRepositoryInstaller,
    PinnedRepositoryResolver,
    TransformingInstaller,
)
from .factory import create_installer, is_transformable

__all__ = [
    "ArtifactInstaller",
    "CommandTransformer",
    "NamespaceTransform",
    "PassThroughInstaller",
    "PinnedRepositoryInstaller",
    "PinnedRepositoryResolver",
    "TransformResult",
    "Transformer",
    "TransformingInstaller",
    "create_installer",
    "is_transformable",
    "transformed_file_name",
]
