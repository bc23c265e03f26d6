"""Maven repository support."""

from .repository import MavenRepository

__all__ = ["MavenRepository"]
