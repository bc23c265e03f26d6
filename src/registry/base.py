"""Artifact repository contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from artifacts.coordinate import Coordinate


class ArtifactRepository(ABC):
    """Resolves coordinates to concrete versions and local files.

    Implementations raise ``ArtifactNotFoundError`` when a coordinate cannot
    be resolved.
    """

    @abstractmethod
    def resolve(self, coordinate: Coordinate) -> Coordinate:
        """Return ``coordinate`` with concrete version and local path."""

    def resolve_all(self, coordinates: Sequence[Coordinate]) -> List[Coordinate]:
        """Resolve a batch; the result is in input order.

        Duplicates in the input are resolved once.
        """
        resolved = {}
        result = []
        for coordinate in coordinates:
            key = (coordinate.key(), coordinate.version_range)
            if key not in resolved:
                resolved[key] = self.resolve(coordinate)
            result.append(resolved[key])
        return result
