"""Single pass pre-resolution of every module artifact."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from common.logging_utils import extra_context, is_debug_enabled, Timer
from registry.base import ArtifactRepository
from .coordinate import Coordinate

logger = logging.getLogger(__name__)


class BatchResolver:
    """Serves artifact resolution from one bulk repository request.

    ``preload`` is called once with every coordinate referenced by every
    module template before any template is rewritten. Afterwards ``resolve``
    answers from the preloaded map and only goes to the repository for
    coordinates that were not part of the batch (copy-artifact tasks,
    hook classpaths).
    """

    def __init__(self, repository: ArtifactRepository):
        self._repository = repository
        self._resolved: Dict[Coordinate, Coordinate] = {}

    def __len__(self) -> int:
        return len(self._resolved)

    def __contains__(self, coordinate: Coordinate) -> bool:
        return coordinate in self._resolved

    def preload(self, coordinates: Iterable[Optional[Coordinate]]) -> int:
        """Resolve all ``coordinates`` with one repository call.

        ``None`` entries (references without an artifact) are skipped and
        duplicates are allowed. Returns the number of distinct coordinates
        now known.
        """
        batch: List[Coordinate] = [c for c in coordinates if c is not None]
        if not batch:
            return len(self._resolved)
        with Timer() as t:
            resolved = self._repository.resolve_all(batch)
        for unresolved, result in zip(batch, resolved):
            self._resolved.setdefault(unresolved, result)
        if is_debug_enabled(logger):
            logger.debug(
                "Preloaded artifacts",
                extra=extra_context(
                    event="batch_resolve", component="batch", action="preload",
                    count=len(batch), distinct=len(self._resolved), duration_ms=t.duration_ms()
                )
            )
        return len(self._resolved)

    def resolve(self, coordinate: Coordinate) -> Coordinate:
        """Resolve one coordinate, preferring the preloaded result."""
        hit = self._resolved.get(coordinate)
        if hit is not None:
            return coordinate.with_resolution(hit.version, hit.path)
        logger.debug("Resolving %s outside of the preloaded batch", coordinate)
        return self._repository.resolve(coordinate)
