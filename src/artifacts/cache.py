"""Installation cache: resolved artifact -> installation relative path."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from constants import Constants
from .coordinate import Coordinate

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str, str, str]


class InstallationCache:
    """Records where each resolved artifact ended up in an installation.

    Inserts are put-if-absent: the first path recorded for a coordinate wins
    and later attempts to register another path are ignored. The cache is
    persisted as ``group:artifact:classifier:extension:version:path`` lines
    under the installation directory so a later run starts from it.
    """

    def __init__(self, base_dir: Path):
        self._base_dir = Path(base_dir)
        self._records: Dict[CacheKey, str] = {}
        self._lock = threading.Lock()

    @property
    def file(self) -> Path:
        """Location of the persisted cache."""
        return self._base_dir / Constants.INSTALLATION_DIR / Constants.CACHE_FILE

    def _relativize(self, path: Union[str, Path]) -> str:
        p = Path(path)
        if p.is_absolute():
            return Path(os.path.relpath(p, self._base_dir)).as_posix()
        return p.as_posix()

    def add_record(self, coordinate: Coordinate, path: Union[str, Path]) -> bool:
        """Record ``path`` for ``coordinate`` unless one is already recorded.

        Returns:
            True when the record was inserted.
        """
        key = coordinate.key()
        value = self._relativize(path)
        with self._lock:
            if key in self._records:
                if self._records[key] != value:
                    logger.debug("Keeping cached path %s for %s, ignoring %s",
                                 self._records[key], coordinate, value)
                return False
            self._records[key] = value
        return True

    def get(self, coordinate: Coordinate) -> Optional[str]:
        """Return the recorded relative path for ``coordinate``."""
        with self._lock:
            return self._records.get(coordinate.key())

    def items(self) -> Iterator[Tuple[CacheKey, str]]:
        with self._lock:
            snapshot = list(self._records.items())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def load(self) -> int:
        """Load the persisted records, keeping entries already present.

        Returns:
            Number of records read from disk.
        """
        if not self.file.exists():
            return 0
        loaded = 0
        with open(self.file, encoding="utf-8") as fh:
            for raw in fh:
                line = raw.rstrip("\n")
                if not line:
                    continue
                parts = line.split(":", 5)
                if len(parts) != 6 or not all(parts[i] for i in (0, 1, 3, 4, 5)):
                    logger.warning("Ignoring malformed cache record: %s", line)
                    continue
                group_id, artifact_id, classifier, extension, version, path = parts
                with self._lock:
                    self._records.setdefault((group_id, artifact_id, classifier, extension, version), path)
                loaded += 1
        logger.debug("Loaded %d installation cache records from %s", loaded, self.file)
        return loaded

    def write(self) -> None:
        """Rewrite the persisted cache with every record."""
        self.file.parent.mkdir(parents=True, exist_ok=True)
        lines = [":".join(key) + ":" + path for key, path in self.items()]
        with open(self.file, "w", encoding="utf-8") as fh:
            for line in lines:
                fh.write(line + "\n")
        logger.debug("Wrote %d installation cache records to %s", len(lines), self.file)
