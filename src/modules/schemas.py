"""Extraction of bundled XML schemas into the documentation directory."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Iterable

from common.io_utils import extract_zip
from constants import Layout

logger = logging.getLogger(__name__)

SCHEMA_PREFIX = Layout.SCHEMA + "/"


class SchemaExtractor:
    """Copies ``schema/`` entries of schema-group artifacts to ``docs/schema``."""

    def __init__(self, groups: Iterable[str], staged_dir: Path):
        self.groups = frozenset(groups)
        self.target_dir = Path(staged_dir) / Layout.DOCS / Layout.SCHEMA

    def process(self, group_id: str, artifact: Path) -> int:
        """Extract schemas if ``group_id`` is a schema group.

        Extracting the same artifact again overwrites the same files.
        Returns the number of files written.
        """
        if group_id not in self.groups:
            return 0
        if not zipfile.is_zipfile(artifact):
            logger.debug("Not extracting schemas from non archive %s", artifact)
            return 0
        self.target_dir.mkdir(parents=True, exist_ok=True)
        count = extract_zip(artifact, self.target_dir, prefix=SCHEMA_PREFIX)
        if count:
            logger.debug("Extracted %d schemas from %s", count, artifact.name)
        return count
