"""Namespace transformer collaborator.

The byte level rewrite of an artifact (javax -> jakarta) is performed by an
external tool. The pipeline only depends on the ``Transformer`` contract;
``CommandTransformer`` runs a configured command line.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from common.errors import TransformError
from constants import Constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformResult:
    """Outcome of one transformation.

    ``applied`` is False when the transformer found nothing to rewrite; the
    original artifact must be used unchanged and ``path`` points at it.
    """

    path: Path
    applied: bool


class Transformer(ABC):
    """Rewrites the package namespace of an artifact."""

    @abstractmethod
    def transform(self, source: Path, target: Path, *, verbose: bool = False) -> TransformResult:
        """Transform ``source`` into ``target``."""


def transformed_file_name(version: str, file_name: str, suffix: str) -> str:
    """Insert ``suffix`` right after the last occurrence of ``version``.

    >>> transformed_file_name("1.2.3", "bar-1.2.3.jar", "-ee9")
    'bar-1.2.3-ee9.jar'
    """
    index = file_name.rfind(version)
    if index < 0:
        stem, dot, extension = file_name.rpartition(".")
        return f"{stem}{suffix}{dot}{extension}" if dot else f"{file_name}{suffix}"
    end = index + len(version)
    return file_name[:end] + suffix + file_name[end:]


class CommandTransformer(Transformer):
    """Runs an external transformer command.

    ``command`` is an argument list whose items may contain ``{source}`` and
    ``{target}`` placeholders. Exit status 0 with ``target`` written means
    the transformation was applied; exit status 0 without output means it
    was not applicable.
    """

    def __init__(self, command: Sequence[str], configs_dir: Optional[Path] = None,
                 timeout: int = Constants.HOOK_TIMEOUT_SEC):
        if not command:
            raise ValueError("Transformer command must not be empty")
        self.command = list(command)
        self.configs_dir = configs_dir
        self.timeout = timeout

    def _arguments(self, source: Path, target: Path) -> list:
        values = {
            "source": str(source),
            "target": str(target),
            "configs_dir": str(self.configs_dir or ""),
        }
        try:
            return [arg.format(**values) for arg in self.command]
        except KeyError as exc:
            raise TransformError(f"Transformer command uses unknown placeholder {exc}") from exc

    def transform(self, source: Path, target: Path, *, verbose: bool = False) -> TransformResult:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            target.unlink()
        args = self._arguments(source, target)
        logger.debug("Running transformer: %s", " ".join(args))
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise TransformError(f"Failed to run transformer for {source}: {exc}") from exc
        if verbose and completed.stdout:
            for line in completed.stdout.splitlines():
                logger.info("[transformer] %s", line)
        if completed.returncode != 0:
            raise TransformError(
                f"Transformer failed for {source} (exit {completed.returncode}): {completed.stderr.strip()}"
            )
        if not target.exists():
            logger.debug("Transformation not applicable to %s", source)
            return TransformResult(source, False)
        return TransformResult(target, True)
