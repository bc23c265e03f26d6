"""Post-install collaborators invoked through command lines.

Configuration generation, finalize CLI scripts and jandex indexing are
performed by external tools. Each is configured as an argument list whose
items may contain ``{placeholders}``.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from common.errors import HookError
from common.logging_utils import Timer
from constants import Constants

logger = logging.getLogger(__name__)


class CommandHook:
    """Runs one external command with placeholder substitution."""

    def __init__(self, name: str, command: Sequence[str], timeout: int = Constants.HOOK_TIMEOUT_SEC):
        if not command:
            raise ValueError(f"Hook {name} has an empty command")
        self.name = name
        self.command = list(command)
        self.timeout = timeout

    def arguments(self, **values: str) -> List[str]:
        try:
            return [arg.format(**values) for arg in self.command]
        except KeyError as exc:
            raise HookError(f"Hook {self.name} uses unknown placeholder {exc}") from exc

    def run(self, **values: str) -> str:
        """Run the command; return its standard output.

        Raises:
            HookError: If the command cannot be started or exits non-zero.
        """
        args = self.arguments(**values)
        logger.debug("Running %s: %s", self.name, " ".join(args))
        with Timer() as t:
            try:
                completed = subprocess.run(args, capture_output=True, text=True,
                                           timeout=self.timeout, check=False)
            except (OSError, subprocess.SubprocessError) as exc:
                raise HookError(f"Failed to run {self.name}: {exc}") from exc
        if completed.returncode != 0:
            raise HookError(f"{self.name} failed (exit {completed.returncode}): {completed.stderr.strip()}")
        logger.info("%s finished in %d ms", self.name, t.duration_ms())
        return completed.stdout


class CommandIndexer:
    """Builds a jandex index jar for a module artifact.

    The command receives ``{jar}``, ``{target_dir}`` and ``{index}`` (the
    expected index file name) and must write the index into ``target_dir``.
    """

    def __init__(self, hook: CommandHook):
        self.hook = hook

    @staticmethod
    def index_name(jar: Path) -> str:
        stem = jar.name[:-len(jar.suffix)] if jar.suffix else jar.name
        return f"{stem}-jandex{jar.suffix}"

    def index(self, jar: Path, target_dir: Path) -> str:
        name = self.index_name(jar)
        self.hook.run(jar=str(jar), target_dir=str(target_dir), index=name)
        if not (target_dir / name).exists():
            raise HookError(f"Indexer did not produce {name} in {target_dir}")
        return name


@dataclass
class Hooks:
    """Optional post-install collaborators of an installation run."""

    config_generator: Optional[CommandHook] = None
    cli_script_runner: Optional[CommandHook] = None
    indexer: Optional[CommandIndexer] = None

    @classmethod
    def from_config(cls, config: Dict[str, Sequence[str]]) -> "Hooks":
        hooks = cls()
        if config.get("config_generator"):
            hooks.config_generator = CommandHook("config generator", config["config_generator"])
        if config.get("cli_script_runner"):
            hooks.cli_script_runner = CommandHook("CLI script runner", config["cli_script_runner"])
        if config.get("indexer"):
            hooks.indexer = CommandIndexer(CommandHook("jandex indexer", config["indexer"]))
        return hooks

    def generate_configs(self, staged_dir: Path, thin: bool, local_repository: Optional[Path]) -> None:
        if self.config_generator is None:
            logger.info("No config generator configured, skipping configuration generation")
            return
        self.config_generator.run(
            staged_dir=str(staged_dir),
            thin=str(thin).lower(),
            local_repository=str(local_repository or ""),
        )

    def run_cli_script(self, staged_dir: Path, script: Path) -> None:
        if self.cli_script_runner is None:
            logger.warning("No CLI script runner configured, skipping %s", script)
            return
        self.cli_script_runner.run(staged_dir=str(staged_dir), script=str(script))
