"""Configuration file loading and CLI overrides.

Values come from an optional YAML configuration file; CLI arguments win over
the file. The result is a ``RunConfig`` holding everything an installation
run needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config_validate import SchemaError, validate_config
from constants import Constants
from installer.transformer import CommandTransformer, Transformer
from provisioning.hooks import Hooks
from provisioning.options import InstallOptions, MavenOptions

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Resolved settings of one run."""

    feature_packs: List[Path]
    staged_dir: Path
    options: InstallOptions
    maven: MavenOptions
    transformer: Optional[Transformer]
    hooks: Hooks


def load_config_file(path: str) -> Dict[str, Any]:
    """Load and validate a YAML configuration file.

    Raises:
        OSError: If the file cannot be read.
        SchemaError: If the content is not a valid configuration.
    """
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise SchemaError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaError(f"Configuration file {path} must contain a mapping")
    validate_config(data)
    logger.debug("Loaded configuration from %s", path)
    return data


def _pick(cli_value, file_value, default=None):
    if cli_value is not None:
        return cli_value
    if file_value is not None:
        return file_value
    return default


def _path(value) -> Optional[Path]:
    return Path(value).expanduser() if value else None


def build_install_options(args, section: Dict[str, Any]) -> InstallOptions:
    overridden = _pick(getattr(args, "OVERRIDDEN_ARTIFACTS", None), section.get("overridden_artifacts"))
    if isinstance(overridden, list):
        overridden = "|".join(overridden)
    return InstallOptions(
        thin=bool(_pick(getattr(args, "THIN", None), section.get("thin"), False)),
        output_repo=_path(_pick(getattr(args, "OUTPUT_REPO", None), section.get("output_repo"))),
        provisioning_repo=_path(_pick(getattr(args, "PROVISIONING_REPO", None), section.get("provisioning_repo"))),
        transform_artifacts=bool(_pick(getattr(args, "TRANSFORM_ARTIFACTS", None),
                                       section.get("transform_artifacts"), True)),
        transform_verbose=bool(_pick(getattr(args, "TRANSFORM_VERBOSE", None),
                                     section.get("transform_verbose"), False)),
        overridden_artifacts=overridden or None,
    )


def build_maven_options(args, section: Dict[str, Any]) -> MavenOptions:
    local = _pick(getattr(args, "LOCAL_REPO", None), section.get("local_repository"),
                  Constants.DEFAULT_LOCAL_REPOSITORY)
    remotes = _pick(getattr(args, "REMOTE_REPOS", None), section.get("remote_repositories"),
                    list(Constants.DEFAULT_REMOTE_REPOSITORIES))
    return MavenOptions(
        local_repository=Path(local).expanduser(),
        remote_repositories=list(remotes),
        offline=bool(_pick(getattr(args, "OFFLINE", None), section.get("offline"), False)),
    )


def build_transformer(section: Dict[str, Any]) -> Optional[Transformer]:
    command = section.get("command")
    if not command:
        return None
    return CommandTransformer(
        command,
        configs_dir=_path(section.get("configs_dir")),
        timeout=int(section.get("timeout", Constants.HOOK_TIMEOUT_SEC)),
    )


def build_run_config(args, file_config: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Merge CLI arguments over the configuration file.

    Raises:
        SchemaError: If no feature pack or staged directory is given.
    """
    config = file_config or {}
    feature_packs = getattr(args, "FEATURE_PACKS", None) or config.get("feature_packs") or []
    if not feature_packs:
        raise SchemaError("At least one feature pack is required")
    staged_dir = _pick(getattr(args, "STAGED_DIR", None), config.get("staged_dir"))
    if not staged_dir:
        raise SchemaError("The installation directory is required")
    return RunConfig(
        feature_packs=[Path(p).expanduser() for p in feature_packs],
        staged_dir=Path(staged_dir).expanduser(),
        options=build_install_options(args, config.get("installation") or {}),
        maven=build_maven_options(args, config.get("maven") or {}),
        transformer=build_transformer(config.get("transformer") or {}),
        hooks=Hooks.from_config(config.get("hooks") or {}),
    )
