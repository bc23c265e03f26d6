"""Selection and validation of the installer strategy for a run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from artifacts.cache import InstallationCache
from common.errors import ConfigurationConflictError, PinnedRepositoryMissingError
from constants import Constants
from versioning.properties import VersionProperties
from .strategies import (
    ArtifactInstaller,
    NamespaceTransform,
    PassThroughInstaller,
    PinnedRepositoryInstaller,
    PinnedRepositoryResolver,
    Resolver,
    TransformingInstaller,
)
from .transformer import Transformer

logger = logging.getLogger(__name__)


def is_transformable(task_props: Mapping[str, str]) -> bool:
    """Return True when the feature packs ask for namespace transformation."""
    return task_props.get(Constants.TRANSFORM_ARTIFACTS_KEY, "false").strip().lower() == "true"


def check_provisioning_repo(provisioning_repo: Optional[Path]) -> None:
    """Fail when a configured provisioning repository does not exist."""
    if provisioning_repo is not None and not Path(provisioning_repo).exists():
        raise PinnedRepositoryMissingError(Path(provisioning_repo).absolute())


def create_installer(
    *,
    options,
    task_props: Mapping[str, str],
    resolver: Resolver,
    versions: VersionProperties,
    cache: InstallationCache,
    work_dir: Path,
    transformer: Optional[Transformer] = None,
    excluded: Iterable[str] = (),
) -> ArtifactInstaller:
    """Build the installer matching the options and feature-pack properties.

    Supported combinations for transformable feature packs:

    * transformation enabled, no provisioning repository (thin servers also
      need an output repository);
    * transformation disabled with a provisioning repository holding the
      pre-transformed artifacts.

    Raises:
        ConfigurationConflictError: For any other combination, or when a
            transformation is needed and no transformer is configured.
        PinnedRepositoryMissingError: If the provisioning repository does
            not exist.
    """
    check_provisioning_repo(options.provisioning_repo)
    if not is_transformable(task_props):
        logger.debug("Feature packs are not transformable, artifacts are installed as resolved")
        return PassThroughInstaller(resolver, versions, cache, options.output_repo)

    suffix = task_props.get(Constants.TRANSFORM_SUFFIX_KEY, "")

    if options.transform_artifacts:
        if options.provisioning_repo is not None:
            raise ConfigurationConflictError(
                "Namespace transformation is enabled, option provisioning_repo can't be set."
            )
        if options.thin and options.output_repo is None:
            raise ConfigurationConflictError(
                "Namespace transformation is enabled for thin server, option output_repo is required."
            )
        if transformer is None:
            raise ConfigurationConflictError(
                "Namespace transformation is enabled but no transformer command is configured."
            )
        logger.info("Transforming artifacts with suffix '%s'", suffix)
        transform = NamespaceTransform(transformer, suffix, work_dir, excluded, options.transform_verbose)
        return TransformingInstaller(resolver, versions, cache, transform, options.output_repo)

    if options.provisioning_repo is None:
        raise ConfigurationConflictError(
            "Namespace transformation is disabled, option provisioning_repo must be set."
        )
    if versions.overrides and transformer is None:
        raise ConfigurationConflictError(
            "Overridden artifacts may need transformation but no transformer command is configured."
        )
    transform = None
    if transformer is not None:
        transform = NamespaceTransform(transformer, suffix, work_dir, excluded, options.transform_verbose)
    logger.info("Using pre-transformed artifacts from %s", options.provisioning_repo)
    pinned = PinnedRepositoryResolver(options.provisioning_repo, suffix, resolver)
    return PinnedRepositoryInstaller(pinned, versions, cache, transform, options.output_repo)
