"""Exception types raised by the installation pipeline."""

from __future__ import annotations

from typing import Any, Optional


class ProvisioningError(Exception):
    """Base class for every failure that aborts an installation run."""


class ConfigurationConflictError(ProvisioningError):
    """Raised when mutually exclusive installation options are combined."""


class PinnedRepositoryMissingError(ProvisioningError):
    """Raised when the pinned provisioning repository does not exist."""

    def __init__(self, path: Any):
        super().__init__(
            f"Local maven repository {path} used to provision the server doesn't exist."
        )
        self.path = path


class UnknownOverrideKeyError(ProvisioningError):
    """Raised when an overridden artifact is not a known server artifact."""

    def __init__(self, key: str):
        super().__init__(
            f"Overridden artifact {key} is not found in the set of known server artifacts"
        )
        self.key = key


class UnresolvedVersionError(ProvisioningError):
    """Raised when a required version expression has no matching property."""

    def __init__(self, key: str):
        super().__init__(f"Failed to resolve the version of {key}")
        self.key = key


class ArtifactNotFoundError(ProvisioningError):
    """Raised when the artifact repository cannot resolve a coordinate."""

    def __init__(self, coordinate: Any, reason: Optional[str] = None):
        message = f"Failed to resolve artifact {coordinate}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.coordinate = coordinate


class TemplateProcessingError(ProvisioningError):
    """Raised when a module template cannot be processed."""

    def __init__(self, feature_pack: str, package: str, template: Any):
        super().__init__(
            f"Failed to process module template {template} for feature-pack "
            f"{feature_pack} package {package}"
        )
        self.feature_pack = feature_pack
        self.package = package


class TransformError(ProvisioningError):
    """Raised when the namespace transformer fails."""


class TaskError(ProvisioningError):
    """Raised when a package task cannot be executed."""


class HookError(ProvisioningError):
    """Raised when a post-install hook command fails."""
