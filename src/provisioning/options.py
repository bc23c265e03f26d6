"""Installation options."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class InstallOptions:
    """Options recognised by the installation pipeline.

    ``thin`` references artifacts by coordinate instead of embedding them.
    ``output_repo`` receives the artifacts a thin server needs (cleared at
    the start of a run). ``provisioning_repo`` is the pinned repository of
    pre-transformed artifacts. ``overridden_artifacts`` is a ``|`` separated
    list of replacement coordinates.
    """

    thin: bool = False
    output_repo: Optional[Path] = None
    provisioning_repo: Optional[Path] = None
    transform_artifacts: bool = True
    transform_verbose: bool = False
    overridden_artifacts: Optional[str] = None


@dataclass
class MavenOptions:
    """Artifact repository settings."""

    local_repository: Path
    remote_repositories: List[str] = field(default_factory=list)
    offline: bool = False
