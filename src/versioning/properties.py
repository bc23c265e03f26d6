"""Feature-pack version properties and artifact overrides."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping

from artifacts.coordinate import Coordinate
from common.errors import UnknownOverrideKeyError

logger = logging.getLogger(__name__)


def parse_overrides(value: str) -> Dict[str, str]:
    """Parse an overridden-artifacts option.

    The value is a ``|`` separated list of
    ``group:artifact:version[:classifier[:extension]]`` coordinates. Each
    entry is keyed by its version key.

    Raises:
        ValueError: If an entry lacks a version.
    """
    overrides: Dict[str, str] = {}
    for part in value.split("|"):
        entry = part.strip()
        if not entry:
            continue
        coordinate = Coordinate.parse(entry)
        if not coordinate.has_version:
            raise ValueError(f"Overridden artifact {entry} must declare a version")
        overrides[coordinate.version_key] = entry
    return overrides


class VersionProperties:
    """Per-feature-pack and merged artifact version properties.

    Feature packs are added in layering order; a later feature pack's value
    for a key replaces an earlier one in the merged view. Overrides are
    validated and applied once, after every feature pack is added, and the
    properties are read-only from then on.
    """

    def __init__(self) -> None:
        self._by_feature_pack: Dict[str, Dict[str, str]] = {}
        self._merged: Dict[str, str] = {}
        self._overrides: Dict[str, str] = {}

    def add_feature_pack(self, name: str, props: Mapping[str, str]) -> None:
        self._by_feature_pack[name] = dict(props)
        self._merged.update(props)

    @property
    def feature_packs(self) -> List[str]:
        return list(self._by_feature_pack)

    @property
    def merged(self) -> Mapping[str, str]:
        return MappingProxyType(self._merged)

    @property
    def overrides(self) -> Mapping[str, str]:
        return MappingProxyType(self._overrides)

    def for_feature_pack(self, name: str) -> Mapping[str, str]:
        """Version properties of one feature pack (empty if it has none)."""
        return MappingProxyType(self._by_feature_pack.get(name, {}))

    def apply_overrides(self, overrides: Mapping[str, str]) -> None:
        """Validate and merge overridden artifacts.

        Raises:
            UnknownOverrideKeyError: If a key is not a known server artifact.
                Nothing is modified in that case.
        """
        for key in overrides:
            if key not in self._merged:
                raise UnknownOverrideKeyError(key)
        for key, value in overrides.items():
            logger.info("Overriding artifact %s with %s", key, value)
            for props in self._by_feature_pack.values():
                if key in props:
                    props[key] = value
        self._merged.update(overrides)
        self._overrides.update(overrides)

    def is_overridden(self, coordinate: Coordinate) -> bool:
        """Return True when ``coordinate`` is the version of an override."""
        value = self._overrides.get(coordinate.version_key)
        if value is None:
            return False
        return Coordinate.parse(value).version == coordinate.version
