"""Tests for version properties and overridden artifacts."""
import pytest

from artifacts.coordinate import Coordinate
from common.errors import UnknownOverrideKeyError
from versioning.properties import VersionProperties, parse_overrides


def _props():
    props = VersionProperties()
    props.add_feature_pack("core", {"g:a": "g:a:1.0", "g:b": "g:b:1.0"})
    props.add_feature_pack("full", {"g:b": "g:b:2.0", "g:c::linux": "g:c:1.0:linux"})
    return props


class TestVersionProperties:
    """Merged and per feature pack views."""

    def test_later_feature_pack_wins_in_merged_view(self):
        props = _props()
        assert props.merged["g:b"] == "g:b:2.0"
        assert props.for_feature_pack("core")["g:b"] == "g:b:1.0"
        assert props.feature_packs == ["core", "full"]

    def test_unknown_feature_pack_is_empty(self):
        assert dict(_props().for_feature_pack("nope")) == {}

    def test_views_are_read_only(self):
        with pytest.raises(TypeError):
            _props().merged["g:a"] = "x"  # type: ignore[index]


class TestOverrides:
    """Override parsing, validation and application."""

    def test_parse(self):
        parsed = parse_overrides("g:a:1.1| g:c:2.0:linux |")
        assert parsed == {"g:a": "g:a:1.1", "g:c::linux": "g:c:2.0:linux"}

    def test_parse_requires_version(self):
        with pytest.raises(ValueError):
            parse_overrides("g:a")

    def test_apply_replaces_everywhere(self):
        props = _props()
        props.apply_overrides({"g:b": "g:b:3.0"})
        assert props.merged["g:b"] == "g:b:3.0"
        assert props.for_feature_pack("core")["g:b"] == "g:b:3.0"
        assert props.for_feature_pack("full")["g:b"] == "g:b:3.0"
        assert "g:b" not in props.for_feature_pack("other")

    def test_unknown_key_is_rejected_before_any_change(self):
        props = _props()
        with pytest.raises(UnknownOverrideKeyError) as exc:
            props.apply_overrides({"g:a": "g:a:9.0", "x:y": "x:y:1.0"})
        assert exc.value.key == "x:y"
        assert props.merged["g:a"] == "g:a:1.0"
        assert "x:y" in str(exc.value)

    def test_is_overridden_compares_version(self):
        props = _props()
        props.apply_overrides({"g:a": "g:a:1.5"})
        assert props.is_overridden(Coordinate("g", "a", "1.5"))
        assert not props.is_overridden(Coordinate("g", "a", "1.0"))
        assert not props.is_overridden(Coordinate("g", "b", "2.0"))
