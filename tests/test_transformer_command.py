"""Tests for the command line namespace transformer."""
import sys

import pytest

from common.errors import TransformError
from installer.transformer import CommandTransformer

COPY = "import shutil, sys; shutil.copyfile(sys.argv[1], sys.argv[2])"


class TestCommandTransformer:
    """Exit status and output file decide the result."""

    def test_applied(self, tmp_path):
        source = tmp_path / "a-1.0.jar"
        source.write_bytes(b"javax")
        target = tmp_path / "out" / "a-1.0-ee9.jar"
        result = CommandTransformer([sys.executable, "-c", COPY, "{source}", "{target}"]).transform(source, target)
        assert result.applied
        assert result.path == target
        assert target.read_bytes() == b"javax"

    def test_not_applicable(self, tmp_path):
        source = tmp_path / "a.jar"
        source.write_bytes(b"x")
        result = CommandTransformer([sys.executable, "-c", "pass"]).transform(source, tmp_path / "t.jar")
        assert not result.applied
        assert result.path == source

    def test_failure(self, tmp_path):
        source = tmp_path / "a.jar"
        source.write_bytes(b"x")
        transformer = CommandTransformer([sys.executable, "-c", "import sys; sys.exit(3)"])
        with pytest.raises(TransformError):
            transformer.transform(source, tmp_path / "t.jar")

    def test_unknown_placeholder(self, tmp_path):
        source = tmp_path / "a.jar"
        source.write_bytes(b"x")
        transformer = CommandTransformer(["sh", "-c", "cp {source} {target} && echo ${HOME}"])
        with pytest.raises(TransformError):
            transformer.transform(source, tmp_path / "t.jar")

    def test_empty_command(self):
        with pytest.raises(ValueError):
            CommandTransformer([])
