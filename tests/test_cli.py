"""Tests for argument parsing, configuration merging and CLI exit codes."""
from pathlib import Path
from unittest.mock import patch

import pytest
import requests

from args import parse_args
from cli_config import build_run_config, load_config_file
from common.errors import ConfigurationConflictError, TemplateProcessingError
from config_validate import SchemaError, validate_config
from constants import Constants, ExitCodes
from fpinstall import run
from installer.transformer import CommandTransformer
from provisioning.installation import InstallationReport

CONFIG_YAML = """
feature_packs:
  - /fp/base
staged_dir: /srv/server
installation:
  thin: true
  output_repo: /repo/out
  overridden_artifacts:
    - g:a:1.1
    - g:b:2.1
maven:
  local_repository: /repo/local
  remote_repositories:
    - https://repo.example.org/maven2
  offline: true
transformer:
  command: [transform, "{source}", "{target}"]
  configs_dir: /etc/transform
hooks:
  config_generator: [generate, "{staged_dir}"]
"""


def _write(tmp_path, text, name="fpinstall.yml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestParseArgs:
    """Command line options."""

    def test_defaults(self):
        args = parse_args(["-f", "a", "-f", "b", "-d", "out"])
        assert args.FEATURE_PACKS == ["a", "b"]
        assert args.STAGED_DIR == "out"
        assert args.THIN is None
        assert args.TRANSFORM_ARTIFACTS is None
        assert args.LOG_LEVEL == "INFO"

    def test_flags(self):
        args = parse_args(["--thin", "--no-transform", "--offline", "--loglevel", "debug",
                           "--remote-repo", "https://a", "--remote-repo", "https://b"])
        assert args.THIN is True
        assert args.TRANSFORM_ARTIFACTS is False
        assert args.OFFLINE is True
        assert args.LOG_LEVEL == "DEBUG"
        assert args.REMOTE_REPOS == ["https://a", "https://b"]


class TestConfigFile:
    """YAML loading and schema validation."""

    def test_load(self, tmp_path):
        data = load_config_file(_write(tmp_path, CONFIG_YAML))
        assert data["installation"]["thin"] is True

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(SchemaError):
            load_config_file(_write(tmp_path, "feature_packs: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(SchemaError):
            load_config_file(_write(tmp_path, "- a\n- b\n"))

    def test_unknown_key(self):
        with pytest.raises(SchemaError) as exc:
            validate_config({"installation": {"thinn": True}})
        assert "installation" in str(exc.value)

    def test_wrong_type(self):
        with pytest.raises(SchemaError):
            validate_config({"maven": {"offline": "yes"}})


class TestBuildRunConfig:
    """CLI values win over the configuration file."""

    def test_file_values(self, tmp_path):
        config = build_run_config(parse_args([]), load_config_file(_write(tmp_path, CONFIG_YAML)))
        assert config.feature_packs == [Path("/fp/base")]
        assert config.staged_dir == Path("/srv/server")
        assert config.options.thin
        assert config.options.output_repo == Path("/repo/out")
        assert config.options.overridden_artifacts == "g:a:1.1|g:b:2.1"
        assert config.maven.local_repository == Path("/repo/local")
        assert config.maven.offline
        assert isinstance(config.transformer, CommandTransformer)
        assert config.hooks.config_generator is not None
        assert config.hooks.indexer is None

    def test_cli_wins(self, tmp_path):
        args = parse_args(["-f", "/fp/other", "-d", "/srv/cli", "--no-transform",
                           "--overridden-artifacts", "g:a:1.2", "--local-repo", "/repo/cli"])
        config = build_run_config(args, load_config_file(_write(tmp_path, CONFIG_YAML)))
        assert config.feature_packs == [Path("/fp/other")]
        assert config.staged_dir == Path("/srv/cli")
        assert config.options.transform_artifacts is False
        assert config.options.overridden_artifacts == "g:a:1.2"
        assert config.maven.local_repository == Path("/repo/cli")

    def test_defaults_without_file(self):
        config = build_run_config(parse_args(["-f", "fp", "-d", "out"]))
        assert not config.options.thin
        assert config.options.transform_artifacts
        assert config.maven.remote_repositories == list(Constants.DEFAULT_REMOTE_REPOSITORIES)
        assert config.transformer is None

    def test_feature_pack_required(self):
        with pytest.raises(SchemaError):
            build_run_config(parse_args(["-d", "out"]))

    def test_staged_dir_required(self):
        with pytest.raises(SchemaError):
            build_run_config(parse_args(["-f", "fp"]))


class TestRunExitCodes:
    """Errors map to exit codes."""

    ARGV = ["-f", "fp", "-d", "out", "--offline"]

    @patch("fpinstall.Installation")
    def test_success(self, mock_installation):
        mock_installation.return_value.run.return_value = InstallationReport(1, 2, 3, 4, 5, 6)
        assert run(parse_args(self.ARGV)) == ExitCodes.SUCCESS.value

    def test_missing_feature_pack_option(self):
        assert run(parse_args(["-d", "out"])) == ExitCodes.CONFIGURATION_ERROR.value

    def test_invalid_config_file(self, tmp_path):
        path = _write(tmp_path, "unknown: 1\n")
        assert run(parse_args(self.ARGV + ["-c", path])) == ExitCodes.CONFIGURATION_ERROR.value

    def test_missing_config_file(self, tmp_path):
        args = parse_args(self.ARGV + ["-c", str(tmp_path / "nope.yml")])
        assert run(args) == ExitCodes.FILE_ERROR.value

    @patch("fpinstall.Installation")
    def test_conflict(self, mock_installation):
        mock_installation.return_value.run.side_effect = ConfigurationConflictError("conflict")
        assert run(parse_args(self.ARGV)) == ExitCodes.CONFIGURATION_ERROR.value

    @patch("fpinstall.Installation")
    def test_provisioning_failure(self, mock_installation):
        mock_installation.return_value.run.side_effect = TemplateProcessingError("fp", "pkg", "module.xml")
        assert run(parse_args(self.ARGV)) == ExitCodes.PROVISIONING_ERROR.value

    @patch("fpinstall.Installation")
    def test_connection_failure(self, mock_installation):
        mock_installation.return_value.run.side_effect = requests.exceptions.ConnectionError("down")
        assert run(parse_args(self.ARGV)) == ExitCodes.CONNECTION_ERROR.value
