"""fpinstall - assemble a server installation from unpacked feature packs.

    Returns:
        int: Exit code
"""
import logging
import os
import sys

import requests

from args import parse_args
from cli_config import build_run_config, load_config_file
from common.errors import (
    ConfigurationConflictError,
    PinnedRepositoryMissingError,
    ProvisioningError,
    UnknownOverrideKeyError,
)
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled, quiet_console
from config_validate import SchemaError
from constants import Constants, ExitCodes
from provisioning.feature_pack import FeaturePack
from provisioning.installation import Installation
from registry.maven.repository import MavenRepository

_CONFIGURATION_ERRORS = (
    SchemaError,
    ConfigurationConflictError,
    PinnedRepositoryMissingError,
    UnknownOverrideKeyError,
    ValueError,
)


def run(args) -> int:
    """Run one installation for parsed CLI arguments and return the exit code."""
    logger = logging.getLogger(__name__)
    try:
        file_config = load_config_file(args.CONFIG) if getattr(args, "CONFIG", None) else None
        config = build_run_config(args, file_config)
        repository = MavenRepository(
            config.maven.local_repository,
            config.maven.remote_repositories,
            offline=config.maven.offline,
        )
        installation = Installation(
            [FeaturePack(p) for p in config.feature_packs],
            config.staged_dir,
            config.options,
            repository,
            transformer=config.transformer,
            hooks=config.hooks,
        )
        report = installation.run()
    except _CONFIGURATION_ERRORS as e:
        logging.error("Configuration error: %s", e)
        return ExitCodes.CONFIGURATION_ERROR.value
    except ProvisioningError as e:
        logging.error("Installation failed: %s", e)
        if e.__cause__ is not None:
            logging.error("Caused by: %s", e.__cause__)
        return ExitCodes.PROVISIONING_ERROR.value
    except requests.exceptions.RequestException as e:
        logging.error("Connection error: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except OSError as e:
        logging.error("File error: %s, aborting", e)
        return ExitCodes.FILE_ERROR.value

    if is_debug_enabled(logger):
        logger.debug(
            "Installation report",
            extra=extra_context(event="function_exit", component="cli", action="run",
                                preloaded=report.preloaded_artifacts, cached=report.cached_artifacts),
        )
    logging.info("Installation assembled in %s (%d packages, %d module templates).",
                 config.staged_dir, report.packages, report.module_templates)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()
    if getattr(args, "LOG_FILE", None):
        add_file_handler(args.LOG_FILE)
    if getattr(args, "QUIET", False):
        quiet_console()

    logger = logging.getLogger(__name__)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )
    logging.info("Arguments parsed.")
    sys.exit(run(args))


if __name__ == "__main__":
    main()
