"""Argument parsing functionality for fpinstall."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="fpinstall",
        description=(
            "fpinstall - Assemble a server installation from unpacked feature packs"
        ),
        add_help=True,
    )

    parser.add_argument("-f", "--feature-pack",
                        dest="FEATURE_PACKS",
                        help="Unpacked feature pack directory, in layering order (repeatable)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-d", "--dir",
                        dest="STAGED_DIR",
                        help="Directory the installation is assembled in",
                        action="store", type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or YML)",
                        action="store",
                        type=str)

    # Installation options
    parser.add_argument("--thin",
                        dest="THIN",
                        help="Reference module artifacts by coordinates instead of copying them.",
                        action="store_true",
                        default=None)
    parser.add_argument("--output-repo",
                        dest="OUTPUT_REPO",
                        help="Maven repository receiving the artifacts of a thin server (cleared first)",
                        action="store", type=str)
    parser.add_argument("--provisioning-repo",
                        dest="PROVISIONING_REPO",
                        help="Local Maven repository holding pre-transformed artifacts",
                        action="store", type=str)
    parser.add_argument("--no-transform",
                        dest="TRANSFORM_ARTIFACTS",
                        help="Disable namespace transformation of artifacts.",
                        action="store_false",
                        default=None)
    parser.add_argument("--transform-verbose",
                        dest="TRANSFORM_VERBOSE",
                        help="Log the output of the namespace transformer.",
                        action="store_true",
                        default=None)
    parser.add_argument("--overridden-artifacts",
                        dest="OVERRIDDEN_ARTIFACTS",
                        help="'|' separated group:artifact:version[:classifier[:extension]] overrides",
                        action="store", type=str)

    # Maven
    parser.add_argument("--local-repo",
                        dest="LOCAL_REPO",
                        help="Local Maven repository (default: ~/.m2/repository)",
                        action="store", type=str)
    parser.add_argument("--remote-repo",
                        dest="REMOTE_REPOS",
                        help="Remote Maven repository URL (repeatable)",
                        action="append", type=str)
    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Never download artifacts.",
                        action="store_true",
                        default=None)

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
