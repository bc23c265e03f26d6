"""Constants used in the project."""

import os
from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    CONFIGURATION_ERROR = 3
    PROVISIONING_ERROR = 4


class Phase(Enum):
    """Package task execution phases.

    Args:
        Enum (string): Phase names as written in tasks.xml.
    """

    PROCESSING = "PROCESSING"
    FINALIZING = "FINALIZING"


class Layout:  # pylint: disable=too-few-public-methods
    """Names of the feature-pack and staged directory layout entries."""

    RESOURCES = "resources"
    PACKAGES = "packages"
    CONTENT = "content"
    WILDFLY = "wildfly"
    PM = "pm"
    MODULE = "module"
    MODULE_XML = "module.xml"
    TASKS_XML = "tasks.xml"
    SCRIPTS = "scripts"
    FINALIZE_CLI = "finalize.cli"
    ARTIFACT_VERSIONS_PROPS = "artifact-versions.properties"
    WILDFLY_TASKS_PROPS = "wildfly-tasks.properties"
    TRANSFORM_EXCLUDES = "jakarta-transform-excludes.txt"
    DOCS_SCHEMA = "docs.schema"
    SCHEMA_GROUPS_TXT = "schema-groups.txt"
    DOCS = "docs"
    SCHEMA = "schema"
    MODULES = "modules"
    SYSTEM = "system"
    LAYERS = "layers"
    LAYERS_CONF = "layers.conf"
    TMP = "tmp"
    STARTUP_MARKER = "startup-marker"
    SERVER_MODES = ("standalone", "domain")


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "FPINSTALL_LOG_LEVEL"

    JAR_EXTENSION = "jar"

    # Task properties controlling the namespace transformation
    TRANSFORM_ARTIFACTS_KEY = "jakarta.transform.artifacts"
    TRANSFORM_SUFFIX_KEY = "jakarta.transform.artifacts.suffix"
    TRANSFORM_CONFIGS_DIR_KEY = "jakarta.transform.configs.dir"

    # Installation cache
    INSTALLATION_DIR = ".installation"
    CACHE_FILE = "cache.properties"

    # Maven repositories
    DEFAULT_LOCAL_REPOSITORY = os.path.join(os.path.expanduser("~"), ".m2", "repository")
    DEFAULT_REMOTE_REPOSITORIES = [
        "https://repo1.maven.org/maven2",
        "https://repository.jboss.org/nexus/content/groups/public",
    ]
    MAVEN_METADATA_FILE = "maven-metadata.xml"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    HOOK_TIMEOUT_SEC = 600
