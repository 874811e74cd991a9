"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3


class FetchKind(Enum):
    """Kinds of documents fetched from a repository."""

    METADATA = "metadata"
    POM = "pom"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    # https://maven.apache.org/ref/3.6.3/maven-model-builder/super-pom.html
    DEFAULT_REPOSITORY_ID = "central"
    DEFAULT_REPOSITORY_URL = "https://repo.maven.apache.org/maven2"

    SNAPSHOT_MARKER = "SNAPSHOT"
    SNAPSHOT_SUFFIX = "-SNAPSHOT"
    METADATA_FILE = "maven-metadata.xml"
    POM_XML_FILE = "pom.xml"
    POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "DEPFETCH_LOG_LEVEL"
    USER_AGENT = "depfetch/0.1"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    # 0 keeps normalized repositories for the life of the cache
    REPOSITORY_CACHE_TTL_SEC = 0
    CACHE_MAX_ENTRIES = 10000
    MAX_WORKERS = 4
