"""Maven repository access.

This package resolves POMs and maven-metadata.xml from remote repositories:
- models.py: coordinates, repositories, manifests, version metadata
- normalize.py: https-preferring repository normalization
- metadata.py: metadata fetch, parse and merge
- snapshot.py: -SNAPSHOT to timestamped build resolution
- downloader.py: POM resolution with local-project short-circuit
- client.py: wiring of all of the above from a ResolverConfig
"""

from .models import (  # noqa: F401
    DEFAULT_REPOSITORY,
    Coordinate,
    Credentials,
    FetchOutcome,
    FetchResult,
    Manifest,
    RepositoryDescriptor,
    SnapshotInfo,
    VersionMetadata,
)
from .events import DownloadEvent, EventRecorder, log_event  # noqa: F401
from .normalize import RepositoryNormalizer  # noqa: F401
from .metadata import MetadataResolver, latest_release, parse_metadata  # noqa: F401
from .snapshot import SnapshotVersionResolver, dated_snapshot_version  # noqa: F401
from .downloader import ArtifactResolver, ResolveRequest  # noqa: F401
from .pom import load_project_poms, parse_pom  # noqa: F401
from .client import MavenClient  # noqa: F401

__all__ = [
    "DEFAULT_REPOSITORY",
    "Coordinate",
    "Credentials",
    "FetchOutcome",
    "FetchResult",
    "Manifest",
    "RepositoryDescriptor",
    "SnapshotInfo",
    "VersionMetadata",
    "DownloadEvent",
    "EventRecorder",
    "log_event",
    "RepositoryNormalizer",
    "MetadataResolver",
    "latest_release",
    "parse_metadata",
    "SnapshotVersionResolver",
    "dated_snapshot_version",
    "ArtifactResolver",
    "ResolveRequest",
    "load_project_poms",
    "parse_pom",
    "MavenClient",
]
