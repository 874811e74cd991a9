"""Maven client: wires transport, retry, cache and resolvers from one config."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from common.cache import ResolutionCache
from common.http_client import HttpTransport
from common.retry import RetryPolicy
from .downloader import ArtifactResolver, ErrorHandler, ManifestParser, log_error
from .events import EventSink, log_event
from .metadata import MetadataParser, MetadataResolver, parse_metadata
from .models import LocalProjectIndex, Manifest, RepositoryDescriptor, VersionMetadata
from .normalize import RepositoryNormalizer
from .pom import parse_pom
from .snapshot import SnapshotVersionResolver

logger = logging.getLogger(__name__)


class MavenClient:
    """Owns the process-wide transport and cache for a resolution session.

    Use as a context manager, or call ``close()``, to release pooled
    connections.
    """

    def __init__(
        self,
        config,
        project_poms: Optional[LocalProjectIndex] = None,
        transport=None,
        cache: Optional[ResolutionCache] = None,
        retry: Optional[RetryPolicy] = None,
        pom_parser: ManifestParser = parse_pom,
        metadata_parser: MetadataParser = parse_metadata,
        event_sink: EventSink = log_event,
        on_error: ErrorHandler = log_error,
    ):
        self.config = config
        self.transport = transport if transport is not None else HttpTransport(timeout=config.timeout)
        self.cache = cache if cache is not None else ResolutionCache(default_ttl=config.cache_ttl)
        self.retry = retry if retry is not None else RetryPolicy(config.retry_max, config.retry_base_delay)

        self.normalizer = RepositoryNormalizer(self.transport, self.retry, self.cache)
        self.metadata = MetadataResolver(
            self.normalizer, self.transport, self.retry, self.cache,
            parser=metadata_parser, event_sink=event_sink,
        )
        self.snapshots = SnapshotVersionResolver(self.normalizer, self.metadata)
        self.artifacts = ArtifactResolver(
            self.normalizer, self.snapshots, self.transport, self.retry, self.cache,
            project_poms=project_poms, parser=pom_parser,
            event_sink=event_sink, on_error=on_error,
        )

    def _repositories(
        self, repositories: Optional[Iterable[RepositoryDescriptor]]
    ) -> Iterable[RepositoryDescriptor]:
        return self.config.repositories if repositories is None else repositories

    def download_metadata(
        self, group: str, artifact: str,
        repositories: Optional[Iterable[RepositoryDescriptor]] = None,
    ) -> VersionMetadata:
        return self.metadata.resolve_metadata(group, artifact, self._repositories(repositories))

    def download(
        self, group: str, artifact: str, version: str,
        relative_path: Optional[str] = None,
        containing: Optional[Manifest] = None,
        repositories: Optional[Iterable[RepositoryDescriptor]] = None,
    ) -> Optional[Manifest]:
        return self.artifacts.resolve(
            group, artifact, version, relative_path, containing, self._repositories(repositories)
        )

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "MavenClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
