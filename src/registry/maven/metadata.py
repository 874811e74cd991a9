"""maven-metadata.xml retrieval, parsing and merging across repositories."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Callable, Iterable, List, Optional

from packaging import version as pep440

from constants import FetchKind
from common.cache import CacheState, ResolutionCache
from common.errors import ParseError
from common.retry import RetryPolicy
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from .events import DownloadEvent, EventSink, log_event
from .models import (
    FetchOutcome,
    FetchResult,
    RepositoryDescriptor,
    SnapshotInfo,
    VersionMetadata,
    is_snapshot,
)
from .normalize import RepositoryNormalizer
from .paths import metadata_url

logger = logging.getLogger(__name__)

MetadataParser = Callable[[bytes], VersionMetadata]

_OUTCOMES = {
    CacheState.CACHED: FetchOutcome.CACHED,
    CacheState.UPDATED: FetchOutcome.DOWNLOADED,
    CacheState.UNAVAILABLE: FetchOutcome.UNAVAILABLE,
}


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None or elem.text is None:
        return None
    value = elem.text.strip()
    return value or None


def parse_metadata(data: bytes) -> VersionMetadata:
    """Parse maven-metadata.xml content.

    Raises:
        ParseError: malformed XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ParseError(f"malformed maven-metadata.xml: {exc}") from exc

    versioning = root.find("versioning")
    if versioning is None:
        return VersionMetadata.EMPTY

    versions: List[str] = []
    versions_elem = versioning.find("versions")
    if versions_elem is not None:
        for item in versions_elem.findall("version"):
            value = _text(item)
            if value:
                versions.append(value)

    snapshot = None
    snapshot_elem = versioning.find("snapshot")
    if snapshot_elem is not None:
        timestamp = _text(snapshot_elem.find("timestamp"))
        build_number = _text(snapshot_elem.find("buildNumber"))
        # localCopy-only snapshots carry no timestamp and cannot be addressed remotely
        if timestamp and build_number:
            snapshot = SnapshotInfo(timestamp=timestamp, build_number=build_number)

    return VersionMetadata(versions=tuple(versions), latest_snapshot=snapshot)


def latest_release(metadata: VersionMetadata) -> Optional[str]:
    """Pick the highest stable (non-SNAPSHOT) version listed in ``metadata``."""
    stable = [v for v in metadata.versions if not is_snapshot(v)]
    if not stable:
        return None

    best = None
    best_parsed = None
    for candidate in stable:
        try:
            parsed = pep440.Version(candidate)
        except pep440.InvalidVersion:
            continue  # Skip versions packaging cannot order
        if best_parsed is None or parsed > best_parsed:
            best, best_parsed = candidate, parsed

    # Repositories list versions oldest first
    return best if best is not None else stable[-1]


class MetadataResolver:
    """Fetch maven-metadata.xml from every repository and merge the results."""

    def __init__(
        self,
        normalizer: RepositoryNormalizer,
        transport,
        retry: RetryPolicy,
        cache: ResolutionCache,
        parser: MetadataParser = parse_metadata,
        event_sink: EventSink = log_event,
    ):
        self._normalizer = normalizer
        self._transport = transport
        self._retry = retry
        self._cache = cache
        self._parser = parser
        self._event_sink = event_sink

    def resolve_metadata(
        self,
        group: str,
        artifact: str,
        repositories: Iterable[RepositoryDescriptor] = (),
    ) -> VersionMetadata:
        """Merged metadata for group:artifact; EMPTY when nothing was found."""
        merged = VersionMetadata.EMPTY
        for repo in self._normalizer.effective_repositories(repositories):
            result = self.fetch_metadata(repo, group, artifact)
            if result.found:
                merged = merged.merge(result.data)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved metadata",
                extra=extra_context(
                    event="function_exit",
                    component="metadata",
                    action="resolve_metadata",
                    outcome="empty" if merged.is_empty else "found",
                    count=len(merged.versions),
                ),
            )
        return merged

    def fetch_metadata(
        self,
        repo: RepositoryDescriptor,
        group: str,
        artifact: str,
        version: Optional[str] = None,
    ) -> FetchResult[VersionMetadata]:
        """Ask one repository for metadata; never raises."""
        url = metadata_url(repo, group, artifact, version)
        with Timer() as timer:
            try:
                cached = self._cache.compute_if_absent_or_stale(
                    ("metadata", repo.key, group, artifact, version),
                    lambda: self._download(url, repo),
                )
                result = FetchResult(repo, _OUTCOMES[cached.state], cached.data)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.debug("Metadata fetch from %s failed: %s", safe_url(url), exc)
                result = FetchResult(repo, FetchOutcome.ERROR, error=exc)

        self._event_sink(
            DownloadEvent(
                group=group,
                artifact=artifact,
                version=version,
                repository_uri=repo.uri,
                kind=FetchKind.METADATA,
                outcome=result.outcome,
                error_class=type(result.error).__name__ if result.error else None,
                duration_ms=timer.duration_ms(),
            )
        )
        return result

    def _download(self, url: str, repo: RepositoryDescriptor) -> Optional[VersionMetadata]:
        response = self._retry.call(self._transport.get, url, credentials=repo.credentials)
        if not response.ok:
            return None
        return self._parser(response.content)
