"""POM download: local projects first, then the first repository that has it."""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from constants import Constants, FetchKind
from common.cache import CacheState, ResolutionCache
from common.errors import ArtifactNotFoundError, ResolutionFailure, UnresolvedSnapshotError
from common.retry import RetryPolicy
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from .events import DownloadEvent, EventSink, log_event
from .models import (
    Coordinate,
    FetchOutcome,
    FetchResult,
    LocalProjectIndex,
    Manifest,
    RepositoryDescriptor,
)
from .normalize import RepositoryNormalizer
from .paths import pom_url, remote_source_path
from .pom import parse_pom
from .snapshot import SnapshotVersionResolver

logger = logging.getLogger(__name__)

ManifestParser = Callable[[Coordinate, bytes, Path, Optional[str]], Manifest]
ErrorHandler = Callable[[BaseException], None]

_OUTCOMES = {
    CacheState.CACHED: FetchOutcome.CACHED,
    CacheState.UPDATED: FetchOutcome.DOWNLOADED,
    CacheState.UNAVAILABLE: FetchOutcome.UNAVAILABLE,
}


def log_error(error: BaseException) -> None:
    """Default error channel: warn and keep going."""
    logger.warning("%s", error)


@dataclass(frozen=True)
class ResolveRequest:
    """Arguments of one ``ArtifactResolver.resolve`` call."""

    coordinate: Coordinate
    relative_path: Optional[str] = None
    containing: Optional[Manifest] = None
    repositories: Sequence[RepositoryDescriptor] = ()


class ArtifactResolver:
    """Find the POM for a fully qualified coordinate.

    Failures are never raised from ``resolve``: they go to ``on_error`` and
    the call returns None, so callers walking a whole dependency graph keep
    going past a single bad coordinate.
    """

    def __init__(
        self,
        normalizer: RepositoryNormalizer,
        snapshots: SnapshotVersionResolver,
        transport,
        retry: RetryPolicy,
        cache: ResolutionCache,
        project_poms: Optional[LocalProjectIndex] = None,
        parser: ManifestParser = parse_pom,
        event_sink: EventSink = log_event,
        on_error: ErrorHandler = log_error,
    ):
        self._normalizer = normalizer
        self._snapshots = snapshots
        self._transport = transport
        self._retry = retry
        self._cache = cache
        self._project_poms: LocalProjectIndex = project_poms or {}
        self._parser = parser
        self._event_sink = event_sink
        self._on_error = on_error

    def resolve(
        self,
        group: str,
        artifact: str,
        version: str,
        relative_path: Optional[str] = None,
        containing: Optional[Manifest] = None,
        repositories: Iterable[RepositoryDescriptor] = (),
    ) -> Optional[Manifest]:
        coordinate = Coordinate(group, artifact, version)
        try:
            local = self._find_local(coordinate, relative_path, containing)
            if local is not None:
                return local
            return self._download(coordinate, list(repositories))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.debug("Resolution of %s failed", coordinate, exc_info=True)
            failure = ResolutionFailure(coordinate, exc)
            failure.__cause__ = exc
            self._on_error(failure)
            return None

    def resolve_all(
        self, requests: Sequence[ResolveRequest], max_workers: int = 1
    ) -> List[Optional[Manifest]]:
        """Resolve many coordinates; results keep the order of ``requests``."""

        def _one(req: ResolveRequest) -> Optional[Manifest]:
            c = req.coordinate
            return self.resolve(
                c.group, c.artifact, c.version, req.relative_path, req.containing, req.repositories
            )

        if max_workers <= 1 or len(requests) <= 1:
            return [_one(req) for req in requests]
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(_one, requests))

    def _find_local(
        self,
        coordinate: Coordinate,
        relative_path: Optional[str],
        containing: Optional[Manifest],
    ) -> Optional[Manifest]:
        # A project's own POMs always win over anything a repository serves
        for project_pom in self._project_poms.values():
            if project_pom.coordinate.same_artifact(coordinate):
                return project_pom

        if containing is None or not relative_path or not relative_path.strip():
            return None

        hint = relative_path.strip()
        if not hint.endswith(".xml"):
            hint = os.path.join(hint, Constants.POM_XML_FILE)
        folder = containing.source_path.parent
        candidate = Path(os.path.normpath(os.path.join(folder, hint)))
        maybe_local = self._project_poms.get(candidate)
        # Remote POMs still carry relative parent paths such as "../..", which can
        # land on an unrelated local POM; only an exact coordinate match counts
        if maybe_local is not None and maybe_local.coordinate == coordinate:
            return maybe_local
        return None

    def _download(
        self, coordinate: Coordinate, repositories: List[RepositoryDescriptor]
    ) -> Optional[Manifest]:
        group, artifact, version = coordinate.group, coordinate.artifact, coordinate.version
        resolved_version = self._snapshots.resolve_version(group, artifact, version, repositories)
        if resolved_version is None:
            self._on_error(UnresolvedSnapshotError(coordinate, [r.uri for r in repositories]))
            return None

        attempted: List[str] = []
        for repo in self._normalizer.effective_repositories(repositories, version):
            attempted.append(repo.uri)
            result = self.fetch_pom(repo, coordinate, resolved_version)
            if result.found:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Resolved POM",
                        extra=extra_context(
                            event="function_exit",
                            component="downloader",
                            action="resolve",
                            outcome=result.outcome.value,
                            target=safe_url(repo.uri),
                        ),
                    )
                return result.data

        self._on_error(ArtifactNotFoundError(coordinate, attempted))
        return None

    def fetch_pom(
        self,
        repo: RepositoryDescriptor,
        coordinate: Coordinate,
        resolved_version: str,
    ) -> FetchResult[Manifest]:
        """Ask one repository for a POM; never raises."""
        url = pom_url(repo, coordinate.group, coordinate.artifact, coordinate.version, resolved_version)
        with Timer() as timer:
            try:
                cached = self._cache.compute_if_absent_or_stale(
                    ("pom", repo.key, coordinate.group, coordinate.artifact, resolved_version),
                    lambda: self._download_pom(url, repo, coordinate, resolved_version),
                )
                result = FetchResult(repo, _OUTCOMES[cached.state], cached.data)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.debug("POM fetch from %s failed: %s", safe_url(url), exc)
                result = FetchResult(repo, FetchOutcome.ERROR, error=exc)

        self._event_sink(
            DownloadEvent(
                group=coordinate.group,
                artifact=coordinate.artifact,
                version=coordinate.version,
                repository_uri=repo.uri,
                kind=FetchKind.POM,
                outcome=result.outcome,
                error_class=type(result.error).__name__ if result.error else None,
                duration_ms=timer.duration_ms(),
            )
        )
        return result

    def _download_pom(
        self,
        url: str,
        repo: RepositoryDescriptor,
        coordinate: Coordinate,
        resolved_version: str,
    ) -> Optional[Manifest]:
        response = self._retry.call(self._transport.get, url, credentials=repo.credentials)
        if not response.ok:
            return None
        snapshot_version = None if resolved_version == coordinate.version else resolved_version
        manifest = self._parser(
            coordinate,
            response.content,
            remote_source_path(coordinate.group, coordinate.artifact, coordinate.version),
            snapshot_version,
        )
        return manifest.with_repository(repo)
