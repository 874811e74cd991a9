"""Repository normalization: pick the reachable, preferably secure, base URI."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from constants import Constants
from common.cache import ResolutionCache
from common.errors import DepfetchError, SecureTransportError
from common.retry import RetryPolicy
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from .models import DEFAULT_REPOSITORY, RepositoryDescriptor
from .paths import is_insecure, to_https

logger = logging.getLogger(__name__)


class RepositoryNormalizer:
    """Probe repositories once and remember the answer.

    An http repository is tried over https first. Plain http is only used when
    the https probe fails the TLS handshake. Repositories that cannot be
    reached are remembered as unavailable and skipped from then on.
    """

    def __init__(
        self,
        transport,
        retry: RetryPolicy,
        cache: ResolutionCache,
        default_repository: RepositoryDescriptor = DEFAULT_REPOSITORY,
    ):
        self._transport = transport
        self._retry = retry
        self._cache = cache
        self._default_repository = default_repository

    @property
    def default_repository(self) -> RepositoryDescriptor:
        return self._default_repository

    def normalize(self, repository: RepositoryDescriptor) -> Optional[RepositoryDescriptor]:
        """Return the descriptor to use for ``repository``, or None when unreachable."""
        result = self._cache.compute_if_absent_or_stale(
            ("repository", repository),
            lambda: self._probe(repository),
            ttl=Constants.REPOSITORY_CACHE_TTL_SEC,
        )
        if result.data is None and is_debug_enabled(logger):
            logger.debug(
                "Repository unavailable",
                extra=extra_context(
                    event="decision",
                    component="normalize",
                    action="normalize",
                    outcome=result.state.value,
                    target=safe_url(repository.uri),
                ),
            )
        return result.data

    def effective_repositories(
        self,
        repositories: Iterable[RepositoryDescriptor],
        version: Optional[str] = None,
    ) -> List[RepositoryDescriptor]:
        """Normalized caller repositories followed by the default repository.

        Unavailable repositories are dropped and duplicates (by normalized URI)
        keep their first position. With ``version``, repositories that do not
        accept it are filtered out.
        """
        effective: List[RepositoryDescriptor] = []
        seen = set()
        for repository in [*repositories, self._default_repository]:
            normalized = self.normalize(repository)
            if normalized is None or normalized.key in seen:
                continue
            seen.add(normalized.key)
            if version is not None and not normalized.accepts_version(version):
                continue
            effective.append(normalized)
        return effective

    def _probe(self, repository: RepositoryDescriptor) -> Optional[RepositoryDescriptor]:
        original = repository.uri
        secure = to_https(original)
        try:
            if self._reachable(secure, repository):
                return repository if secure == original else repository.with_uri(secure)
            return None
        except SecureTransportError:
            if not is_insecure(original):
                return None
            logger.info("Falling back to http for repository %s", safe_url(original))
        except DepfetchError:
            return None

        try:
            return repository if self._reachable(original, repository) else None
        except DepfetchError:
            return None

    def _reachable(self, uri: str, repository: RepositoryDescriptor) -> bool:
        response = self._retry.call(self._transport.get, uri, credentials=repository.credentials)
        return response.ok
