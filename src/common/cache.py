"""TTL cache fronting every repository request."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from constants import Constants

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheState(Enum):
    """How a cache lookup was satisfied."""

    CACHED = "cached"
    UPDATED = "updated"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """Outcome of ``compute_if_absent_or_stale``."""

    state: CacheState
    data: Optional[T] = None


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL. ``expires_at`` of None never expires."""

    value: Optional[T]
    expires_at: Optional[float]
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return self.expires_at is not None and time.time() > self.expires_at


class ResolutionCache:
    """Thread-safe TTL cache for repositories, metadata and POMs.

    Negative results (``compute`` returned None) are stored too, so a
    repository that failed normalization is not probed again while the entry
    lives. Concurrent lookups of the same missing key are collapsed: one
    caller computes, the others wait and then read the stored value.
    """

    def __init__(
        self,
        default_ttl: int = Constants.HTTP_CACHE_TTL_SEC,
        max_entries: int = Constants.CACHE_MAX_ENTRIES,
    ):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds; 0 or less never expires.
            max_entries: Oldest entries are evicted beyond this size.
        """
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._cache: Dict[Hashable, CacheEntry[Any]] = {}
        self._lock = threading.Lock()
        self._inflight: Dict[Hashable, threading.Lock] = {}
        self._hits = 0
        self._misses = 0

    def _expiry(self, ttl: Optional[float]) -> Optional[float]:
        effective = self._default_ttl if ttl is None else ttl
        if effective is None or effective <= 0:
            return None
        return time.time() + effective

    def _lookup(self, key: Hashable) -> Optional[CacheEntry[Any]]:
        """Return a live entry. Caller holds ``self._lock``."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[key]
            return None
        return entry

    def _release(self, key: Hashable, key_lock: threading.Lock) -> None:
        """Drop the in-flight marker for ``key``. Caller holds ``self._lock``."""
        if self._inflight.get(key) is key_lock:
            del self._inflight[key]

    @staticmethod
    def _hit(entry: CacheEntry[T]) -> CacheResult[T]:
        if entry.value is None:
            return CacheResult(CacheState.UNAVAILABLE, None)
        return CacheResult(CacheState.CACHED, entry.value)

    def compute_if_absent_or_stale(
        self,
        key: Hashable,
        compute: Callable[[], Optional[T]],
        ttl: Optional[float] = None,
    ) -> CacheResult[T]:
        """Return the stored value for ``key`` or compute and store a new one.

        Exceptions raised by ``compute`` propagate and nothing is stored.
        """
        with self._lock:
            entry = self._lookup(key)
            if entry is not None:
                self._hits += 1
                return self._hit(entry)
            key_lock = self._inflight.setdefault(key, threading.Lock())

        with key_lock:
            # Another caller may have computed while we waited
            with self._lock:
                entry = self._lookup(key)
                if entry is not None:
                    self._hits += 1
                    return self._hit(entry)
                self._misses += 1

            try:
                value = compute()
            except BaseException:
                with self._lock:
                    self._release(key, key_lock)
                raise

            with self._lock:
                self._cache[key] = CacheEntry(value=value, expires_at=self._expiry(ttl))
                self._release(key, key_lock)
                if len(self._cache) > self._max_entries:
                    self._evict_oldest(max(1, self._max_entries // 10))

        if value is None:
            return CacheResult(CacheState.UNAVAILABLE, None)
        return CacheResult(CacheState.UPDATED, value)

    def get(self, key: Hashable) -> Optional[CacheResult[Any]]:
        """Return the stored result for ``key`` without computing, or None."""
        with self._lock:
            entry = self._lookup(key)
            return None if entry is None else self._hit(entry)

    def invalidate(self, key: Hashable) -> None:
        """Invalidate a cached entry."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            expired_count = sum(1 for e in self._cache.values() if e.is_expired())
            negative_count = sum(1 for e in self._cache.values() if e.value is None)
            return {
                "total_entries": len(self._cache),
                "expired_entries": expired_count,
                "negative_entries": negative_count,
                "hits": self._hits,
                "misses": self._misses,
                "max_entries": self._max_entries,
                "default_ttl": self._default_ttl,
            }

    def _evict_oldest(self, count: int) -> None:
        """Evict expired entries, then the oldest expiring ones. Caller holds ``self._lock``.

        Entries without expiry (normalized repositories) are never evicted.
        """
        expired = [k for k, e in self._cache.items() if e.is_expired()]
        for key in expired:
            del self._cache[key]
        remaining = max(0, count - len(expired))
        expiring = sorted(
            (k for k, e in self._cache.items() if e.expires_at is not None),
            key=lambda k: self._cache[k].created_at,
        )
        for key in expiring[:remaining]:
            del self._cache[key]
        logger.debug("Evicted %d cache entries", len(expired) + min(remaining, len(expiring)))
