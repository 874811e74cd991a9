"""Tests for the resolution cache."""

import threading
import time

import pytest

from common.cache import CacheState, ResolutionCache


class TestComputeIfAbsentOrStale:
    """Tests for compute-on-miss behaviour."""

    def test_first_call_updates_then_cached(self):
        cache = ResolutionCache()
        calls = []

        def compute():
            calls.append(1)
            return "value"

        first = cache.compute_if_absent_or_stale("k", compute)
        second = cache.compute_if_absent_or_stale("k", compute)

        assert first.state == CacheState.UPDATED
        assert first.data == "value"
        assert second.state == CacheState.CACHED
        assert second.data == "value"
        assert len(calls) == 1

    def test_negative_result_is_remembered(self):
        cache = ResolutionCache()
        calls = []

        def compute():
            calls.append(1)
            return None

        first = cache.compute_if_absent_or_stale("k", compute)
        second = cache.compute_if_absent_or_stale("k", compute)

        assert first.state == CacheState.UNAVAILABLE
        assert second.state == CacheState.UNAVAILABLE
        assert second.data is None
        assert len(calls) == 1

    def test_exception_propagates_and_is_not_stored(self):
        cache = ResolutionCache()

        def boom():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            cache.compute_if_absent_or_stale("k", boom)

        result = cache.compute_if_absent_or_stale("k", lambda: 42)
        assert result.state == CacheState.UPDATED
        assert result.data == 42

    def test_stale_entry_is_recomputed(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("common.cache.time.time", lambda: now[0])
        cache = ResolutionCache(default_ttl=10)

        cache.compute_if_absent_or_stale("k", lambda: "old")
        now[0] += 11
        result = cache.compute_if_absent_or_stale("k", lambda: "new")

        assert result.state == CacheState.UPDATED
        assert result.data == "new"

    def test_non_positive_ttl_never_expires(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("common.cache.time.time", lambda: now[0])
        cache = ResolutionCache(default_ttl=10)

        cache.compute_if_absent_or_stale("k", lambda: "kept", ttl=0)
        now[0] += 10 ** 6
        result = cache.compute_if_absent_or_stale("k", lambda: "new")

        assert result.state == CacheState.CACHED
        assert result.data == "kept"

    def test_concurrent_callers_compute_once(self):
        cache = ResolutionCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "value"

        results = []

        def worker():
            results.append(cache.compute_if_absent_or_stale("k", slow))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        assert started.wait(timeout=5)
        time.sleep(0.05)
        release.set()
        for t in threads:
            t.join(timeout=5)

        assert len(calls) == 1
        assert len(results) == 5
        assert all(r.data == "value" for r in results)
        assert sum(1 for r in results if r.state == CacheState.UPDATED) == 1


class TestCacheMaintenance:
    """Tests for invalidation, eviction and stats."""

    def test_invalidate_and_clear(self):
        cache = ResolutionCache()
        cache.compute_if_absent_or_stale("a", lambda: 1)
        cache.compute_if_absent_or_stale("b", lambda: 2)

        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b").data == 2

        cache.clear()
        assert len(cache) == 0

    def test_evicts_oldest_beyond_max_entries(self):
        cache = ResolutionCache(max_entries=10)
        for i in range(11):
            cache.compute_if_absent_or_stale(i, lambda i=i: i)

        assert len(cache) == 10
        assert cache.get(0) is None
        assert cache.get(10).data == 10

    def test_entries_without_expiry_survive_eviction(self):
        cache = ResolutionCache(max_entries=10)
        cache.compute_if_absent_or_stale("pinned", lambda: "kept", ttl=0)
        for i in range(11):
            cache.compute_if_absent_or_stale(i, lambda i=i: i)

        assert cache.get("pinned").data == "kept"
        assert len(cache) == 10
        assert cache.get(0) is None

    def test_expired_entries_are_evicted_first(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("common.cache.time.time", lambda: now[0])
        cache = ResolutionCache(default_ttl=100, max_entries=10)
        cache.compute_if_absent_or_stale("short", lambda: "gone", ttl=1)
        now[0] += 2
        for i in range(10):
            cache.compute_if_absent_or_stale(i, lambda i=i: i)

        assert len(cache) == 10
        assert all(cache.get(i) is not None for i in range(10))

    def test_stats_counts_hits_misses_and_negatives(self):
        cache = ResolutionCache()
        cache.compute_if_absent_or_stale("a", lambda: 1)
        cache.compute_if_absent_or_stale("a", lambda: 1)
        cache.compute_if_absent_or_stale("b", lambda: None)

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["negative_entries"] == 1
        assert stats["total_entries"] == 2
