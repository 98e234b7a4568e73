"""Tests for ResultCache and request fingerprints."""

from __future__ import annotations

import threading

from resolvarr.domain.entities.resolver import ResolveResult
from resolvarr.infrastructure.resolver.result_cache import (
    RESULT_TTL_SECONDS,
    ResultCache,
    fingerprint,
)


class TestFingerprint:
    def test_header_order_does_not_matter(self) -> None:
        a = fingerprint("https://x/a", {"A": "1", "B": "2"})
        b = fingerprint("https://x/a", {"B": "2", "A": "1"})
        assert a == b

    def test_header_values_matter(self) -> None:
        a = fingerprint("https://x/a", {"A": "1"})
        b = fingerprint("https://x/a", {"A": "2"})
        assert a != b

    def test_url_matters(self) -> None:
        assert fingerprint("https://x/a", {}) != fingerprint("https://x/b", {})

    def test_none_headers_equal_empty(self) -> None:
        assert fingerprint("https://x/a", None) == fingerprint("https://x/a", {})


class TestResultCache:
    def test_ttl_is_twenty_minutes(self) -> None:
        assert RESULT_TTL_SECONDS == 1200
        assert ResultCache().ttl_seconds == 1200

    def test_put_then_get(self, result_cache: ResultCache, resolve_result: ResolveResult) -> None:
        result_cache.put("k", resolve_result)
        entry = result_cache.get("k")
        assert entry is not None
        assert entry.result is resolve_result
        assert entry.fingerprint == "k"

    def test_missing_key(self, result_cache: ResultCache) -> None:
        assert result_cache.get("nope") is None

    def test_entry_valid_just_before_expiry(
        self, result_cache: ResultCache, resolve_result: ResolveResult, clock
    ) -> None:
        result_cache.put("k", resolve_result)
        clock.advance(20 * 60 - 1)
        assert result_cache.get("k") is not None

    def test_entry_expires_after_twenty_minutes(
        self, result_cache: ResultCache, resolve_result: ResolveResult, clock
    ) -> None:
        result_cache.put("k", resolve_result)
        clock.advance(20 * 60)
        assert result_cache.get("k") is None

    def test_stale_entry_still_counted_until_cleared(
        self, result_cache: ResultCache, resolve_result: ResolveResult, clock
    ) -> None:
        result_cache.put("k", resolve_result)
        clock.advance(30 * 60)
        assert result_cache.size() == 1
        result_cache.clear()
        assert result_cache.size() == 0

    def test_put_overwrites_with_new_timestamp(
        self, result_cache: ResultCache, resolve_result: ResolveResult, clock
    ) -> None:
        result_cache.put("k", resolve_result)
        clock.advance(15 * 60)
        newer = ResolveResult(payload={"resolved_url": "https://new", "headers": {}})
        result_cache.put("k", newer)
        clock.advance(10 * 60)
        entry = result_cache.get("k")
        assert entry is not None
        assert entry.result is newer

    def test_clear_removes_everything(
        self, result_cache: ResultCache, resolve_result: ResolveResult
    ) -> None:
        result_cache.put("a", resolve_result)
        result_cache.put("b", resolve_result)
        result_cache.clear()
        assert result_cache.get("a") is None
        assert result_cache.size() == 0

    def test_concurrent_puts_from_threads(self, resolve_result: ResolveResult) -> None:
        cache = ResultCache()

        def worker(offset: int) -> None:
            for i in range(200):
                cache.put(f"{offset}-{i}", resolve_result)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size() == 800
