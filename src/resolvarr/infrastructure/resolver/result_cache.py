"""In-memory result cache keyed by request fingerprint."""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections.abc import Callable, Mapping

import structlog

from resolvarr.domain.entities.resolver import CacheEntry, ResolveResult

log = structlog.get_logger(__name__)

RESULT_TTL_SECONDS = 20 * 60


def fingerprint(url: str, headers: Mapping[str, str] | None) -> str:
    """Deterministic cache key from the URL and canonical JSON of headers."""
    canonical = json.dumps(
        dict(headers or {}),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(f"{url}:{canonical}".encode("utf-8")).hexdigest()


class ResultCache:
    """Bounded-lifetime memoization of resolver results.

    Stale entries are not purged on a timer; lookups ignore them and
    ``put``/``clear`` replace or drop them. All operations hold a lock so
    the cache can be shared across threads.

    Args:
        ttl_seconds: Entry lifetime (20 minutes).
        clock: Returns the current time in epoch seconds (tests inject a fake).
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = RESULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, fingerprint: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(fingerprint)
        if entry is None or not entry.is_fresh(self._clock(), self._ttl):
            return None
        return entry

    def put(self, fingerprint: str, result: ResolveResult) -> None:
        entry = CacheEntry(
            fingerprint=fingerprint, result=result, stored_at=self._clock()
        )
        with self._lock:
            self._entries[fingerprint] = entry

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        log.info("resolver_cache_cleared", entries=count)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)
