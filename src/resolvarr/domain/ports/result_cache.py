"""Port for time-bounded memoization of resolver results."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from resolvarr.domain.entities.resolver import CacheEntry, ResolveResult


@runtime_checkable
class ResultCachePort(Protocol):
    """Fingerprint-keyed cache. Safe for concurrent access."""

    def get(self, fingerprint: str) -> CacheEntry | None:
        """Return the entry while it is fresh, else None."""
        ...

    def put(self, fingerprint: str, result: ResolveResult) -> None: ...

    def clear(self) -> None: ...

    def size(self) -> int: ...
