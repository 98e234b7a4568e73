"""Port for resolving raw stream URLs to playable URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from resolvarr.domain.entities.resolver import ResolveRequest, ResolveResult


@runtime_checkable
class ResolverPort(Protocol):
    """Resolves a raw (short-lived or restricted) URL to a playable one.

    Implementations never raise for resolution failures: ``None`` means
    "resolution unavailable" and the caller falls back to the raw URL.
    """

    async def resolve(self, request: ResolveRequest) -> ResolveResult | None: ...
