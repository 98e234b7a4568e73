"""Resolver admin use case: the operation surface behind /api/resolver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from resolvarr.domain.entities.resolver import (
    OperationResult,
    ResolverStatus,
    ResolveRequest,
    ResolveResult,
    RunState,
)
from resolvarr.domain.ports import ProgramStorePort, ResolverPort, ResultCachePort

if TYPE_CHECKING:
    from resolvarr.infrastructure.resolver.scheduler import ResolverUpdateScheduler
    from resolvarr.infrastructure.resolver.status import StatusReporter

log = structlog.get_logger(__name__)


class ResolverAdminUseCase:
    """Exposes install / health / resolve / schedule / cache / status.

    Every operation reports failure through its return value; the detail
    text comes from ``RunState.last_error``.
    """

    def __init__(
        self,
        *,
        store: ProgramStorePort,
        resolver: ResolverPort,
        cache: ResultCachePort,
        scheduler: ResolverUpdateScheduler,
        status: StatusReporter,
        run_state: RunState,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._cache = cache
        self._scheduler = scheduler
        self._status = status
        self._run_state = run_state

    def _failure(self, fallback: str) -> OperationResult:
        return OperationResult(
            success=False, message=self._run_state.last_error or fallback
        )

    async def install(self, source_url: str) -> OperationResult:
        if await self._store.install(source_url):
            return OperationResult(
                success=True, message="Resolver script downloaded successfully"
            )
        return self._failure("Resolver script download failed")

    async def install_template(self) -> OperationResult:
        if await self._store.install_template():
            return OperationResult(
                success=True,
                message="Resolver script template created successfully",
                details={"script_path": str(self._store.state.path)},
            )
        return self._failure("Template creation failed")

    async def check_health(self) -> OperationResult:
        if await self._store.check_health():
            return OperationResult(success=True, message="Resolver script is healthy")
        return self._failure("Resolver script is not healthy")

    async def resolve(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        display_name: str = "unknown",
        proxy_config: dict[str, Any] | None = None,
    ) -> ResolveResult | None:
        request = ResolveRequest(
            url=url,
            headers=dict(headers or {}),
            display_name=display_name,
            proxy_config=proxy_config,
        )
        return await self._resolver.resolve(request)

    async def resolve_or_passthrough(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        display_name: str = "unknown",
        proxy_config: dict[str, Any] | None = None,
    ) -> tuple[str, dict[str, str], bool]:
        """Resolve, falling back to the raw URL and headers on no result.

        Returns:
            ``(url, headers, resolved)``.
        """
        result = await self.resolve(url, headers, display_name, proxy_config)
        if result is None or not result.resolved_url:
            log.info("resolver_passthrough", channel=display_name)
            return url, dict(headers or {}), False
        return result.resolved_url, result.headers, True

    async def schedule(self, interval: str) -> OperationResult:
        if await self._scheduler.schedule(interval):
            return OperationResult(
                success=True, message=f"Automatic updates scheduled every {interval}"
            )
        return self._failure("Scheduling failed")

    async def stop_schedule(self) -> OperationResult:
        stopped = await self._scheduler.stop()
        return OperationResult(
            success=True,
            message=(
                "Automatic updates stopped"
                if stopped
                else "No scheduled updates to stop"
            ),
            details={"was_active": stopped},
        )

    def clear_cache(self) -> OperationResult:
        self._cache.clear()
        return OperationResult(success=True, message="Resolver cache cleared")

    async def status(self) -> ResolverStatus:
        return await self._status.snapshot()
