"""Read-only status aggregation for the resolver subsystem."""

from __future__ import annotations

import asyncio

from resolvarr.domain.entities.resolver import ResolverStatus, RunState
from resolvarr.infrastructure.resolver.program_store import ProgramStore
from resolvarr.infrastructure.resolver.result_cache import ResultCache
from resolvarr.infrastructure.resolver.scheduler import ResolverUpdateScheduler


class StatusReporter:
    """Builds a point-in-time :class:`ResolverStatus`. No side effects.

    The program file is inspected in a worker thread.
    """

    def __init__(
        self,
        *,
        store: ProgramStore,
        cache: ResultCache,
        run_state: RunState,
        scheduler: ResolverUpdateScheduler,
    ) -> None:
        self._store = store
        self._cache = cache
        self._run_state = run_state
        self._scheduler = scheduler

    def _read_program(self) -> tuple[bool, str]:
        return self._store.exists(), self._store.get_version()

    async def snapshot(self) -> ResolverStatus:
        program_exists, program_version = await asyncio.to_thread(self._read_program)
        schedule = self._scheduler.state
        return ResolverStatus(
            is_executing=self._run_state.is_executing,
            last_execution_at=self._run_state.last_execution_at,
            last_error=self._run_state.last_error,
            program_exists=program_exists,
            source_url=self._store.state.source_url,
            update_interval=schedule.human_interval if schedule else None,
            schedule_active=self._scheduler.is_active,
            cache_items=self._cache.size(),
            program_version=program_version,
        )
