"""Background update scheduler: periodically re-installs the resolver program."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from contextlib import suppress
from datetime import timedelta
from typing import Any

import structlog

from resolvarr.domain.entities.resolver import RunState, ScheduleState
from resolvarr.domain.exceptions import InvalidScheduleError
from resolvarr.infrastructure.resolver.program_store import ProgramStore
from resolvarr.infrastructure.resolver.result_cache import ResultCache

log = structlog.get_logger(__name__)

_INTERVAL_RE = re.compile(r"^(?:(\d{1,2}):)?(\d{1,2})$")


def parse_interval(value: str) -> ScheduleState:
    """Parse an operator interval.

    ``"H:MM"`` means every H hours and MM minutes; ``"0:MM"`` and a bare
    ``"MM"`` mean every MM minutes.

    Raises:
        InvalidScheduleError: Malformed, out of range, or zero.
    """
    match = _INTERVAL_RE.match((value or "").strip())
    if match is None:
        raise InvalidScheduleError("Invalid time format. Use HH:MM or H:MM")

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise InvalidScheduleError("Invalid time. Hours: 0-23, Minutes: 0-59")
    if hours == 0 and minutes == 0:
        raise InvalidScheduleError("Interval must be greater than zero")

    if hours == 0:
        cron = f"*/{minutes} * * * *"
    else:
        cron = f"{minutes} */{hours} * * *"

    return ScheduleState(
        cron_expression=cron,
        human_interval=value,
        interval=timedelta(hours=hours, minutes=minutes),
    )


class ResolverUpdateScheduler:
    """Re-installs the program from its recorded source and invalidates the cache.

    At most one timer task is alive at any time: :meth:`schedule` tears the
    old one down before starting the next, and concurrent schedule/stop
    calls are serialized by a lock. :meth:`tick` is public so a tick
    can be triggered without waiting for the timer.
    """

    def __init__(
        self,
        *,
        store: ProgramStore,
        cache: ResultCache,
        run_state: RunState,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._cache = cache
        self._run_state = run_state
        self._sleep = sleep
        self._state: ScheduleState | None = None
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ScheduleState | None:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def schedule(self, interval: str) -> bool:
        """Replace the current schedule. Invalid input keeps the old one."""
        try:
            state = parse_interval(interval)
        except InvalidScheduleError as e:
            self._run_state.record_error(str(e))
            log.error("resolver_schedule_invalid", interval=interval, error=str(e))
            return False

        async with self._lock:
            await self._stop_locked()
            self._state = state
            self._task = asyncio.create_task(
                self._run_forever(state.interval.total_seconds()),
                name="resolver-update-scheduler",
            )
        log.info(
            "resolver_schedule_set",
            interval=interval,
            cron=state.cron_expression,
        )
        return True

    async def stop(self) -> bool:
        """Cancel the active timer. Returns False when nothing was scheduled."""
        async with self._lock:
            return await self._stop_locked()

    async def _stop_locked(self) -> bool:
        task = self._task
        if task is None:
            return False

        self._task = None
        self._state = None
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        log.info("resolver_schedule_stopped")
        return True

    async def tick(self) -> None:
        """Re-install from the recorded source, then always clear the cache."""
        log.info("resolver_update_tick")
        try:
            source_url = self._store.state.source_url
            if source_url:
                await self._store.install(source_url)
        finally:
            self._cache.clear()

    async def _run_forever(self, interval_seconds: float) -> None:
        try:
            while True:
                await self._sleep(interval_seconds)
                try:
                    await self.tick()
                except Exception:
                    log.error("resolver_update_tick_error", exc_info=True)
        except asyncio.CancelledError:
            log.debug("resolver_update_task_cancelled")
            raise
