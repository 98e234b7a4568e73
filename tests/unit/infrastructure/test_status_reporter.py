"""Tests for StatusReporter."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

from resolvarr.domain.entities.resolver import ResolveResult, RunState
from resolvarr.infrastructure.resolver.program_store import ProgramStore
from resolvarr.infrastructure.resolver.result_cache import ResultCache
from resolvarr.infrastructure.resolver.scheduler import ResolverUpdateScheduler
from resolvarr.infrastructure.resolver.status import StatusReporter


async def _block_forever(_: float) -> None:
    await asyncio.Event().wait()


def _reporter(
    store: ProgramStore, cache: ResultCache, run_state: RunState
) -> tuple[StatusReporter, ResolverUpdateScheduler]:
    scheduler = ResolverUpdateScheduler(
        store=store, cache=cache, run_state=run_state, sleep=_block_forever
    )
    reporter = StatusReporter(
        store=store, cache=cache, run_state=run_state, scheduler=scheduler
    )
    return reporter, scheduler


class TestSnapshot:
    async def test_fresh_install(
        self,
        program_store: ProgramStore,
        result_cache: ResultCache,
        run_state: RunState,
    ) -> None:
        reporter, _ = _reporter(program_store, result_cache, run_state)

        status = await reporter.snapshot()

        assert status.is_executing is False
        assert status.last_execution_at is None
        assert status.last_error is None
        assert status.program_exists is False
        assert status.source_url is None
        assert status.update_interval is None
        assert status.schedule_active is False
        assert status.cache_items == 0
        assert status.program_version == "N/A"

    async def test_reflects_program_cache_and_schedule(
        self,
        program_store: ProgramStore,
        result_cache: ResultCache,
        run_state: RunState,
    ) -> None:
        reporter, scheduler = _reporter(program_store, result_cache, run_state)
        await program_store.install_template()
        result_cache.put("a", ResolveResult(payload={}))
        result_cache.put("b", ResolveResult(payload={}))
        await scheduler.schedule("0:30")

        status = await reporter.snapshot()

        assert status.program_exists is True
        assert status.program_version == "1.0.0"
        assert status.cache_items == 2
        assert status.update_interval == "0:30"
        assert status.schedule_active is True
        await scheduler.stop()

    async def test_reflects_run_state(
        self,
        program_store: ProgramStore,
        result_cache: ResultCache,
        run_state: RunState,
    ) -> None:
        reporter, _ = _reporter(program_store, result_cache, run_state)
        when = datetime(2025, 3, 1, tzinfo=timezone.utc)
        run_state.record_success(when)
        run_state.mark_started()
        run_state.record_error("Output file not created")

        status = await reporter.snapshot()

        assert status.is_executing is True
        assert status.last_execution_at == when
        assert status.last_error == "Output file not created"

    async def test_snapshot_has_no_side_effects(
        self,
        program_store: ProgramStore,
        result_cache: ResultCache,
        run_state: RunState,
        program_path: Path,
    ) -> None:
        reporter, _ = _reporter(program_store, result_cache, run_state)
        await reporter.snapshot()
        await reporter.snapshot()
        assert not program_path.exists()
        assert run_state.last_error is None

    async def test_program_file_read_off_event_loop(
        self,
        program_store: ProgramStore,
        result_cache: ResultCache,
        run_state: RunState,
    ) -> None:
        reporter, _ = _reporter(program_store, result_cache, run_state)
        await program_store.install_template()

        with patch(
            "resolvarr.infrastructure.resolver.status.asyncio.to_thread",
            wraps=asyncio.to_thread,
        ) as to_thread:
            status = await reporter.snapshot()

        to_thread.assert_called_once()
        assert status.program_version == "1.0.0"
