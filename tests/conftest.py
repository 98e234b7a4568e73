"""Shared test fixtures for Resolvarr test suite."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from resolvarr.domain.entities.resolver import ResolveRequest, ResolveResult, RunState
from resolvarr.infrastructure.resolver.program_store import ProgramStore
from resolvarr.infrastructure.resolver.result_cache import ResultCache

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def resolve_request() -> ResolveRequest:
    """Minimal valid ResolveRequest."""
    return ResolveRequest(
        url="https://example.com/stream?x=1",
        headers={"User-Agent": "VLC/3.0"},
        display_name="Channel1",
    )


@pytest.fixture()
def resolve_result() -> ResolveResult:
    return ResolveResult(
        payload={
            "resolved_url": "https://cdn.example.com/live.m3u8?token=abc",
            "headers": {"Authorization": "Bearer abc"},
        }
    )


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def run_state() -> RunState:
    return RunState()


@pytest.fixture()
def result_cache(clock: FakeClock) -> ResultCache:
    return ResultCache(clock=clock)


@pytest.fixture()
def mock_http_client() -> AsyncMock:
    """Mock httpx.AsyncClient (no network)."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture()
def program_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "resolver_script.py"


@pytest.fixture()
def program_store(
    program_path: Path, mock_http_client: AsyncMock, run_state: RunState
) -> ProgramStore:
    return ProgramStore(
        program_path=program_path,
        runtime=sys.executable,
        http_client=mock_http_client,
        run_state=run_state,
    )


@pytest.fixture()
def write_program(program_path: Path):
    """Write a Python program (dedented) to the store's path."""

    def _write(source: str) -> Path:
        program_path.parent.mkdir(parents=True, exist_ok=True)
        program_path.write_text(textwrap.dedent(source), encoding="utf-8")
        return program_path

    return _write


@pytest.fixture()
def mock_scheduler() -> MagicMock:
    """Mock ResolverUpdateScheduler."""
    scheduler = MagicMock()
    scheduler.schedule = AsyncMock(return_value=True)
    scheduler.stop = AsyncMock(return_value=False)
    scheduler.tick = AsyncMock()
    scheduler.state = None
    scheduler.is_active = False
    return scheduler
