"""Tests for ResolverAdminUseCase."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from resolvarr.application.use_cases.resolver_admin import ResolverAdminUseCase
from resolvarr.domain.entities.resolver import (
    ProgramState,
    ResolverStatus,
    ResolveRequest,
    ResolveResult,
    RunState,
)


@pytest.fixture()
def store() -> MagicMock:
    store = MagicMock()
    store.install = AsyncMock(return_value=True)
    store.install_template = AsyncMock(return_value=True)
    store.check_health = AsyncMock(return_value=True)
    store.state = ProgramState(path=Path("/data/resolver_script.py"))
    return store


@pytest.fixture()
def resolver() -> MagicMock:
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=None)
    return resolver


@pytest.fixture()
def cache() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def status_reporter() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def use_case(
    store: MagicMock,
    resolver: MagicMock,
    cache: MagicMock,
    mock_scheduler: MagicMock,
    status_reporter: MagicMock,
    run_state: RunState,
) -> ResolverAdminUseCase:
    return ResolverAdminUseCase(
        store=store,
        resolver=resolver,
        cache=cache,
        scheduler=mock_scheduler,
        status=status_reporter,
        run_state=run_state,
    )


class TestInstall:
    async def test_success(self, use_case: ResolverAdminUseCase, store: MagicMock) -> None:
        result = await use_case.install("https://example.com/r.py")
        assert result.success is True
        store.install.assert_awaited_once_with("https://example.com/r.py")

    async def test_failure_uses_last_error(
        self, use_case: ResolverAdminUseCase, store: MagicMock, run_state: RunState
    ) -> None:
        store.install.return_value = False
        run_state.record_error("Download error: 404 Not Found")

        result = await use_case.install("https://example.com/r.py")

        assert result.success is False
        assert result.message == "Download error: 404 Not Found"

    async def test_failure_without_recorded_error(
        self, use_case: ResolverAdminUseCase, store: MagicMock
    ) -> None:
        store.install.return_value = False
        result = await use_case.install("https://example.com/r.py")
        assert result.success is False
        assert result.message


class TestTemplate:
    async def test_reports_script_path(self, use_case: ResolverAdminUseCase) -> None:
        result = await use_case.install_template()
        assert result.success is True
        assert result.details["script_path"] == str(Path("/data/resolver_script.py"))

    async def test_failure(
        self, use_case: ResolverAdminUseCase, store: MagicMock, run_state: RunState
    ) -> None:
        store.install_template.return_value = False
        run_state.record_error("Template creation error: read-only file system")
        result = await use_case.install_template()
        assert result.success is False
        assert result.message.startswith("Template creation error")


class TestCheckHealth:
    async def test_healthy(self, use_case: ResolverAdminUseCase) -> None:
        assert (await use_case.check_health()).success is True

    async def test_unhealthy(
        self, use_case: ResolverAdminUseCase, store: MagicMock, run_state: RunState
    ) -> None:
        store.check_health.return_value = False
        run_state.record_error("Python resolver script not found")
        result = await use_case.check_health()
        assert result.success is False
        assert result.message == "Python resolver script not found"


class TestResolve:
    async def test_builds_request(
        self, use_case: ResolverAdminUseCase, resolver: MagicMock
    ) -> None:
        await use_case.resolve(
            "https://example.com/a", {"A": "1"}, "Channel1", {"url": "http://p"}
        )
        request = resolver.resolve.await_args.args[0]
        assert request == ResolveRequest(
            url="https://example.com/a",
            headers={"A": "1"},
            display_name="Channel1",
            proxy_config={"url": "http://p"},
        )

    async def test_passthrough_on_failure(self, use_case: ResolverAdminUseCase) -> None:
        url, headers, resolved = await use_case.resolve_or_passthrough(
            "https://example.com/a", {"A": "1"}
        )
        assert (url, headers, resolved) == ("https://example.com/a", {"A": "1"}, False)

    async def test_passthrough_on_empty_url(
        self, use_case: ResolverAdminUseCase, resolver: MagicMock
    ) -> None:
        resolver.resolve.return_value = ResolveResult(payload={"headers": {}})
        _, _, resolved = await use_case.resolve_or_passthrough("https://example.com/a")
        assert resolved is False

    async def test_returns_resolved_values(
        self,
        use_case: ResolverAdminUseCase,
        resolver: MagicMock,
        resolve_result: ResolveResult,
    ) -> None:
        resolver.resolve.return_value = resolve_result
        url, headers, resolved = await use_case.resolve_or_passthrough(
            "https://example.com/a"
        )
        assert resolved is True
        assert url == resolve_result.resolved_url
        assert headers == {"Authorization": "Bearer abc"}


class TestSchedule:
    async def test_schedule(
        self, use_case: ResolverAdminUseCase, mock_scheduler: MagicMock
    ) -> None:
        result = await use_case.schedule("0:30")
        assert result.success is True
        assert result.message == "Automatic updates scheduled every 0:30"
        mock_scheduler.schedule.assert_awaited_once_with("0:30")

    async def test_invalid_schedule(
        self,
        use_case: ResolverAdminUseCase,
        mock_scheduler: MagicMock,
        run_state: RunState,
    ) -> None:
        mock_scheduler.schedule.return_value = False
        run_state.record_error("Invalid time. Hours: 0-23, Minutes: 0-59")
        result = await use_case.schedule("24:00")
        assert result.success is False
        assert "Hours: 0-23" in result.message

    async def test_stop_when_idle(self, use_case: ResolverAdminUseCase) -> None:
        result = await use_case.stop_schedule()
        assert result.success is True
        assert result.details == {"was_active": False}
        assert result.message == "No scheduled updates to stop"

    async def test_stop_when_active(
        self, use_case: ResolverAdminUseCase, mock_scheduler: MagicMock
    ) -> None:
        mock_scheduler.stop.return_value = True
        result = await use_case.stop_schedule()
        assert result.details == {"was_active": True}
        assert result.message == "Automatic updates stopped"


def test_clear_cache(use_case: ResolverAdminUseCase, cache: MagicMock) -> None:
    result = use_case.clear_cache()
    assert result.success is True
    cache.clear.assert_called_once_with()


async def test_status_delegates(
    use_case: ResolverAdminUseCase, status_reporter: MagicMock
) -> None:
    snapshot = MagicMock(spec=ResolverStatus)
    status_reporter.snapshot = AsyncMock(return_value=snapshot)
    assert await use_case.status() is snapshot
