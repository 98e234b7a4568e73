"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from resolvarr.application.use_cases import ResolverAdminUseCase
from resolvarr.domain.entities.resolver import RunState
from resolvarr.infrastructure.config.schema import AppConfig
from resolvarr.infrastructure.resolver import (
    ProgramStore,
    ResolverUpdateScheduler,
    ResultCache,
    StatusReporter,
    SubprocessResolver,
    cleanup_temp_dir,
)
from resolvarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def wire_resolver(state: AppState, config: AppConfig) -> None:
    """Build the resolver subsystem on ``state`` (requires ``http_client``)."""
    rc = config.resolver
    state.run_state = RunState()
    state.result_cache = ResultCache()
    state.program_store = ProgramStore(
        program_path=rc.program_path,
        runtime=rc.runtime,
        http_client=state.http_client,
        run_state=state.run_state,
        download_timeout=rc.download_timeout_seconds,
    )
    state.resolver = SubprocessResolver(
        store=state.program_store,
        cache=state.result_cache,
        run_state=state.run_state,
        temp_dir=rc.temp_dir,
        timeout_seconds=rc.timeout_seconds,
        busy_backoff_seconds=rc.busy_backoff_seconds,
    )
    state.update_scheduler = ResolverUpdateScheduler(
        store=state.program_store,
        cache=state.result_cache,
        run_state=state.run_state,
    )
    state.status_reporter = StatusReporter(
        store=state.program_store,
        cache=state.result_cache,
        run_state=state.run_state,
        scheduler=state.update_scheduler,
    )
    state.resolver_admin = ResolverAdminUseCase(
        store=state.program_store,
        resolver=state.resolver,
        cache=state.result_cache,
        scheduler=state.update_scheduler,
        status=state.status_reporter,
        run_state=state.run_state,
    )
    log.info(
        "resolver_wired",
        program_path=str(rc.program_path),
        runtime=rc.runtime,
        timeout_seconds=rc.timeout_seconds,
    )


async def _initialize_resolver(state: AppState, config: AppConfig) -> None:
    """Install and schedule from configuration. Failures are logged only."""
    rc = config.resolver
    if not rc.source_url:
        return

    log.info("resolver_initializing_from_config", source_url=rc.source_url)
    if not await state.program_store.install(rc.source_url):
        log.warning(
            "resolver_initial_install_failed",
            error=state.run_state.last_error,
        )
    if rc.update_interval:
        await state.update_scheduler.schedule(rc.update_interval)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (program downloads)
        2. Temp directory cleanup (stale protocol files)
        3. Resolver subsystem
        4. Optional install + schedule from config
    """
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = httpx.AsyncClient(
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    await asyncio.to_thread(cleanup_temp_dir, config.resolver.temp_dir)

    wire_resolver(state, config)
    await _initialize_resolver(state, config)

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.update_scheduler.stop()
        log.info("resolver_scheduler_stopped")

        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
