"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from resolvarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from resolvarr.application.use_cases import ResolverAdminUseCase
    from resolvarr.domain.entities.resolver import RunState
    from resolvarr.infrastructure.resolver import (
        ProgramStore,
        ResolverUpdateScheduler,
        ResultCache,
        StatusReporter,
        SubprocessResolver,
    )


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Resolver subsystem
    run_state: RunState
    program_store: ProgramStore
    result_cache: ResultCache
    resolver: SubprocessResolver
    update_scheduler: ResolverUpdateScheduler
    status_reporter: StatusReporter

    # Application Services
    resolver_admin: ResolverAdminUseCase
