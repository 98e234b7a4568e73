"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from resolvarr import __version__
from resolvarr.infrastructure.config import AppConfig
from resolvarr.interfaces.app_state import AppState
from resolvarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, resolver subsystem) are created in lifespan().
    """
    app = FastAPI(
        title="Resolvarr",
        description="Orchestrates operator-supplied stream resolver programs",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from resolvarr.interfaces.api.resolver import router as resolver_router

    app.include_router(resolver_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | bool]:
        """Liveness probe: returns 200 as long as the process is running."""
        store = getattr(app.state, "program_store", None)
        return {
            "status": "ok",
            "program_exists": store.exists() if store else False,
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
