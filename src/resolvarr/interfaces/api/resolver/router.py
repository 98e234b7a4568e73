"""Admin endpoints for the external resolver program."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field

from resolvarr.domain.entities.resolver import OperationResult
from resolvarr.domain.exceptions import ResolverError
from resolvarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/resolver", tags=["resolver"])


class ResolverAction(BaseModel):
    """Body of ``POST /resolver``."""

    action: str
    url: str | None = None
    interval: str | None = None


class ResolveBody(BaseModel):
    """Body of ``POST /resolver/resolve``."""

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    channel_name: str = "unknown"
    proxy_config: dict[str, Any] | None = None


def _respond(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        status_code=200 if result.success else 500,
        content=result.to_dict(),
    )


@router.post("")
async def resolver_action(body: ResolverAction, request: Request) -> JSONResponse:
    """Dispatch an admin action (download, create-template, check-health, ...)."""
    state = cast(AppState, request.app.state)
    admin = state.resolver_admin
    action = body.action

    log.info("resolver_admin_action", action=action)

    if action == "download" and body.url:
        return _respond(await admin.install(body.url))
    if action == "create-template":
        return _respond(await admin.install_template())
    if action == "check-health":
        # Health is reported in the body; the request itself succeeded.
        return JSONResponse(content=(await admin.check_health()).to_dict())
    if action == "status":
        return JSONResponse(content=(await admin.status()).to_dict())
    if action == "clear-cache":
        return _respond(admin.clear_cache())
    if action == "schedule" and body.interval:
        return _respond(await admin.schedule(body.interval))
    if action == "stopSchedule":
        return _respond(await admin.stop_schedule())

    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid action"},
    )


@router.post("/resolve")
async def resolve(body: ResolveBody, request: Request) -> JSONResponse:
    """Resolve one URL; falls back to the raw URL when no result is available."""
    state = cast(AppState, request.app.state)
    url, headers, resolved = await state.resolver_admin.resolve_or_passthrough(
        body.url,
        body.headers,
        body.channel_name,
        body.proxy_config,
    )
    return JSONResponse(
        content={"resolved_url": url, "headers": headers, "resolved": resolved}
    )


@router.get("/download-template")
async def download_template(request: Request) -> Response:
    """Serve the installed resolver program as a file download."""
    state = cast(AppState, request.app.state)
    try:
        source = state.program_store.read_program()
    except ResolverError as e:
        log.warning("resolver_template_download_failed", error=str(e))
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "message": 'Template not found. Create it first using "Create Template".',
            },
        )

    return PlainTextResponse(
        source,
        headers={
            "Content-Disposition": f'attachment; filename="{state.program_store.path.name}"'
        },
    )
