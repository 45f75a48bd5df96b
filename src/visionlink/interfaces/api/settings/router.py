"""Runtime-editable source hosts."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from visionlink.domain.exceptions import StepUrlInvalid
from visionlink.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


class SourcesUpdate(BaseModel):
    source1_url: str | None = None
    source2_url: str | None = None
    source3_url: str | None = None


def _sources_view(state: AppState) -> dict[str, str]:
    settings = state.source_settings
    return {
        "source1_url": settings.source1_url,
        "source2_url": settings.source2_url,
        "source3_url": settings.source3_url,
    }


@router.get("/sources")
async def get_sources(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    return JSONResponse(content=_sources_view(state))


@router.put("/sources")
async def update_sources(request: Request, body: SourcesUpdate) -> JSONResponse:
    """Replace any subset of base hosts.

    Sessions already running keep the hosts they started with.
    Invalid values are rejected as a whole (422), nothing is applied.
    """
    state = cast(AppState, request.app.state)
    try:
        state.source_settings.update(**body.model_dump())
    except StepUrlInvalid as exc:
        return JSONResponse(
            status_code=422,
            content={"error": "invalid_source_url", "detail": str(exc)},
        )
    log.info("sources_updated", sources=state.source_settings.snapshot())
    return JSONResponse(content=_sources_view(state))
