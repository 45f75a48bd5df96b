"""HTTP surface of resolution sessions."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from visionlink.domain.entities.resolution import (
    ResolutionEvent,
    ResolutionFailed,
    StepStarted,
    VideoResolved,
)
from visionlink.domain.exceptions import InvalidRequest
from visionlink.interfaces.api.sessions.registry import SessionEntry
from visionlink.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class SessionCreate(BaseModel):
    title: str = Field(min_length=1)
    season: int = Field(default=1, ge=1)
    episode: int = Field(default=1, ge=1)


def _event_view(event: ResolutionEvent) -> dict[str, Any]:
    if isinstance(event, StepStarted):
        return {
            "type": "step_started",
            "step_index": event.step_index,
            "step_name": event.step_name,
            "url": event.url,
        }
    if isinstance(event, VideoResolved):
        return {
            "type": "video_resolved",
            "video_url": event.video_url,
            "step_index": event.step_index,
        }
    assert isinstance(event, ResolutionFailed)
    return {"type": "resolution_failed", "reason": event.reason}


def _session_view(entry: SessionEntry) -> dict[str, Any]:
    session = entry.session
    assert session is not None
    return {
        "id": entry.session_id,
        "title": session.request.title,
        "season": session.request.season,
        "episode": session.request.episode,
        "status": session.status.value,
        "step_index": session.current_step_index,
        "chain_length": session.chain_length,
        "current_url": session.current_url,
        "video_url": session.video_url,
        "failure_reason": session.failure_reason,
        "events": [_event_view(e) for e in entry.events],
    }


def _not_found(session_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "session_not_found", "id": session_id},
    )


@router.post("")
async def create_session(request: Request, body: SessionCreate) -> JSONResponse:
    """Start resolving (title, season, episode); returns immediately."""
    state = cast(AppState, request.app.state)
    try:
        entry = state.sessions.create(body.title, body.season, body.episode)
    except InvalidRequest as exc:
        return JSONResponse(
            status_code=422,
            content={"error": "invalid_request", "detail": str(exc)},
        )
    return JSONResponse(status_code=201, content=_session_view(entry))


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    entry = state.sessions.get(session_id)
    if entry is None:
        return _not_found(session_id)
    return JSONResponse(content=_session_view(entry))


@router.post("/{session_id}/force-final")
async def force_final(request: Request, session_id: str) -> JSONResponse:
    """Jump straight to the web-search step (no-op unless probing)."""
    state = cast(AppState, request.app.state)
    entry = state.sessions.get(session_id)
    if entry is None or entry.session is None:
        return _not_found(session_id)
    entry.session.force_final_step()
    return JSONResponse(content=_session_view(entry))


@router.delete("/{session_id}")
async def delete_session(request: Request, session_id: str) -> JSONResponse:
    """Cancel the session and release its browser page."""
    state = cast(AppState, request.app.state)
    if not await state.sessions.remove(session_id):
        return _not_found(session_id)
    return JSONResponse(content={"id": session_id, "deleted": True})
