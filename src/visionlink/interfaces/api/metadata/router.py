"""Title search and season/episode listings (TMDB)."""

from __future__ import annotations

from dataclasses import asdict
from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from visionlink.infrastructure.tmdb.client import poster_url
from visionlink.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/metadata", tags=["metadata"])


def _disabled() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": "metadata_not_configured"},
    )


@router.get("/search")
async def search(
    request: Request,
    q: str = Query(default="", description="Free-text title query."),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    client = state.metadata_client
    if client is None:
        return _disabled()

    items = await client.search(q)
    results = [
        {
            **asdict(item),
            "year": item.year,
            "poster_url": poster_url(item.poster_path),
        }
        for item in items
    ]
    return JSONResponse(content={"results": results, "count": len(results)})


@router.get("/tv/{tv_id}/seasons")
async def seasons(request: Request, tv_id: int) -> JSONResponse:
    state = cast(AppState, request.app.state)
    client = state.metadata_client
    if client is None:
        return _disabled()
    items = await client.seasons(tv_id)
    return JSONResponse(content={"seasons": [asdict(s) for s in items]})


@router.get("/tv/{tv_id}/season/{season_number}")
async def episodes(request: Request, tv_id: int, season_number: int) -> JSONResponse:
    state = cast(AppState, request.app.state)
    client = state.metadata_client
    if client is None:
        return _disabled()
    items = await client.episodes(tv_id, season_number)
    return JSONResponse(
        content={
            "episodes": [
                {**asdict(ep), "still_url": poster_url(ep.still_path, size="w300")}
                for ep in items
            ]
        }
    )
