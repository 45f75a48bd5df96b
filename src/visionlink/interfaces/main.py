from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request

from visionlink import __version__
from visionlink.infrastructure.config import AppConfig
from visionlink.interfaces.app_state import AppState
from visionlink.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI app. Only configuration here; resources live in lifespan()."""
    app = FastAPI(
        title="visionlink",
        description="Multi-source video link resolver",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from visionlink.interfaces.api.metadata.router import router as metadata_router
    from visionlink.interfaces.api.sessions.router import router as sessions_router
    from visionlink.interfaces.api.settings.router import router as settings_router

    app.include_router(sessions_router)
    app.include_router(settings_router)
    app.include_router(metadata_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round(duration_ms, 2),
            )

    return app
