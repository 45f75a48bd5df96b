"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from visionlink.application.source_chain import SourceSettings
from visionlink.application.use_cases.resolve_video import ResolveVideoUseCase
from visionlink.infrastructure.config.schema import AppConfig
from visionlink.infrastructure.probing import BrowserPool, PageProbe
from visionlink.infrastructure.tmdb.client import HttpxTmdbClient
from visionlink.interfaces.api.sessions.registry import SessionRegistry
from visionlink.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_browser_pool(config: AppConfig) -> BrowserPool:
    return BrowserPool(
        headless=config.playwright_headless,
        navigation_timeout_ms=config.playwright_timeout_ms,
        user_agent=config.playwright_user_agent,
        stealth=config.playwright_stealth,
    )


def build_source_settings(config: AppConfig) -> SourceSettings:
    sources = config.sources
    return SourceSettings(
        source1_url=sources.source1_url,
        source2_url=sources.source2_url,
        source3_url=sources.source3_url,
    )


def build_session_registry(
    config: AppConfig, resolve_uc: ResolveVideoUseCase
) -> SessionRegistry:
    return SessionRegistry(
        resolve_uc,
        retention_seconds=config.session_retention_seconds,
        max_entries=config.session_max_entries,
    )


def build_resolve_use_case(
    config: AppConfig,
    pool: BrowserPool,
    settings: SourceSettings,
) -> ResolveVideoUseCase:
    """Wire the use case: one PageProbe (one browser context) per session."""

    def _probe_factory() -> PageProbe:
        return PageProbe(
            pool.new_surface,
            timeout_seconds=config.probe_timeout_seconds,
        )

    return ResolveVideoUseCase(settings=settings, probe_factory=_probe_factory)


def build_metadata_client(
    config: AppConfig, http_client: httpx.AsyncClient
) -> HttpxTmdbClient | None:
    if not config.tmdb_api_key:
        log.info("tmdb_disabled", reason="no api key")
        return None
    return HttpxTmdbClient(
        api_key=config.tmdb_api_key,
        http_client=http_client,
        language=config.tmdb_language,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP client (metadata lookups)
        2. Browser pool (Chromium launched lazily on first probe)
        3. Source settings + resolve use case
        4. Session registry
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
    )
    state.metadata_client = build_metadata_client(config, state.http_client)

    # 2) Browser pool
    state.browser_pool = build_browser_pool(config)

    # 3) Use case
    state.source_settings = build_source_settings(config)
    state.resolve_uc = build_resolve_use_case(
        config, state.browser_pool, state.source_settings
    )

    # 4) Sessions
    state.sessions = build_session_registry(config, state.resolve_uc)
    log.info("app_started", sources=state.source_settings.snapshot())

    try:
        yield
    finally:
        await state.sessions.close_all()
        await state.browser_pool.cleanup()
        await state.http_client.aclose()
        log.info("app_shutdown")
