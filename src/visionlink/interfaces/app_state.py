"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from visionlink.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from visionlink.application.source_chain import SourceSettings
    from visionlink.application.use_cases.resolve_video import ResolveVideoUseCase
    from visionlink.domain.ports import MetadataClientPort
    from visionlink.infrastructure.probing import BrowserPool
    from visionlink.interfaces.api.sessions.registry import SessionRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    browser_pool: BrowserPool

    # Runtime-editable source hosts (shared by all new sessions)
    source_settings: SourceSettings

    # Application services
    resolve_uc: ResolveVideoUseCase
    sessions: SessionRegistry

    # Metadata (optional, requires TMDB API key)
    metadata_client: MetadataClientPort | None
