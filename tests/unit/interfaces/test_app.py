"""Tests for app construction and lifespan wiring."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from visionlink.infrastructure.config import AppConfig
from visionlink.interfaces.main import build_app


class TestBuildApp:
    def test_healthz(self) -> None:
        client = TestClient(build_app(AppConfig()))
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_lifespan_wires_state(self) -> None:
        app = build_app(AppConfig())
        with (
            patch(
                "visionlink.infrastructure.probing.browser_pool.BrowserPool.cleanup",
                new_callable=AsyncMock,
            ) as cleanup,
            TestClient(app) as client,
        ):
            state = app.state
            assert state.metadata_client is None
            assert state.source_settings.source1_url == "https://anime-sama.fr"
            assert state.resolve_uc.settings is state.source_settings
            assert len(state.sessions) == 0
            assert client.get("/settings/sources").status_code == 200
            assert client.get("/metadata/search?q=x").status_code == 503
        cleanup.assert_awaited_once()

    def test_session_limits_come_from_config(self) -> None:
        app = build_app(AppConfig(session_retention_seconds=30, session_max_entries=5))
        with TestClient(app):
            assert app.state.sessions._retention_seconds == 30
            assert app.state.sessions._max_entries == 5

    def test_metadata_client_built_with_key(self) -> None:
        app = build_app(AppConfig(tmdb_api_key="secret"))
        with TestClient(app):
            assert app.state.metadata_client is not None
