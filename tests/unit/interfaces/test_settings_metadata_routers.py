"""Tests for /settings and /metadata endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from visionlink.application.source_chain import SourceSettings
from visionlink.domain.entities.metadata import Episode, MediaItem, Season
from visionlink.interfaces.api.metadata.router import router as metadata_router
from visionlink.interfaces.api.settings.router import router as settings_router


def _make_app(
    *,
    source_settings: SourceSettings | None = None,
    metadata_client: AsyncMock | None = None,
) -> FastAPI:
    app = FastAPI()
    app.include_router(settings_router)
    app.include_router(metadata_router)
    app.state.source_settings = source_settings or SourceSettings(
        "https://a.test", "https://b.test", "https://c.test"
    )
    app.state.metadata_client = metadata_client
    return app


class TestSourcesSettings:
    def test_get_sources(self, source_settings: SourceSettings) -> None:
        client = TestClient(_make_app(source_settings=source_settings))
        assert client.get("/settings/sources").json() == {
            "source1_url": "https://site1.test",
            "source2_url": "https://site2.test",
            "source3_url": "https://site3.test",
        }

    def test_partial_update(self, source_settings: SourceSettings) -> None:
        client = TestClient(_make_app(source_settings=source_settings))
        resp = client.put("/settings/sources", json={"source2_url": "https://new2.test/"})

        assert resp.status_code == 200
        assert resp.json()["source2_url"] == "https://new2.test"
        assert source_settings.source2_url == "https://new2.test"
        assert source_settings.source1_url == "https://site1.test"

    def test_invalid_url_rejected_atomically(
        self, source_settings: SourceSettings
    ) -> None:
        client = TestClient(_make_app(source_settings=source_settings))
        resp = client.put(
            "/settings/sources",
            json={"source1_url": "https://ok.test", "source3_url": "ftp://bad"},
        )

        assert resp.status_code == 422
        assert resp.json()["error"] == "invalid_source_url"
        assert source_settings.source1_url == "https://site1.test"


class TestMetadata:
    def test_disabled_without_client(self) -> None:
        client = TestClient(_make_app())
        for path in (
            "/metadata/search?q=x",
            "/metadata/tv/1/seasons",
            "/metadata/tv/1/season/1",
        ):
            resp = client.get(path)
            assert resp.status_code == 503
            assert resp.json() == {"error": "metadata_not_configured"}

    def test_search(self) -> None:
        tmdb = AsyncMock()
        tmdb.search.return_value = [
            MediaItem(
                id=1429,
                media_type="tv",
                title="Attack on Titan",
                poster_path="/p.jpg",
                release_date="2013-04-07",
            )
        ]
        client = TestClient(_make_app(metadata_client=tmdb))

        body = client.get("/metadata/search", params={"q": "titan"}).json()

        tmdb.search.assert_awaited_once_with("titan")
        assert body["count"] == 1
        hit = body["results"][0]
        assert hit["id"] == 1429
        assert hit["year"] == "2013"
        assert hit["poster_url"] == "https://image.tmdb.org/t/p/w200/p.jpg"

    def test_seasons(self) -> None:
        tmdb = AsyncMock()
        tmdb.seasons.return_value = [Season(id=1, name="Season 1", season_number=1)]
        client = TestClient(_make_app(metadata_client=tmdb))

        body = client.get("/metadata/tv/1429/seasons").json()

        tmdb.seasons.assert_awaited_once_with(1429)
        assert body["seasons"][0]["season_number"] == 1

    def test_episodes(self) -> None:
        tmdb = AsyncMock()
        tmdb.episodes.return_value = [
            Episode(id=7, name="Pilot", episode_number=1, still_path=None)
        ]
        client = TestClient(_make_app(metadata_client=tmdb))

        body = client.get("/metadata/tv/1429/season/2").json()

        tmdb.episodes.assert_awaited_once_with(1429, 2)
        assert body["episodes"] == [
            {
                "id": 7,
                "name": "Pilot",
                "episode_number": 1,
                "still_path": None,
                "still_url": "",
            }
        ]
