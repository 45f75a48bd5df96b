"""TMDB API client (async httpx implementation)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from visionlink.domain.entities.metadata import Episode, MediaItem, Season

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_IMAGE_BASE = "https://image.tmdb.org/t/p"


def poster_url(path: str | None, size: str = "w200") -> str:
    """Absolute image URL for a TMDB poster/still path ('' when missing)."""
    if not path:
        return ""
    return f"{_IMAGE_BASE}/{size}{path}"


class HttpxTmdbClient:
    """Async TMDB client using httpx.

    Implements ``MetadataClientPort`` from domain.ports.metadata.
    Failures are logged and surface as empty results.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        language: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._language = language

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"api_key": self._api_key, **extra}
        if self._language:
            params["language"] = self._language
        return params

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{_BASE_URL}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None

    @staticmethod
    def _to_media_item(item: dict[str, Any]) -> MediaItem:
        media_type = "tv" if item.get("media_type") == "tv" else "movie"
        return MediaItem(
            id=int(item["id"]),
            media_type=media_type,
            title=item.get("title") or item.get("name") or "",
            poster_path=item.get("poster_path"),
            overview=item.get("overview") or "",
            release_date=item.get("release_date") or item.get("first_air_date") or "",
        )

    # ------------------------------------------------------------------
    # Public API (MetadataClientPort)
    # ------------------------------------------------------------------

    async def search(self, query: str) -> list[MediaItem]:
        """Multi search; people are dropped."""
        if not query.strip():
            return []
        data = await self._get("/search/multi", query=query)
        if data is None:
            return []
        return [
            self._to_media_item(item)
            for item in data.get("results", [])
            if item.get("media_type") != "person" and "id" in item
        ]

    async def seasons(self, tv_id: int) -> list[Season]:
        """Regular seasons of a show (season 0 / specials excluded)."""
        data = await self._get(f"/tv/{tv_id}")
        if data is None:
            return []
        return [
            Season(
                id=int(s["id"]),
                name=s.get("name") or "",
                season_number=int(s["season_number"]),
                episode_count=int(s.get("episode_count") or 0),
            )
            for s in data.get("seasons", [])
            if int(s.get("season_number", 0)) > 0
        ]

    async def episodes(self, tv_id: int, season_number: int) -> list[Episode]:
        data = await self._get(f"/tv/{tv_id}/season/{season_number}")
        if data is None:
            return []
        return [
            Episode(
                id=int(ep["id"]),
                name=ep.get("name") or "",
                episode_number=int(ep["episode_number"]),
                still_path=ep.get("still_path"),
            )
            for ep in data.get("episodes", [])
        ]
