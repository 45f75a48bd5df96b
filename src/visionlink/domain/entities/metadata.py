"""Metadata value objects returned by the TMDB collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

MediaType = Literal["movie", "tv"]


@dataclass(frozen=True)
class MediaItem:
    """A search hit (movie or TV show)."""

    id: int
    media_type: MediaType
    title: str
    poster_path: str | None = None
    overview: str = ""
    release_date: str = ""  # first_air_date for TV

    @property
    def year(self) -> str:
        return self.release_date[:4]


@dataclass(frozen=True)
class Season:
    id: int
    name: str
    season_number: int
    episode_count: int = 0


@dataclass(frozen=True)
class Episode:
    id: int
    name: str
    episode_number: int
    still_path: str | None = None
