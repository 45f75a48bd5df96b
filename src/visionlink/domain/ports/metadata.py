"""Port for read-only media metadata lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from visionlink.domain.entities.metadata import Episode, MediaItem, Season


@runtime_checkable
class MetadataClientPort(Protocol):
    """Async interface for title search and season/episode listings."""

    async def search(self, query: str) -> list[MediaItem]:
        """Search movies and TV shows by free text (people are excluded)."""
        ...

    async def seasons(self, tv_id: int) -> list[Season]:
        """List regular seasons (specials, season 0, are excluded)."""
        ...

    async def episodes(self, tv_id: int, season_number: int) -> list[Episode]:
        """List the episodes of one season."""
        ...
