"""Port for handing a resolved URL to a media player."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PlayerPort(Protocol):
    def play(self, video_url: str, *, title: str | None = None) -> None:
        """Start playback of *video_url*. Returns once the player is launched."""
        ...
