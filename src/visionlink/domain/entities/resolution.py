"""Domain entities for video link resolution.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from visionlink.domain.exceptions import InvalidRequest


@dataclass(frozen=True)
class ResolutionRequest:
    """What the caller wants to watch. Immutable for the lifetime of a session."""

    title: str
    season: int = 1
    episode: int = 1

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise InvalidRequest("title must not be empty")
        if self.season < 1:
            raise InvalidRequest(f"season must be >= 1, got {self.season}")
        if self.episode < 1:
            raise InvalidRequest(f"episode must be >= 1, got {self.episode}")


class SessionStatus(str, Enum):
    """Lifecycle state of a resolution session."""

    IDLE = "idle"
    PROBING = "probing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SessionStatus.SUCCEEDED,
            SessionStatus.FAILED,
            SessionStatus.CANCELLED,
        )


# ---------------------------------------------------------------------------
# Probe outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Found:
    """The probe discovered a playable resource."""

    video_url: str


@dataclass(frozen=True)
class NotFound:
    """Nothing playable on the page (includes load errors and timeouts)."""

    reason: str = "not_found"


@dataclass(frozen=True)
class ProbeError:
    """The browsing surface itself failed (e.g. browser did not start)."""

    reason: str = "error"


ProbeOutcome = Union[Found, NotFound, ProbeError]


# ---------------------------------------------------------------------------
# Session events (delivered to the caller)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepStarted:
    """A chain step was dispatched to the probe. Used for progress display."""

    step_index: int
    step_name: str
    url: str


@dataclass(frozen=True)
class VideoResolved:
    video_url: str
    step_index: int


@dataclass(frozen=True)
class ResolutionFailed:
    reason: str


ResolutionEvent = Union[StepStarted, VideoResolved, ResolutionFailed]
