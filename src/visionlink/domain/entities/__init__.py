from .metadata import Episode, MediaItem, Season
from .resolution import (
    Found,
    NotFound,
    ProbeError,
    ProbeOutcome,
    ResolutionEvent,
    ResolutionFailed,
    ResolutionRequest,
    SessionStatus,
    StepStarted,
    VideoResolved,
)

__all__ = [
    "Episode",
    "Found",
    "MediaItem",
    "NotFound",
    "ProbeError",
    "ProbeOutcome",
    "ResolutionEvent",
    "ResolutionFailed",
    "ResolutionRequest",
    "Season",
    "SessionStatus",
    "StepStarted",
    "VideoResolved",
]
