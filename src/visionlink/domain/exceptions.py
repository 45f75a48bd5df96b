"""Resolver exceptions."""

from __future__ import annotations


class VisionLinkError(Exception):
    """Base class for all resolver errors."""


class InvalidRequest(VisionLinkError, ValueError):
    """Raised when a resolution request has an empty title or a non-positive number."""


class StepUrlInvalid(VisionLinkError):
    """Raised when the source chain cannot produce a usable URL (misconfiguration)."""


class InvalidStepIndex(StepUrlInvalid):
    """Raised when a step index lies outside the chain."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"step index {index} out of range for chain of {length}")
        self.index = index
        self.length = length


class ProbeTimeout(VisionLinkError):
    """A probe ran past its overall deadline. Normalised to NotFound."""


class PageLoadError(VisionLinkError):
    """Navigation to a step URL failed. Normalised to NotFound."""


class ChainExhausted(VisionLinkError):
    """Every step of the chain failed to yield a video URL."""


class ResolutionCancelled(VisionLinkError):
    """The caller cancelled the resolution before it finished."""


class SessionStateError(VisionLinkError):
    """Raised when a session operation is not valid in its current state."""


class PlayerNotFound(VisionLinkError):
    """Raised when the configured playback command is not installed."""
