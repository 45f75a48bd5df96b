"""Port for extracting a video URL from a single page."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from visionlink.domain.entities.resolution import ProbeOutcome

OutcomeCallback = Callable[[ProbeOutcome], None]


@runtime_checkable
class PageProbePort(Protocol):
    """Loads a URL and reports exactly one ProbeOutcome per call."""

    def probe(self, url: str, on_outcome: OutcomeCallback) -> None:
        """Start probing *url* and return immediately.

        *on_outcome* is invoked exactly once, later, on the event loop.
        Starting a new probe supersedes any run still in flight.
        """
        ...

    async def close(self) -> None:
        """Stop any in-flight run and release the browsing surface."""
        ...
