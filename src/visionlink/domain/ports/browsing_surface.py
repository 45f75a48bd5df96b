"""Port for the scriptable browser page a probe runs in."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

ResourceListener = Callable[[str], None]


@runtime_checkable
class BrowsingSurfacePort(Protocol):
    """One isolated, reusable browser page.

    Implementations enable scripting and storage and present a realistic
    user-agent. A surface hosts at most one loaded document at a time.
    """

    @property
    def current_url(self) -> str | None:
        """URL of the document currently loaded, or None."""
        ...

    def on_resource_requested(self, listener: ResourceListener | None) -> None:
        """Register the listener for outbound request URLs.

        Replaces any previously registered listener; ``None`` detaches it.
        """
        ...

    async def load_url(self, url: str) -> None:
        """Navigate and return once the initial load has finished.

        Raises ``PageLoadError`` when navigation fails or times out.
        """
        ...

    async def evaluate_script(self, script: str) -> Any:
        """Evaluate *script* in the page and return its JSON result."""
        ...

    async def close(self) -> None:
        """Release the page and its context. Idempotent."""
        ...
