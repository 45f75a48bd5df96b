"""Shared test fixtures for the visionlink test suite."""

from __future__ import annotations

from typing import Any

import pytest

from visionlink.application.source_chain import SourceSettings, build_default_chain
from visionlink.domain.entities.resolution import ProbeOutcome, ResolutionRequest
from visionlink.domain.ports.page_probe import OutcomeCallback

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeProbe:
    """Records dispatched URLs; outcomes are delivered by the test."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, OutcomeCallback]] = []
        self.closed = False

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    def probe(self, url: str, on_outcome: OutcomeCallback) -> None:
        self.calls.append((url, on_outcome))

    async def close(self) -> None:
        self.closed = True

    def complete(self, outcome: ProbeOutcome, *, call: int = -1) -> None:
        """Deliver *outcome* through the callback of the given dispatch."""
        _, callback = self.calls[call]
        callback(outcome)


class FakeSurface:
    """Scriptable browsing surface.

    ``snapshots`` are returned by successive ``evaluate_script`` calls
    (the last one repeats); ``requests`` are fired at the resource
    listener during ``load_url``.
    """

    def __init__(
        self,
        *,
        snapshots: list[Any] | None = None,
        requests: list[str] | None = None,
        load_error: Exception | None = None,
    ) -> None:
        self.snapshots = snapshots or [None]
        self.requests = requests or []
        self.load_error = load_error
        self.loaded: list[str] = []
        self.evaluations = 0
        self.closed = False
        self.listener: Any = None
        self._current_url: str | None = None

    @property
    def current_url(self) -> str | None:
        return self._current_url

    def on_resource_requested(self, listener: Any) -> None:
        self.listener = listener

    async def load_url(self, url: str) -> None:
        self.loaded.append(url)
        self._current_url = url
        if self.load_error is not None:
            raise self.load_error
        for request_url in self.requests:
            if self.listener is not None:
                self.listener(request_url)

    async def evaluate_script(self, script: str) -> Any:
        index = min(self.evaluations, len(self.snapshots) - 1)
        self.evaluations += 1
        snapshot = self.snapshots[index]
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def request_aot() -> ResolutionRequest:
    return ResolutionRequest(title="Attack on Titan: Final Season", season=4, episode=2)


@pytest.fixture()
def source_settings() -> SourceSettings:
    return SourceSettings(
        source1_url="https://site1.test",
        source2_url="https://site2.test",
        source3_url="https://site3.test",
    )


@pytest.fixture()
def chain(source_settings: SourceSettings):
    return build_default_chain(source_settings)


@pytest.fixture()
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def make_surface() -> type[FakeSurface]:
    """The FakeSurface class itself; call it with the page script."""
    return FakeSurface
