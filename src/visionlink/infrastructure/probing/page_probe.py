"""Single-page video discovery.

A probe loads one URL and races two detectors against the same page:

- network sniffing: every outbound request URL is checked as it happens;
- DOM polling: after the initial load, the document is queried every
  500 ms for a ``<video>`` source or a known embed iframe, 30 times max.

Both run on the event loop, so the single-winner guarantee is a one-shot
latch rather than a lock. Load errors, script errors and the overall
deadline all collapse to ``NotFound``; only an unexpected failure of
the browser itself yields ``ProbeError``.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass, field

import structlog

from visionlink.domain.entities.resolution import (
    Found,
    NotFound,
    ProbeError,
    ProbeOutcome,
)
from visionlink.domain.exceptions import PageLoadError, ProbeTimeout
from visionlink.domain.ports.browsing_surface import BrowsingSurfacePort
from visionlink.domain.ports.page_probe import OutcomeCallback

from .matchers import DOM_QUERY_SCRIPT, is_video_resource, match_dom_snapshot

log = structlog.get_logger(__name__)

POLL_INTERVAL_SECONDS = 0.5
MAX_POLL_ATTEMPTS = 30
DEFAULT_PROBE_TIMEOUT_SECONDS = 60.0

SurfaceFactory = Callable[[], Awaitable[BrowsingSurfacePort]]
Sleep = Callable[[float], Awaitable[None]]


class OutcomeLatch:
    """One-shot gate in front of an outcome callback.

    The first ``deliver`` goes through, every later one is dropped.
    ``close`` drops everything without delivering (superseded run).
    """

    def __init__(self, callback: OutcomeCallback) -> None:
        self._callback = callback
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def close(self) -> None:
        self._fired = True

    def deliver(self, outcome: ProbeOutcome) -> bool:
        if self._fired:
            return False
        self._fired = True
        try:
            self._callback(outcome)
        except Exception:  # noqa: BLE001
            log.warning("probe_callback_error", exc_info=True)
        return True


@dataclass
class _ProbeRun:
    """Discovery state of one probe() call. Never reused."""

    run_id: int
    url: str
    latch: OutcomeLatch
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class PageProbe:
    """Probe URLs one at a time on a lazily created browsing surface.

    Usage::

        probe = PageProbe(pool.new_surface)
        probe.probe(url, on_outcome)   # returns immediately
        ...
        await probe.close()
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._surface_factory = surface_factory
        self._surface: BrowsingSurfacePort | None = None
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._timeout = timeout_seconds
        self._sleep = sleep
        self._run_ids = itertools.count(1)
        self._run: _ProbeRun | None = None

    @property
    def active(self) -> bool:
        return self._run is not None and not self._run.latch.fired

    # ------------------------------------------------------------------
    # Public API (PageProbePort)
    # ------------------------------------------------------------------

    def probe(self, url: str, on_outcome: OutcomeCallback) -> None:
        """Schedule discovery for *url*; *on_outcome* fires exactly once.

        A run still in flight is superseded first: its latch is closed,
        its task cancelled and none of its signals reach anyone.
        """
        self._supersede()
        run = _ProbeRun(
            run_id=next(self._run_ids),
            url=url,
            latch=OutcomeLatch(on_outcome),
        )
        self._run = run
        run.task = asyncio.get_running_loop().create_task(
            self._execute(run),
            name=f"page-probe-{run.run_id}",
        )
        log.debug("probe_scheduled", run_id=run.run_id, url=url)

    async def close(self) -> None:
        run = self._run
        self._supersede()
        if run is not None and run.task is not None:
            with suppress(asyncio.CancelledError):
                await run.task
        if self._surface is not None:
            surface, self._surface = self._surface, None
            await surface.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _supersede(self) -> None:
        run, self._run = self._run, None
        if run is None:
            return
        if not run.latch.fired:
            log.debug("probe_superseded", run_id=run.run_id, url=run.url)
        run.latch.close()
        if self._surface is not None:
            self._surface.on_resource_requested(None)
        if run.task is not None and not run.task.done():
            run.task.cancel()

    async def _ensure_surface(self) -> BrowsingSurfacePort:
        if self._surface is None:
            self._surface = await self._surface_factory()
        return self._surface

    async def _execute(self, run: _ProbeRun) -> None:
        try:
            outcome = await self._discover_with_deadline(run)
        except (PageLoadError, ProbeTimeout) as exc:
            log.info(
                "probe_not_found",
                run_id=run.run_id,
                url=run.url,
                reason=type(exc).__name__,
                error=str(exc),
            )
            outcome = NotFound(reason=type(exc).__name__)
        except asyncio.CancelledError:
            run.latch.close()
            raise
        except Exception as exc:  # noqa: BLE001
            log.warning("probe_error", run_id=run.run_id, url=run.url, exc_info=True)
            outcome = ProbeError(reason=str(exc) or type(exc).__name__)

        if outcome is not None:
            source = "dom" if isinstance(outcome, Found) else "probe"
            self._deliver(run, outcome, source=source)

    async def _discover_with_deadline(self, run: _ProbeRun) -> ProbeOutcome | None:
        try:
            return await asyncio.wait_for(self._discover(run), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise ProbeTimeout(
                f"no outcome for {run.url} within {self._timeout}s"
            ) from exc

    async def _discover(self, run: _ProbeRun) -> ProbeOutcome | None:
        """Load the page, then poll the DOM.

        Returns ``None`` when network sniffing already won the race.
        """
        surface = await self._ensure_surface()
        surface.on_resource_requested(lambda url: self._on_resource(run, url))
        await surface.load_url(run.url)
        log.debug("probe_page_loaded", run_id=run.run_id, url=run.url)

        for attempt in range(1, self._max_attempts + 1):
            if run.latch.fired:
                return None
            try:
                snapshot = await surface.evaluate_script(DOM_QUERY_SCRIPT)
            except Exception as exc:  # noqa: BLE001
                # Navigation in progress or page script error: try again later.
                log.debug(
                    "probe_script_error",
                    run_id=run.run_id,
                    attempt=attempt,
                    error=str(exc),
                )
                snapshot = None
            match = match_dom_snapshot(snapshot)
            if match is not None:
                log.debug("probe_dom_match", run_id=run.run_id, attempt=attempt)
                return Found(video_url=match)
            await self._sleep(self._poll_interval)

        if run.latch.fired:
            return None
        return NotFound(reason="dom_attempts_exhausted")

    def _on_resource(self, run: _ProbeRun, url: str) -> None:
        if run is not self._run or run.latch.fired:
            return
        if not is_video_resource(url):
            return
        self._deliver(run, Found(video_url=url), source="network")
        # First match wins: stop observing and stop the DOM poller.
        if self._surface is not None:
            self._surface.on_resource_requested(None)
        if run.task is not None and not run.task.done():
            run.task.cancel()

    def _deliver(self, run: _ProbeRun, outcome: ProbeOutcome, *, source: str) -> None:
        if run.latch.deliver(outcome):
            log.info(
                "probe_outcome",
                run_id=run.run_id,
                url=run.url,
                source=source,
                outcome=type(outcome).__name__,
                video_url=getattr(outcome, "video_url", None),
            )
        else:
            log.debug(
                "probe_duplicate_discarded",
                run_id=run.run_id,
                source=source,
                outcome=type(outcome).__name__,
            )
