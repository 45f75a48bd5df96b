"""State machine that drives one resolution request end-to-end.

IDLE -> PROBING -> SUCCEEDED | PROBING (next step) | FAILED | CANCELLED

The session owns the step index and dispatches one step URL at a time to
its PageProbe. Every dispatch gets a fresh token; an outcome carrying a
stale token (after a forced jump or a cancel) is dropped, so nothing is
delivered after a terminal state.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable

import structlog

from visionlink.application.source_chain import SourceChain
from visionlink.domain.entities.resolution import (
    Found,
    ProbeOutcome,
    ResolutionEvent,
    ResolutionFailed,
    ResolutionRequest,
    SessionStatus,
    StepStarted,
    VideoResolved,
)
from visionlink.domain.exceptions import (
    ChainExhausted,
    ResolutionCancelled,
    SessionStateError,
    StepUrlInvalid,
)
from visionlink.domain.ports.page_probe import PageProbePort

log = structlog.get_logger(__name__)

SessionListener = Callable[[ResolutionEvent], None]


class ResolutionSession:
    """Fallback-chain driver for a single (title, season, episode).

    Not thread-safe; all calls and probe callbacks run on one event loop.
    """

    def __init__(
        self,
        request: ResolutionRequest,
        *,
        chain: SourceChain,
        probe: PageProbePort,
        listener: SessionListener | None = None,
    ) -> None:
        self.request = request
        self._chain = chain
        self._probe = probe
        self._listener = listener
        self._status = SessionStatus.IDLE
        self._step_index = 0
        self._tokens = itertools.count(1)
        self._active_token: int | None = None
        self.video_url: str | None = None
        self.failure_reason: str | None = None
        self._finished = asyncio.Event()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def current_step_index(self) -> int:
        return self._step_index

    @property
    def chain_length(self) -> int:
        return len(self._chain)

    @property
    def current_url(self) -> str | None:
        if self._status == SessionStatus.IDLE:
            return None
        return self._chain.build_url(self.request, self._step_index)

    @property
    def on_final_step(self) -> bool:
        return self._step_index == self._chain.final_index

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Dispatch step 0. A session can only be started once."""
        if self._status != SessionStatus.IDLE:
            raise SessionStateError(f"session already started ({self._status.value})")
        url = self._chain.build_url(self.request, 0)
        self._status = SessionStatus.PROBING
        log.info(
            "session_started",
            title=self.request.title,
            season=self.request.season,
            episode=self.request.episode,
            chain_length=len(self._chain),
        )
        self._dispatch(0, url)

    def force_final_step(self) -> None:
        """Skip the remaining site steps and probe the web-search fallback.

        Only meaningful while probing a non-final step; otherwise a no-op.
        The outcome of the probe currently in flight is discarded.
        """
        if self._status != SessionStatus.PROBING or self.on_final_step:
            log.debug(
                "session_force_final_ignored",
                status=self._status.value,
                step_index=self._step_index,
            )
            return
        log.info(
            "session_force_final",
            from_step=self._step_index,
            to_step=self._chain.final_index,
        )
        self._advance_to(self._chain.final_index)

    def cancel(self) -> None:
        """Stop caring about this request. In-flight outcomes are ignored."""
        if self._status != SessionStatus.PROBING:
            return
        self._status = SessionStatus.CANCELLED
        self._active_token = None
        self._finished.set()
        log.info("session_cancelled", step_index=self._step_index)

    async def wait(self) -> str:
        """Block until the session is terminal and return the video URL.

        Raises ``ChainExhausted`` when every step failed and
        ``ResolutionCancelled`` when the session was cancelled.
        """
        await self._finished.wait()
        if self._status == SessionStatus.SUCCEEDED:
            assert self.video_url is not None  # invariant: succeeded implies url
            return self.video_url
        if self._status == SessionStatus.CANCELLED:
            raise ResolutionCancelled(self.request.title)
        raise ChainExhausted(self.failure_reason or "chain_exhausted")

    async def close(self) -> None:
        """Cancel if still probing and release the probe's browser page."""
        self.cancel()
        await self._probe.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch(self, step_index: int, url: str) -> None:
        token = next(self._tokens)
        self._active_token = token
        step = self._chain.step(step_index)
        log.info(
            "session_step_started",
            step_index=step_index,
            step=step.name,
            url=url,
        )
        self._emit(StepStarted(step_index=step_index, step_name=step.name, url=url))
        # The listener may have cancelled us from within StepStarted.
        if self._active_token != token:
            return
        self._probe.probe(url, lambda outcome: self._on_outcome(token, outcome))

    def _advance_to(self, step_index: int) -> None:
        if step_index < self._step_index:
            raise SessionStateError("step index must never decrease")
        try:
            url = self._chain.build_url(self.request, step_index)
        except StepUrlInvalid as exc:
            log.error("session_step_url_invalid", step_index=step_index, error=str(exc))
            self._fail(f"step_url_invalid: {exc}")
            return
        self._step_index = step_index
        self._dispatch(step_index, url)

    def _on_outcome(self, token: int, outcome: ProbeOutcome) -> None:
        if token != self._active_token or self._status != SessionStatus.PROBING:
            log.debug(
                "session_outcome_discarded",
                token=token,
                status=self._status.value,
                outcome=type(outcome).__name__,
            )
            return
        self._active_token = None

        if isinstance(outcome, Found):
            self._status = SessionStatus.SUCCEEDED
            self.video_url = outcome.video_url
            self._finished.set()
            log.info(
                "session_succeeded",
                step_index=self._step_index,
                video_url=outcome.video_url,
            )
            self._emit(
                VideoResolved(video_url=outcome.video_url, step_index=self._step_index)
            )
            return

        log.info(
            "session_step_failed",
            step_index=self._step_index,
            reason=outcome.reason,
        )
        if self._step_index + 1 < len(self._chain):
            self._advance_to(self._step_index + 1)
        else:
            self._fail("chain_exhausted")

    def _fail(self, reason: str) -> None:
        self._status = SessionStatus.FAILED
        self._active_token = None
        self.failure_reason = reason
        self._finished.set()
        log.warning("session_failed", reason=reason, step_index=self._step_index)
        self._emit(ResolutionFailed(reason=reason))

    def _emit(self, event: ResolutionEvent) -> None:
        if self._listener is None:
            return
        try:
            self._listener(event)
        except Exception:  # noqa: BLE001
            log.warning(
                "session_listener_error",
                event=type(event).__name__,
                exc_info=True,
            )
