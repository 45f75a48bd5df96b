"""Video resolution use case.

(title, season, episode) -> SourceChain snapshot + fresh PageProbe
-> ResolutionSession -> video URL.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from visionlink.application.resolution_session import (
    ResolutionSession,
    SessionListener,
)
from visionlink.application.source_chain import (
    SourceChain,
    SourceSettings,
    build_default_chain,
)
from visionlink.domain.entities.resolution import ResolutionRequest, StepStarted
from visionlink.domain.ports.page_probe import PageProbePort

log = structlog.get_logger(__name__)

ProbeFactory = Callable[[], PageProbePort]
ChainBuilder = Callable[[SourceSettings], SourceChain]


class ResolveVideoUseCase:
    """Creates and runs resolution sessions.

    Each session gets its own probe (and therefore its own browser page);
    no mutable state is shared between sessions.
    """

    def __init__(
        self,
        *,
        settings: SourceSettings,
        probe_factory: ProbeFactory,
        chain_builder: ChainBuilder = build_default_chain,
    ) -> None:
        self.settings = settings
        self._probe_factory = probe_factory
        self._chain_builder = chain_builder

    def start(
        self,
        title: str,
        season: int,
        episode: int,
        listener: SessionListener | None = None,
    ) -> ResolutionSession:
        """Start a session and return it immediately.

        Raises ``InvalidRequest`` for an empty title or non-positive numbers.
        """
        request = ResolutionRequest(title=title, season=season, episode=episode)
        session = ResolutionSession(
            request,
            chain=self._chain_builder(self.settings),
            probe=self._probe_factory(),
            listener=listener,
        )
        session.start()
        return session

    async def resolve_url(
        self,
        title: str,
        season: int,
        episode: int,
        *,
        force_final: bool = False,
        on_step: Callable[[StepStarted], None] | None = None,
    ) -> str:
        """Resolve to a playable URL or raise ``ChainExhausted``.

        When the awaiting task is cancelled the session is cancelled too
        and its probe released before the cancellation propagates.
        """

        def _listener(event: object) -> None:
            if on_step is not None and isinstance(event, StepStarted):
                on_step(event)

        session = self.start(title, season, episode, listener=_listener)
        if force_final:
            session.force_final_step()
        try:
            return await session.wait()
        except asyncio.CancelledError:
            session.cancel()
            raise
        finally:
            await session.close()
            log.debug(
                "resolve_finished",
                title=title,
                status=session.status.value,
                step_index=session.current_step_index,
            )
