"""In-memory registry of live resolution sessions."""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from visionlink.application.resolution_session import ResolutionSession
from visionlink.application.use_cases.resolve_video import ResolveVideoUseCase
from visionlink.domain.entities.resolution import (
    ResolutionEvent,
    ResolutionFailed,
    VideoResolved,
)

log = structlog.get_logger(__name__)


@dataclass
class SessionEntry:
    session_id: str
    session: ResolutionSession | None = None
    events: list[ResolutionEvent] = field(default_factory=list)
    # Clock reading at the terminal event; None while still probing.
    finished_at: float | None = None
    released: bool = False


class SessionRegistry:
    """Keeps sessions addressable by id for the HTTP API.

    The probe (browser context) of a session is released as soon as the
    session reaches a terminal state. The finished entry then stays
    readable for ``retention_seconds``. Whenever more than ``max_entries``
    sessions are held, released entries are evicted oldest first even if
    their retention has not run out. Sessions still probing are only
    dropped through ``remove``.
    """

    def __init__(
        self,
        resolve_uc: ResolveVideoUseCase,
        *,
        retention_seconds: float = 300.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._resolve_uc = resolve_uc
        self._retention_seconds = retention_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, SessionEntry] = {}
        self._release_tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def create(self, title: str, season: int, episode: int) -> SessionEntry:
        """Start a session. Raises ``InvalidRequest`` for bad input."""
        entry = SessionEntry(session_id=uuid.uuid4().hex)

        def _listener(event: ResolutionEvent) -> None:
            entry.events.append(event)
            if isinstance(event, (VideoResolved, ResolutionFailed)):
                entry.finished_at = self._clock()
                self._schedule_release(entry.session_id)

        entry.session = self._resolve_uc.start(
            title, season, episode, listener=_listener
        )
        self._entries[entry.session_id] = entry
        self._evict()
        log.info("session_registered", session_id=entry.session_id, title=title)
        return entry

    def get(self, session_id: str) -> SessionEntry | None:
        return self._entries.get(session_id)

    async def remove(self, session_id: str) -> bool:
        """Cancel, release and forget a session. False if unknown."""
        entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        if entry.session is not None:
            await entry.session.close()
        log.info("session_removed", session_id=session_id)
        return True

    async def close_all(self) -> None:
        for session_id in list(self._entries):
            await self.remove(session_id)
        if self._release_tasks:
            await asyncio.gather(*self._release_tasks, return_exceptions=True)

    def _schedule_release(self, session_id: str) -> None:
        task = asyncio.get_running_loop().create_task(
            self._release(session_id), name=f"session-release-{session_id}"
        )
        self._release_tasks.add(task)
        task.add_done_callback(self._release_tasks.discard)

    async def _release(self, session_id: str) -> None:
        entry = self._entries.get(session_id)
        if entry is None or entry.session is None:
            return
        try:
            await entry.session.close()
        except Exception:  # noqa: BLE001
            log.warning("session_release_error", session_id=session_id, exc_info=True)
        finally:
            entry.released = True
        self._evict()

    def _evict(self) -> None:
        """Drop released entries past retention, then any beyond capacity."""
        now = self._clock()
        released = sorted(
            (e for e in self._entries.values() if e.released),
            key=lambda e: e.finished_at or 0.0,
        )
        overflow = len(self._entries) - self._max_entries
        for entry in released:
            expired = now - (entry.finished_at or 0.0) >= self._retention_seconds
            if not expired and overflow <= 0:
                break
            del self._entries[entry.session_id]
            overflow -= 1
            log.debug(
                "session_evicted",
                session_id=entry.session_id,
                reason="expired" if expired else "capacity",
            )
