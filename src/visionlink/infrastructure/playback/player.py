"""Hand resolved URLs to an external media player (mpv by default)."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

import structlog

from visionlink.domain.exceptions import PlayerNotFound

log = structlog.get_logger(__name__)


class SubprocessPlayer:
    """Launch ``command`` with the video URL and return without waiting.

    *command* may carry extra arguments, e.g. ``"mpv --fs"``.
    """

    def __init__(self, command: str = "mpv", *, user_agent: str | None = None) -> None:
        self._argv = shlex.split(command)
        if not self._argv:
            raise PlayerNotFound("empty player command")
        self._user_agent = user_agent

    def _build_argv(self, executable: str, video_url: str, title: str | None) -> list[str]:
        argv = [executable, *self._argv[1:]]
        if Path(executable).stem == "mpv":
            if title:
                argv.append(f"--force-media-title={title}")
            if self._user_agent:
                argv.append(f"--user-agent={self._user_agent}")
        argv.append(video_url)
        return argv

    def play(self, video_url: str, *, title: str | None = None) -> None:
        executable = shutil.which(self._argv[0])
        if executable is None:
            raise PlayerNotFound(f"player not installed: {self._argv[0]}")
        argv = self._build_argv(executable, video_url, title)
        log.info("player_launch", player=self._argv[0], video_url=video_url)
        subprocess.Popen(  # noqa: S603
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

