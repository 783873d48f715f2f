"""Audio cue played when a scan is accepted."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import sys
from typing import Protocol, Sequence, TextIO

logger = logging.getLogger(__name__)


class FeedbackUnavailable(RuntimeError):
    pass


class Player(Protocol):
    def play(self) -> None:
        ...


class SystemSoundPlayer:
    """Plays a sound file through the first available system helper."""

    _PLAYERS: Sequence[tuple[str, Sequence[str]]] = (
        ("paplay", ("paplay",)),
        ("aplay", ("aplay", "-q")),
        ("afplay", ("afplay",)),
    )

    def __init__(self, sound_path: str, timeout: float = 5.0) -> None:
        self._sound_path = sound_path
        self._timeout = timeout
        self._cmd = self._find_command(self._PLAYERS)
        if not self._cmd:
            raise FeedbackUnavailable("no audio helper found; install paplay, aplay, or afplay")

    def _find_command(self, candidates: Sequence[tuple[str, Sequence[str]]]) -> list[str] | None:
        for name, cmd in candidates:
            if shutil.which(name):
                return list(cmd)
        return None

    def play(self) -> None:
        subprocess.run(
            [*self._cmd, self._sound_path],
            check=True,
            capture_output=True,
            timeout=self._timeout,
        )


class BellPlayer:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def play(self) -> None:
        stream = self._stream or sys.stderr
        stream.write("\a")
        stream.flush()


class NullPlayer:
    def play(self) -> None:
        return None


def build_player(name: str, sound_path: str) -> Player:
    if name == "none":
        return NullPlayer()
    if name == "bell":
        return BellPlayer()
    try:
        return SystemSoundPlayer(sound_path)
    except FeedbackUnavailable as exc:
        logger.info("%s; falling back to terminal bell", exc)
        return BellPlayer()


class FeedbackEmitter:
    """Fire-and-forget wrapper around a player."""

    def __init__(self, player: Player) -> None:
        self._player = player

    def play(self) -> asyncio.Task:
        """Schedule the cue on a worker thread and return without waiting."""

        return asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            await asyncio.to_thread(self._player.play)
        except Exception as exc:
            logger.warning("feedback cue failed: %s", exc)
