"""Bell playback through an external audio player."""

from __future__ import annotations

import asyncio
import shlex
import sys
from typing import List, Optional

from .telemetry import env


def _default_player() -> str:
    if sys.platform == "darwin":
        return "afplay"
    if sys.platform.startswith("win"):
        return "powershell -c (New-Object Media.SoundPlayer $args[0]).PlaySync()"
    return "paplay"


def player_command(url: str, *, player: Optional[str] = None) -> List[str]:
    path = url[len("file://") :] if url.startswith("file://") else url
    command = player or env("BELL_PLAYER") or _default_player()
    return [*shlex.split(command), path]


async def play_sound(url: str, *, player: Optional[str] = None) -> int:
    """Play ``url`` and return the player's exit status."""

    argv = player_command(url, player=player)
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    return await process.wait()


__all__ = ["play_sound", "player_command"]
