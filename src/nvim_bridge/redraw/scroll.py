"""Coalesced "scroll settled" notifications."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Optional

from nvim_bridge.errors import TransportError
from nvim_bridge.signals import Event

EventContext = Any
Spawn = Callable[[Coroutine[Any, Any, None]], "asyncio.Task[None]"]


def _create_task(coro: Coroutine[Any, Any, None]) -> "asyncio.Task[None]":
    return asyncio.get_running_loop().create_task(coro)


class ScrollSettledNotifier:
    """Keeps at most one pending notification task.

    While a task is pending, ``schedule`` is a no-op. When the task fires it
    fetches the context current at that moment, so the latest state wins.
    """

    def __init__(
        self,
        fetch_context: Callable[[], Awaitable[EventContext]],
        on_error: Callable[[Exception], None],
        *,
        delay: float = 0.0,
        spawn: Spawn = _create_task,
        feed: Optional[Event[EventContext]] = None,
    ) -> None:
        self._fetch_context = fetch_context
        self._on_error = on_error
        self._delay = delay
        self._spawn = spawn
        self.feed: Event[EventContext] = feed or Event("scroll")
        self._pending: Optional["asyncio.Task[None]"] = None

    @property
    def pending(self) -> Optional["asyncio.Task[None]"]:
        return self._pending

    def schedule(self) -> Optional["asyncio.Task[None]"]:
        if self._pending is not None:
            return None
        self._pending = self._spawn(self._fire())
        return self._pending

    async def _fire(self) -> None:
        try:
            await asyncio.sleep(self._delay)
            context = await self._fetch_context()
        except TransportError as exc:
            self._on_error(exc)
        else:
            self.feed.emit(context)
        finally:
            self._pending = None


__all__ = ["ScrollSettledNotifier"]
