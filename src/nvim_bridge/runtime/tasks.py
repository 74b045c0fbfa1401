"""Book-keeping for fire-and-forget coroutines started by the bridge."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Optional, Set, TypeVar

from . import telemetry

T = TypeVar("T")


class BackgroundTasks:
    """Holds strong references to spawned tasks until they finish.

    A task that ends with an exception is logged as ``tasks.failed`` and
    handed to ``on_error``; cancelled tasks are not failures.
    """

    def __init__(
        self,
        *,
        on_error: Optional[Callable[[Exception], None]] = None,
        logger_name: str | None = "nvim_bridge.tasks",
    ) -> None:
        self._tasks: Set[asyncio.Task[Any]] = set()
        self._on_error = on_error
        self._logger_name = logger_name

    def spawn(
        self, coro: Coroutine[Any, Any, T], *, name: Optional[str] = None
    ) -> asyncio.Task[T]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def __len__(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every task (including ones spawned meanwhile) is done."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        telemetry.record_event(
            "tasks.failed",
            level="error",
            data={"task": task.get_name(), "error": repr(exc)},
            logger_name=self._logger_name,
        )
        if self._on_error is not None and isinstance(exc, Exception):
            self._on_error(exc)


__all__ = ["BackgroundTasks"]
