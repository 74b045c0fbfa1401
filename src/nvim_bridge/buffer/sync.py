"""Full-buffer synchronization against the engine, bounded by a line ceiling."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Sequence

from nvim_bridge.errors import TransportError
from nvim_bridge.runtime import telemetry
from nvim_bridge.runtime.config import MAX_LINES_FOR_BUFFER_UPDATE
from nvim_bridge.signals import Event

from .updates import EventContext, FullBufferUpdate

RequestFn = Callable[[str, Sequence[Any]], Awaitable[Any]]


class BufferSynchronizer:
    """Fetches a line range and republishes it as a full snapshot.

    Updates whose end line is above ``max_lines`` are dropped outright: no
    partial fetch and no error. Large files would otherwise flood the
    channel between the engine, the bridge and its consumers.
    """

    def __init__(
        self,
        request: RequestFn,
        on_error: Callable[[Exception], None],
        *,
        max_lines: int = MAX_LINES_FOR_BUFFER_UPDATE,
        feed: Optional[Event[FullBufferUpdate]] = None,
        logger_name: str | None = "nvim_bridge.buffer",
    ) -> None:
        self._request = request
        self._on_error = on_error
        self.max_lines = max_lines
        self.feed: Event[FullBufferUpdate] = feed or Event("buffer_update")
        self._logger_name = logger_name

    def accepts(self, end_line: int) -> bool:
        return end_line <= self.max_lines

    async def on_full_update_trigger(
        self, context: EventContext, start_line: int, end_line: int
    ) -> Optional[FullBufferUpdate]:
        if not self.accepts(end_line):
            telemetry.record_event(
                "buffer.update_dropped",
                level="debug",
                data={"end_line": end_line, "max_lines": self.max_lines},
                logger_name=self._logger_name,
            )
            return None

        try:
            lines = await self._request(
                "nvim_buf_get_lines",
                [context["bufferNumber"], start_line - 1, end_line, False],
            )
        except TransportError as exc:
            self._on_error(exc)
            return None

        update = FullBufferUpdate(context=context, lines=tuple(lines))
        self.feed.emit(update)
        return update


__all__ = ["BufferSynchronizer", "RequestFn"]
