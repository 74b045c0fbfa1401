"""Autocommand fan-out keyed by event name."""

from __future__ import annotations

from typing import Callable, Dict, List, Protocol

from nvim_bridge.buffer.updates import EventContext
from nvim_bridge.signals import Unsubscribe

AutocommandHandler = Callable[[EventContext], None]


class AutocommandNotifier(Protocol):
    def notify_autocommand(self, event_name: str, context: EventContext) -> None:
        ...


class AutoCommands:
    """Subscribers per autocommand name (``BufEnter``, ``CursorMoved``, ...)."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[AutocommandHandler]] = {}

    def subscribe(self, event_name: str, callback: AutocommandHandler) -> Unsubscribe:
        handlers = self._subscribers.setdefault(event_name, [])
        handlers.append(callback)

        def unsubscribe() -> None:
            if callback in handlers:
                handlers.remove(callback)

        return unsubscribe

    def notify_autocommand(self, event_name: str, context: EventContext) -> None:
        for callback in list(self._subscribers.get(event_name, ())):
            callback(context)


__all__ = ["AutoCommands", "AutocommandHandler", "AutocommandNotifier"]
