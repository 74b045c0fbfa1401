"""Contract between the bridge and the RPC channel to the engine."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Protocol, Sequence

NOTIFICATION = "notification"
REQUEST = "request"
DISCONNECT = "disconnect"

EVENT_CLASSES = (NOTIFICATION, REQUEST, DISCONNECT)


class Responder(Protocol):
    """Answers one inbound request from the engine."""

    def send(self, result: Any, *, is_error: bool = False) -> None:
        ...


class SessionTransport(Protocol):
    """One RPC channel to the engine.

    ``request`` raises :class:`nvim_bridge.errors.TransportError` when the
    channel is down or the engine answers with an error value. Handlers are
    registered per event class: ``notification(method, args)``,
    ``request(method, args, responder)`` and ``disconnect()``.
    """

    async def request(self, method: str, args: Sequence[Any]) -> Any:
        ...

    def on(self, event: str, handler: Callable[..., None]) -> None:
        ...

    def close(self) -> None:
        ...


class TransportEvents:
    """Handler table keyed by event class, shared by transport implementations."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Callable[..., None]]] = {
            name: [] for name in EVENT_CLASSES
        }

    def subscribe(self, event: str, handler: Callable[..., None]) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown transport event '{event}'")
        self._handlers[event].append(handler)

    def handlers(self, event: str) -> tuple[Callable[..., None], ...]:
        return tuple(self._handlers.get(event, ()))

    def emit(self, event: str, *args: Any) -> None:
        for handler in self.handlers(event):
            handler(*args)


__all__ = [
    "DISCONNECT",
    "EVENT_CLASSES",
    "NOTIFICATION",
    "REQUEST",
    "Responder",
    "SessionTransport",
    "TransportEvents",
]
