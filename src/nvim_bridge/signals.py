"""Typed observer objects used for every feed the bridge publishes."""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class Event(Generic[T]):
    """Single-channel event: each ``emit`` reaches every subscriber exactly once.

    Subscribers run synchronously in subscription order. Void feeds are
    declared as ``Event[None]`` and emitted with no argument.
    """

    def __init__(self, name: str = "event") -> None:
        self.name = name
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, payload: T = None) -> None:  # type: ignore[assignment]
        for callback in list(self._subscribers):
            callback(payload)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, subscribers={len(self._subscribers)})"


__all__ = ["Event", "Unsubscribe"]
