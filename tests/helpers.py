"""Test doubles shared across the suite."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from nvim_bridge.session.transport import TransportEvents


def api_info(major: int, minor: int, patch: int) -> List[Any]:
    return [1, {"version": {"major": major, "minor": minor, "patch": patch}}]


class FakeSession:
    """Scripted transport: answers requests from ``responses`` by method name.

    A response may be a value, an exception instance (raised), or a callable
    receiving the request arguments.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.events = TransportEvents()
        self.requests: List[Tuple[str, List[Any]]] = []
        self.responses: Dict[str, Any] = {
            "nvim_get_api_info": api_info(0, 2, 1),
            "nvim_ui_attach": None,
            "nvim_command": None,
            "nvim_call_function": None,
        }
        self.responses.update(responses or {})
        self.closed = False

    async def request(self, method: str, args: Any) -> Any:
        self.requests.append((method, list(args)))
        await asyncio.sleep(0)
        response = self.responses.get(method)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(*args)
        return response

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self.events.subscribe(event, handler)

    def close(self) -> None:
        self.closed = True

    def notify(self, method: str, args: Any) -> None:
        self.events.emit("notification", method, args)

    def disconnect(self) -> None:
        self.events.emit("disconnect")

    def calls(self, method: str) -> List[List[Any]]:
        return [args for name, args in self.requests if name == method]

