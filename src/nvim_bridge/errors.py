"""Error taxonomy shared by the session, attach, and notification layers."""

from __future__ import annotations

from typing import Any, Optional


class NvimBridgeError(RuntimeError):
    """Base class for every error raised by the bridge."""


class TransportError(NvimBridgeError):
    """Raised when an RPC request fails or the channel is unusable."""

    def __init__(self, message: str, *, method: Optional[str] = None) -> None:
        super().__init__(message)
        self.method = method


class UnsupportedVersion(NvimBridgeError):
    """Raised when the engine reports an API version we cannot attach to."""

    def __init__(self, version: Any) -> None:
        super().__init__(f"Unsupported version of Neovim: {version}")
        self.version = version


class UnexpectedDisconnect(NvimBridgeError):
    """Emitted when the engine goes away without announcing ``VimLeave``."""


class MalformedNotification(NvimBridgeError, ValueError):
    """Raised by the decoders when a payload does not have the expected shape."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


__all__ = [
    "NvimBridgeError",
    "TransportError",
    "UnsupportedVersion",
    "UnexpectedDisconnect",
    "MalformedNotification",
]
