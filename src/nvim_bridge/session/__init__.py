"""RPC channel contract and the msgpack-rpc implementation."""

from .msgpack_rpc import MsgpackRpcSession, RemoteRef, open_session, pack_message
from .transport import (
    DISCONNECT,
    NOTIFICATION,
    REQUEST,
    Responder,
    SessionTransport,
    TransportEvents,
)

__all__ = [
    "DISCONNECT",
    "NOTIFICATION",
    "REQUEST",
    "MsgpackRpcSession",
    "RemoteRef",
    "Responder",
    "SessionTransport",
    "TransportEvents",
    "open_session",
    "pack_message",
]
