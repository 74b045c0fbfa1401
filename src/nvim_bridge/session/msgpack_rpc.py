"""msgpack-rpc session over a pair of asyncio streams.

Message shapes follow the msgpack-rpc protocol used by Neovim::

    [0, msgid, method, params]   request
    [1, msgid, error, result]    response
    [2, method, params]          notification

Neovim's remote handles travel as ext types 0 (Buffer), 1 (Window) and
2 (Tabpage); they are decoded to :class:`RemoteRef` and encoded back.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

import msgpack

from nvim_bridge.errors import TransportError
from nvim_bridge.runtime import telemetry

from .transport import DISCONNECT, NOTIFICATION, REQUEST, TransportEvents

MSG_REQUEST = 0
MSG_RESPONSE = 1
MSG_NOTIFICATION = 2

READ_CHUNK_SIZE = 64 * 1024

EXT_KINDS = {0: "Buffer", 1: "Window", 2: "Tabpage"}
EXT_CODES = {kind: code for code, kind in EXT_KINDS.items()}


@dataclass(frozen=True, slots=True)
class RemoteRef:
    """Handle to a buffer, window, or tabpage living in the engine."""

    kind: str
    id: int


def _decode_ext(code: int, data: bytes) -> Any:
    kind = EXT_KINDS.get(code)
    if kind is None:
        return msgpack.ExtType(code, data)
    return RemoteRef(kind=kind, id=msgpack.unpackb(data))


def _encode_ext(value: Any) -> Any:
    if isinstance(value, RemoteRef):
        return msgpack.ExtType(EXT_CODES[value.kind], msgpack.packb(value.id))
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def pack_message(message: Sequence[Any]) -> bytes:
    return msgpack.packb(list(message), use_bin_type=True, default=_encode_ext)


def _error_message(error: Any) -> str:
    if isinstance(error, (list, tuple)) and len(error) == 2:
        return str(error[1])
    return str(error)


class MsgpackResponder:
    """Writes the response frame for one inbound request."""

    def __init__(self, session: "MsgpackRpcSession", msgid: int) -> None:
        self._session = session
        self.msgid = msgid
        self.sent = False

    def send(self, result: Any, *, is_error: bool = False) -> None:
        if self.sent:
            raise RuntimeError(f"Response for request {self.msgid} already sent")
        self.sent = True
        if is_error:
            message = [MSG_RESPONSE, self.msgid, [0, str(result)], None]
        else:
            message = [MSG_RESPONSE, self.msgid, None, result]
        self._session.write(message)


class MsgpackRpcSession:
    """:class:`~nvim_bridge.session.transport.SessionTransport` over streams."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        logger_name: str | None = "nvim_bridge.session",
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._logger_name = logger_name
        self._events = TransportEvents()
        self._unpacker = msgpack.Unpacker(
            raw=False, ext_hook=_decode_ext, strict_map_key=False
        )
        self._ids = itertools.count(1)
        self._pending: Dict[int, Tuple[str, asyncio.Future[Any]]] = {}
        self._read_task: asyncio.Task[None] | None = None
        self._closed = False
        self._disconnected = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._events.subscribe(event, handler)

    def start(self) -> None:
        """Begin reading frames from the engine."""

        if self._read_task is not None:
            return
        self._read_task = asyncio.get_running_loop().create_task(
            self._read_loop(), name="nvim-rpc-reader"
        )

    async def request(self, method: str, args: Sequence[Any]) -> Any:
        if self._closed:
            raise TransportError("RPC channel is closed", method=method)
        msgid = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[msgid] = (method, future)
        try:
            self.write([MSG_REQUEST, msgid, method, list(args)])
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            self._pending.pop(msgid, None)
            raise TransportError(str(exc), method=method) from exc
        return await future

    def write(self, message: Sequence[Any]) -> None:
        self._writer.write(pack_message(message))

    def close(self) -> None:
        if self._read_task is not None and not self._read_task.done():
            self._read_task.cancel()
        # a reader cancelled before its first step never reaches its finally
        self._on_closed()
        self._writer.close()

    async def _read_loop(self) -> None:
        try:
            while True:
                chunk = await self._reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._unpacker.feed(chunk)
                for message in self._unpacker:
                    self._dispatch(message)
        except (ConnectionError, OSError, ValueError) as exc:
            telemetry.record_event(
                "session.read_failed",
                level="error",
                data={"error": str(exc)},
                logger_name=self._logger_name,
            )
        finally:
            self._on_closed()

    def _dispatch(self, message: Any) -> None:
        if not isinstance(message, (list, tuple)) or not message:
            self._warn_malformed(message)
            return
        kind = message[0]
        if kind == MSG_RESPONSE and len(message) == 4:
            self._resolve(message[1], message[2], message[3])
        elif kind == MSG_NOTIFICATION and len(message) == 3:
            self._call_handlers(NOTIFICATION, message[1], message[2])
        elif kind == MSG_REQUEST and len(message) == 4:
            responder = MsgpackResponder(self, message[1])
            self._call_handlers(REQUEST, message[2], message[3], responder)
        else:
            self._warn_malformed(message)

    def _resolve(self, msgid: int, error: Any, result: Any) -> None:
        entry = self._pending.pop(msgid, None)
        if entry is None:
            telemetry.record_event(
                "session.orphan_response",
                level="warning",
                data={"msgid": msgid},
                logger_name=self._logger_name,
            )
            return
        method, future = entry
        if future.done():
            return
        if error is not None:
            future.set_exception(TransportError(_error_message(error), method=method))
        else:
            future.set_result(result)

    def _call_handlers(self, event: str, *args: Any) -> None:
        for handler in self._events.handlers(event):
            try:
                handler(*args)
            except Exception as exc:
                telemetry.record_event(
                    "session.handler_failed",
                    level="error",
                    data={"event": event, "error": repr(exc)},
                    logger_name=self._logger_name,
                )

    def _warn_malformed(self, message: Any) -> None:
        telemetry.record_event(
            "session.malformed_message",
            level="warning",
            data={"message": message},
            logger_name=self._logger_name,
        )

    def _on_closed(self) -> None:
        self._closed = True
        pending, self._pending = self._pending, {}
        for method, future in pending.values():
            if not future.done():
                future.set_exception(
                    TransportError("RPC channel closed", method=method)
                )
        if not self._disconnected:
            self._disconnected = True
            self._call_handlers(DISCONNECT)


async def open_session(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    *,
    logger_name: Optional[str] = "nvim_bridge.session",
) -> MsgpackRpcSession:
    """Create a session on already-connected streams and start reading."""

    session = MsgpackRpcSession(reader, writer, logger_name=logger_name)
    session.start()
    return session


__all__ = [
    "MsgpackResponder",
    "MsgpackRpcSession",
    "RemoteRef",
    "open_session",
    "pack_message",
]
