"""Pure decoding of ``oni_plugin_notify`` payloads.

The payload is ``[[method, *arguments]]``. :func:`split_method` returns the
discriminator and the remaining arguments without touching the input;
:func:`decode_plugin_notification` then builds one typed variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple, Union

from nvim_bridge.buffer.updates import EventContext, YankInfo
from nvim_bridge.errors import MalformedNotification


@dataclass(frozen=True, slots=True)
class BufferUpdateRequested:
    context: EventContext
    start_line: int
    end_line: int


@dataclass(frozen=True, slots=True)
class YankNotification:
    info: YankInfo


@dataclass(frozen=True, slots=True)
class OniCommandNotification:
    command: str


@dataclass(frozen=True, slots=True)
class AutocommandNotification:
    event_name: str
    context: EventContext


@dataclass(frozen=True, slots=True)
class IncrementalBufferUpdateNotification:
    context: EventContext
    line_content: str
    line_number: int


@dataclass(frozen=True, slots=True)
class UnknownPluginNotification:
    method: str
    arguments: Tuple[Any, ...]


PluginNotification = Union[
    BufferUpdateRequested,
    YankNotification,
    OniCommandNotification,
    AutocommandNotification,
    IncrementalBufferUpdateNotification,
    UnknownPluginNotification,
]


def _context(value: Any) -> EventContext:
    if not isinstance(value, Mapping):
        raise TypeError("event context must be a map")
    return value


def split_method(args: Any) -> Tuple[str, Tuple[Any, ...]]:
    if isinstance(args, (str, bytes)) or not isinstance(args, Sequence) or not args:
        raise MalformedNotification("plugin payload is empty", payload=args)
    inner = args[0]
    if isinstance(inner, (str, bytes)) or not isinstance(inner, Sequence) or not inner:
        raise MalformedNotification("plugin payload has no method", payload=args)
    method = inner[0]
    if not isinstance(method, str):
        raise MalformedNotification("plugin method is not a string", payload=args)
    return method, tuple(inner[1:])


def _buffer_update(rest: Sequence[Any]) -> BufferUpdateRequested:
    context = _context(rest[0])
    if "bufferNumber" not in context:
        raise KeyError("bufferNumber")
    return BufferUpdateRequested(
        context=context, start_line=int(rest[1]), end_line=int(rest[2])
    )


def _yank(rest: Sequence[Any]) -> YankNotification:
    payload = rest[0]
    if not isinstance(payload, Mapping):
        raise TypeError("yank info must be a map")
    return YankNotification(info=YankInfo.from_payload(payload))


def _command(rest: Sequence[Any]) -> OniCommandNotification:
    return OniCommandNotification(command=str(rest[0]))


def _event(rest: Sequence[Any]) -> AutocommandNotification:
    return AutocommandNotification(event_name=str(rest[0]), context=_context(rest[1]))


def _incremental(rest: Sequence[Any]) -> IncrementalBufferUpdateNotification:
    return IncrementalBufferUpdateNotification(
        context=_context(rest[0]), line_content=str(rest[1]), line_number=int(rest[2])
    )


_DECODERS: Dict[str, Callable[[Sequence[Any]], PluginNotification]] = {
    "buffer_update": _buffer_update,
    "oni_yank": _yank,
    "oni_command": _command,
    "event": _event,
    "incremental_buffer_update": _incremental,
}


def decode_plugin_notification(args: Any) -> PluginNotification:
    method, rest = split_method(args)
    decoder = _DECODERS.get(method)
    if decoder is None:
        return UnknownPluginNotification(method=method, arguments=rest)
    try:
        return decoder(rest)
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise MalformedNotification(
            f"malformed '{method}' notification: {exc}", payload=args
        ) from exc


__all__ = [
    "AutocommandNotification",
    "BufferUpdateRequested",
    "IncrementalBufferUpdateNotification",
    "OniCommandNotification",
    "PluginNotification",
    "UnknownPluginNotification",
    "YankNotification",
    "decode_plugin_notification",
    "split_method",
]
