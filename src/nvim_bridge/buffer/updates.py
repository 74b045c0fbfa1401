"""Payloads published for buffer content and register changes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple

EventContext = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class FullBufferUpdate:
    """Complete snapshot of the buffer named by ``context["bufferNumber"]``."""

    context: EventContext
    lines: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class IncrementalBufferUpdate:
    """Replacement of a single line."""

    context: EventContext
    line_number: int
    line_content: str


@dataclass(frozen=True, slots=True)
class YankInfo:
    operator: str
    regcontents: Tuple[str, ...]
    regname: str
    regtype: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "YankInfo":
        return cls(
            operator=str(payload["operator"]),
            regcontents=tuple(str(line) for line in payload["regcontents"]),
            regname=str(payload["regname"]),
            regtype=str(payload["regtype"]),
        )


__all__ = [
    "EventContext",
    "FullBufferUpdate",
    "IncrementalBufferUpdate",
    "YankInfo",
]
