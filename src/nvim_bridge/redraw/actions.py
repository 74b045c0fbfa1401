"""UI actions produced from redraw commands and consumed by front-ends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

Color = Optional[int]


@dataclass(frozen=True, slots=True)
class HighlightAttributes:
    """Active attributes applied to every ``Put`` until the next change."""

    bold: bool = False
    italic: bool = False
    reverse: bool = False
    underline: bool = False
    undercurl: bool = False
    foreground: Color = None
    background: Color = None


@dataclass(frozen=True, slots=True)
class CursorGoto:
    row: int
    col: int


@dataclass(frozen=True, slots=True)
class Put:
    characters: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SetScrollRegion:
    top: int
    bottom: int
    left: int
    right: int


@dataclass(frozen=True, slots=True)
class Scroll:
    count: int


@dataclass(frozen=True, slots=True)
class SetHighlight:
    attributes: HighlightAttributes


@dataclass(frozen=True, slots=True)
class Resize:
    columns: int
    rows: int


@dataclass(frozen=True, slots=True)
class ClearToEndOfLine:
    pass


@dataclass(frozen=True, slots=True)
class Clear:
    pass


@dataclass(frozen=True, slots=True)
class UpdateBackground:
    color: Color


@dataclass(frozen=True, slots=True)
class UpdateForeground:
    color: Color


@dataclass(frozen=True, slots=True)
class ChangeMode:
    mode: str


@dataclass(frozen=True, slots=True)
class SetFont:
    family: str
    size: str
    width: float
    height: float
    line_padding: float


UIAction = Union[
    CursorGoto,
    Put,
    SetScrollRegion,
    Scroll,
    SetHighlight,
    Resize,
    ClearToEndOfLine,
    Clear,
    UpdateBackground,
    UpdateForeground,
    ChangeMode,
    SetFont,
]

__all__ = [
    "ChangeMode",
    "Clear",
    "ClearToEndOfLine",
    "Color",
    "CursorGoto",
    "HighlightAttributes",
    "Put",
    "Resize",
    "Scroll",
    "SetFont",
    "SetHighlight",
    "SetScrollRegion",
    "UIAction",
    "UpdateBackground",
    "UpdateForeground",
]
