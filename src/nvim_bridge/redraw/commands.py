"""Decoding of raw ``redraw`` batches into closed command variants.

A redraw payload is a list of entries ``[name, tuple1, tuple2, ...]``. Every
entry is decoded exactly once here; the interpreter never looks at raw
arrays. Most commands read only their first argument tuple, but
``highlight_set`` and ``mode_change`` read the last one because the engine
can send a partial tuple followed by the authoritative one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Sequence, Tuple, Union

from nvim_bridge.errors import MalformedNotification

from .actions import Color, HighlightAttributes

ArgTuple = Sequence[Any]


@dataclass(frozen=True, slots=True)
class PopupMenuItem:
    word: str
    kind: str
    menu: str
    info: str


@dataclass(frozen=True, slots=True)
class PopupMenuState:
    items: Tuple[PopupMenuItem, ...]
    selected_index: int
    row: int
    col: int


@dataclass(frozen=True, slots=True)
class TablineTab:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class TablineState:
    current_tab: int
    tabs: Tuple[TablineTab, ...]


@dataclass(frozen=True, slots=True)
class CursorGotoCommand:
    row: int
    col: int


@dataclass(frozen=True, slots=True)
class PutCommand:
    characters: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SetScrollRegionCommand:
    top: int
    bottom: int
    left: int
    right: int


@dataclass(frozen=True, slots=True)
class ScrollCommand:
    count: int


@dataclass(frozen=True, slots=True)
class HighlightSetCommand:
    attributes: HighlightAttributes


@dataclass(frozen=True, slots=True)
class ResizeCommand:
    columns: int
    rows: int


@dataclass(frozen=True, slots=True)
class SetTitleCommand:
    title: str


@dataclass(frozen=True, slots=True)
class SetIconCommand:
    pass


@dataclass(frozen=True, slots=True)
class EolClearCommand:
    pass


@dataclass(frozen=True, slots=True)
class ClearCommand:
    pass


@dataclass(frozen=True, slots=True)
class MouseCommand:
    enabled: bool


@dataclass(frozen=True, slots=True)
class UpdateBackgroundCommand:
    color: Color


@dataclass(frozen=True, slots=True)
class UpdateForegroundCommand:
    color: Color


@dataclass(frozen=True, slots=True)
class ModeChangeCommand:
    mode: str


@dataclass(frozen=True, slots=True)
class PopupMenuShowCommand:
    state: PopupMenuState


@dataclass(frozen=True, slots=True)
class PopupMenuSelectCommand:
    index: int


@dataclass(frozen=True, slots=True)
class PopupMenuHideCommand:
    pass


@dataclass(frozen=True, slots=True)
class TablineUpdateCommand:
    state: TablineState


@dataclass(frozen=True, slots=True)
class BellCommand:
    pass


@dataclass(frozen=True, slots=True)
class UnknownCommand:
    name: str
    arguments: Tuple[Any, ...]


RedrawCommand = Union[
    CursorGotoCommand,
    PutCommand,
    SetScrollRegionCommand,
    ScrollCommand,
    HighlightSetCommand,
    ResizeCommand,
    SetTitleCommand,
    SetIconCommand,
    EolClearCommand,
    ClearCommand,
    MouseCommand,
    UpdateBackgroundCommand,
    UpdateForegroundCommand,
    ModeChangeCommand,
    PopupMenuShowCommand,
    PopupMenuSelectCommand,
    PopupMenuHideCommand,
    TablineUpdateCommand,
    BellCommand,
    UnknownCommand,
]


def _seq(value: Any) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise TypeError(f"expected an argument list, got {type(value).__name__}")
    return value


def _first(tuples: Sequence[Any]) -> Sequence[Any]:
    return _seq(tuples[0])


def _last(tuples: Sequence[Any]) -> Sequence[Any]:
    return _seq(tuples[-1])


def _color(value: Any) -> Color:
    return None if value is None else int(value)


def _handle_id(value: Any) -> int:
    # tab handles arrive as RemoteRef-like objects or bare ids
    return int(getattr(value, "id", value))


def _cursor_goto(tuples: Sequence[Any]) -> CursorGotoCommand:
    args = _first(tuples)
    return CursorGotoCommand(row=int(args[0]), col=int(args[1]))


def _put(tuples: Sequence[Any]) -> PutCommand:
    return PutCommand(characters=tuple(str(_seq(args)[0]) for args in tuples))


def _set_scroll_region(tuples: Sequence[Any]) -> SetScrollRegionCommand:
    top, bottom, left, right = (int(value) for value in _first(tuples)[:4])
    return SetScrollRegionCommand(top=top, bottom=bottom, left=left, right=right)


def _scroll(tuples: Sequence[Any]) -> ScrollCommand:
    return ScrollCommand(count=int(_first(tuples)[0]))


def _highlight_set(tuples: Sequence[Any]) -> HighlightSetCommand:
    info = _last(tuples)[0]
    if not isinstance(info, Mapping):
        raise TypeError("highlight_set expects an attribute map")
    return HighlightSetCommand(
        attributes=HighlightAttributes(
            bold=bool(info.get("bold")),
            italic=bool(info.get("italic")),
            reverse=bool(info.get("reverse")),
            underline=bool(info.get("underline")),
            undercurl=bool(info.get("undercurl")),
            foreground=_color(info.get("foreground")),
            background=_color(info.get("background")),
        )
    )


def _resize(tuples: Sequence[Any]) -> ResizeCommand:
    args = _first(tuples)
    return ResizeCommand(columns=int(args[0]), rows=int(args[1]))


def _set_title(tuples: Sequence[Any]) -> SetTitleCommand:
    return SetTitleCommand(title=str(_first(tuples)[0]))


def _update_bg(tuples: Sequence[Any]) -> UpdateBackgroundCommand:
    return UpdateBackgroundCommand(color=_color(_first(tuples)[0]))


def _update_fg(tuples: Sequence[Any]) -> UpdateForegroundCommand:
    return UpdateForegroundCommand(color=_color(_first(tuples)[0]))


def _mode_change(tuples: Sequence[Any]) -> ModeChangeCommand:
    return ModeChangeCommand(mode=str(_last(tuples)[0]))


def _popupmenu_show(tuples: Sequence[Any]) -> PopupMenuShowCommand:
    items, selected, row, col = _first(tuples)[:4]
    decoded = []
    for item in _seq(items):
        word, kind, menu, info = _seq(item)[:4]
        decoded.append(
            PopupMenuItem(word=str(word), kind=str(kind), menu=str(menu), info=str(info))
        )
    return PopupMenuShowCommand(
        state=PopupMenuState(
            items=tuple(decoded),
            selected_index=int(selected),
            row=int(row),
            col=int(col),
        )
    )


def _popupmenu_select(tuples: Sequence[Any]) -> PopupMenuSelectCommand:
    return PopupMenuSelectCommand(index=int(_first(tuples)[0]))


def _tabline_update(tuples: Sequence[Any]) -> TablineUpdateCommand:
    current, tabs = _first(tuples)[:2]
    decoded = tuple(
        TablineTab(id=_handle_id(tab["tab"]), name=str(tab["name"]))
        for tab in _seq(tabs)
    )
    return TablineUpdateCommand(
        state=TablineState(current_tab=_handle_id(current), tabs=decoded)
    )


_DECODERS: Dict[str, Callable[[Sequence[Any]], RedrawCommand]] = {
    "cursor_goto": _cursor_goto,
    "put": _put,
    "set_scroll_region": _set_scroll_region,
    "scroll": _scroll,
    "highlight_set": _highlight_set,
    "resize": _resize,
    "set_title": _set_title,
    "set_icon": lambda _tuples: SetIconCommand(),
    "eol_clear": lambda _tuples: EolClearCommand(),
    "clear": lambda _tuples: ClearCommand(),
    "mouse_on": lambda _tuples: MouseCommand(enabled=True),
    "mouse_off": lambda _tuples: MouseCommand(enabled=False),
    "update_bg": _update_bg,
    "update_fg": _update_fg,
    "mode_change": _mode_change,
    "popupmenu_show": _popupmenu_show,
    "popupmenu_select": _popupmenu_select,
    "popupmenu_hide": lambda _tuples: PopupMenuHideCommand(),
    "tabline_update": _tabline_update,
    "bell": lambda _tuples: BellCommand(),
}


def decode_command(entry: Any) -> RedrawCommand:
    """Decode one ``[name, *arg_tuples]`` entry.

    Unknown names decode to :class:`UnknownCommand`; shape errors raise
    :class:`~nvim_bridge.errors.MalformedNotification`.
    """

    if isinstance(entry, (str, bytes)) or not isinstance(entry, (list, tuple)):
        raise MalformedNotification("redraw entry is not a list", payload=entry)
    if not entry or not isinstance(entry[0], str):
        raise MalformedNotification("redraw entry has no command name", payload=entry)

    name, tuples = entry[0], tuple(entry[1:])
    decoder = _DECODERS.get(name)
    if decoder is None:
        return UnknownCommand(name=name, arguments=tuples)
    try:
        return decoder(tuples)
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise MalformedNotification(
            f"malformed '{name}' command: {exc}", payload=entry
        ) from exc


def iter_batches(batches: Any) -> Iterator[Any]:
    """Yield raw entries of a redraw payload in arrival order."""

    if isinstance(batches, (str, bytes)) or not isinstance(batches, (list, tuple)):
        raise MalformedNotification("redraw payload is not a list", payload=batches)
    yield from batches


__all__ = [
    "BellCommand",
    "ClearCommand",
    "CursorGotoCommand",
    "EolClearCommand",
    "HighlightSetCommand",
    "ModeChangeCommand",
    "MouseCommand",
    "PopupMenuHideCommand",
    "PopupMenuItem",
    "PopupMenuSelectCommand",
    "PopupMenuShowCommand",
    "PopupMenuState",
    "PutCommand",
    "RedrawCommand",
    "ResizeCommand",
    "ScrollCommand",
    "SetIconCommand",
    "SetScrollRegionCommand",
    "SetTitleCommand",
    "TablineState",
    "TablineTab",
    "TablineUpdateCommand",
    "UnknownCommand",
    "UpdateBackgroundCommand",
    "UpdateForegroundCommand",
    "decode_command",
    "iter_batches",
]
