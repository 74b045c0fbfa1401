"""Redraw interpreter: decoded commands -> ordered UI actions and feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Type

from nvim_bridge.errors import MalformedNotification
from nvim_bridge.runtime import telemetry
from nvim_bridge.signals import Event

from . import actions
from .commands import (
    BellCommand,
    ClearCommand,
    CursorGotoCommand,
    EolClearCommand,
    HighlightSetCommand,
    ModeChangeCommand,
    MouseCommand,
    PopupMenuHideCommand,
    PopupMenuSelectCommand,
    PopupMenuShowCommand,
    PopupMenuState,
    PutCommand,
    RedrawCommand,
    ResizeCommand,
    ScrollCommand,
    SetIconCommand,
    SetScrollRegionCommand,
    SetTitleCommand,
    TablineState,
    TablineUpdateCommand,
    UnknownCommand,
    UpdateBackgroundCommand,
    UpdateForegroundCommand,
    decode_command,
    iter_batches,
)


def _noop() -> None:
    return None


@dataclass
class RedrawFeeds:
    """Outbound feeds written by the interpreter."""

    actions: Event[actions.UIAction] = field(default_factory=lambda: Event("action"))
    mode_changed: Event[str] = field(default_factory=lambda: Event("mode_changed"))
    title_changed: Event[str] = field(default_factory=lambda: Event("title_changed"))
    tabline_updated: Event[TablineState] = field(
        default_factory=lambda: Event("tabline_updated")
    )
    popup_menu_shown: Event[PopupMenuState] = field(
        default_factory=lambda: Event("popup_menu_shown")
    )
    popup_menu_selected: Event[int] = field(
        default_factory=lambda: Event("popup_menu_selected")
    )
    popup_menu_hidden: Event[None] = field(
        default_factory=lambda: Event("popup_menu_hidden")
    )


class RedrawInterpreter:
    """Applies ``redraw`` payloads command by command, in arrival order.

    ``on_scroll`` is called after every ``scroll`` action (the caller owns
    the debounce) and ``on_bell`` for every ``bell`` command.
    """

    def __init__(
        self,
        feeds: RedrawFeeds | None = None,
        *,
        on_scroll: Callable[[], None] = _noop,
        on_bell: Callable[[], None] = _noop,
        logger_name: str | None = "nvim_bridge.redraw",
    ) -> None:
        self.feeds = feeds or RedrawFeeds()
        self._on_scroll = on_scroll
        self._on_bell = on_bell
        self._logger_name = logger_name
        self._handlers: Dict[Type[Any], Callable[[Any], None]] = {
            CursorGotoCommand: self._cursor_goto,
            PutCommand: self._put,
            SetScrollRegionCommand: self._set_scroll_region,
            ScrollCommand: self._scroll,
            HighlightSetCommand: self._highlight_set,
            ResizeCommand: self._resize,
            SetTitleCommand: self._set_title,
            SetIconCommand: self._ignore,
            EolClearCommand: lambda _cmd: self._emit(actions.ClearToEndOfLine()),
            ClearCommand: lambda _cmd: self._emit(actions.Clear()),
            MouseCommand: self._ignore,
            UpdateBackgroundCommand: self._update_bg,
            UpdateForegroundCommand: self._update_fg,
            ModeChangeCommand: self._mode_change,
            PopupMenuShowCommand: self._popupmenu_show,
            PopupMenuSelectCommand: self._popupmenu_select,
            PopupMenuHideCommand: lambda _cmd: self.feeds.popup_menu_hidden.emit(),
            TablineUpdateCommand: self._tabline_update,
            BellCommand: lambda _cmd: self._on_bell(),
            UnknownCommand: self._unknown,
        }

    def interpret(self, batches: Any) -> int:
        """Apply every entry of one ``redraw`` payload; return commands applied."""

        applied = 0
        with telemetry.span(
            "redraw::interpret",
            logger_name=self._logger_name,
            component="redraw",
        ) as handle:
            try:
                entries = list(iter_batches(batches))
            except MalformedNotification as exc:
                self._warn("redraw.malformed_payload", exc)
                return 0
            handle.add_metadata("entries", len(entries))
            for entry in entries:
                try:
                    command = decode_command(entry)
                except MalformedNotification as exc:
                    self._warn("redraw.malformed_command", exc)
                    continue
                self.apply(command)
                applied += 1
        return applied

    def apply(self, command: RedrawCommand) -> None:
        self._handlers[type(command)](command)

    def _emit(self, action: actions.UIAction) -> None:
        self.feeds.actions.emit(action)

    def _cursor_goto(self, command: CursorGotoCommand) -> None:
        self._emit(actions.CursorGoto(row=command.row, col=command.col))

    def _put(self, command: PutCommand) -> None:
        self._emit(actions.Put(characters=command.characters))

    def _set_scroll_region(self, command: SetScrollRegionCommand) -> None:
        self._emit(
            actions.SetScrollRegion(
                top=command.top,
                bottom=command.bottom,
                left=command.left,
                right=command.right,
            )
        )

    def _scroll(self, command: ScrollCommand) -> None:
        self._emit(actions.Scroll(count=command.count))
        self._on_scroll()

    def _highlight_set(self, command: HighlightSetCommand) -> None:
        self._emit(actions.SetHighlight(attributes=command.attributes))

    def _resize(self, command: ResizeCommand) -> None:
        self._emit(actions.Resize(columns=command.columns, rows=command.rows))

    def _set_title(self, command: SetTitleCommand) -> None:
        self.feeds.title_changed.emit(command.title)

    def _update_bg(self, command: UpdateBackgroundCommand) -> None:
        self._emit(actions.UpdateBackground(color=command.color))

    def _update_fg(self, command: UpdateForegroundCommand) -> None:
        self._emit(actions.UpdateForeground(color=command.color))

    def _mode_change(self, command: ModeChangeCommand) -> None:
        self._emit(actions.ChangeMode(mode=command.mode))
        self.feeds.mode_changed.emit(command.mode)

    def _popupmenu_show(self, command: PopupMenuShowCommand) -> None:
        self.feeds.popup_menu_shown.emit(command.state)

    def _popupmenu_select(self, command: PopupMenuSelectCommand) -> None:
        self.feeds.popup_menu_selected.emit(command.index)

    def _tabline_update(self, command: TablineUpdateCommand) -> None:
        self.feeds.tabline_updated.emit(command.state)

    def _ignore(self, command: RedrawCommand) -> None:
        del command

    def _unknown(self, command: UnknownCommand) -> None:
        telemetry.record_event(
            "redraw.unknown_command",
            level="warning",
            data={"command": command.name},
            logger_name=self._logger_name,
        )

    def _warn(self, event: str, exc: MalformedNotification) -> None:
        telemetry.record_event(
            event,
            level="warning",
            data={"error": str(exc)},
            logger_name=self._logger_name,
        )


__all__ = ["RedrawFeeds", "RedrawInterpreter"]
