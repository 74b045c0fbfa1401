"""Textual-facing adapter that turns NeovimInstance feeds into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from nvim_bridge.instance import NeovimInstance
from nvim_bridge.redraw import PopupMenuState
from nvim_bridge.redraw.actions import UIAction
from nvim_bridge.screen import ScreenGrid


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_screen: Callable[[List[str]], None]
    update_status: Callable[[str], None] = _noop
    set_title: Callable[[str], None] = _noop
    show_popup: Callable[[PopupMenuState], None] = _noop
    hide_popup: Callable[[], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


_SPECIAL_KEYS: Dict[str, str] = {
    "ESC": "Esc",
    "ESCAPE": "Esc",
    "ENTER": "CR",
    "RETURN": "CR",
    "TAB": "Tab",
    "BACKSPACE": "BS",
    "DELETE": "Del",
    "SPACE": "Space",
    "UP": "Up",
    "DOWN": "Down",
    "LEFT": "Left",
    "RIGHT": "Right",
    "HOME": "Home",
    "END": "End",
    "PAGEUP": "PageUp",
    "PAGEDOWN": "PageDown",
    "INSERT": "Insert",
}

_MODIFIER_PREFIX = {"CTRL": "C", "ALT": "M", "META": "M", "SHIFT": "S"}


def to_nvim_keys(
    key: str, *, text: Optional[str] = None, modifiers: Iterable[str] = ()
) -> str:
    """Translate a Textual key event into Neovim's ``<...>`` key notation."""

    prefix = "".join(
        f"{_MODIFIER_PREFIX[mod]}-"
        for mod in (str(m).upper() for m in modifiers)
        if mod in _MODIFIER_PREFIX
    )
    special = _SPECIAL_KEYS.get(key.upper())
    if special is not None:
        return f"<{prefix}{special}>"
    char = text or key
    if char == "<":
        return f"<{prefix}lt>"
    if prefix:
        return f"<{prefix}{char}>"
    return char


class TextualNeovimAdapter:
    """Mirrors a NeovimInstance into a ScreenGrid and a set of UI hooks."""

    def __init__(
        self,
        instance: NeovimInstance,
        hooks: TextualUIHooks,
        *,
        grid: Optional[ScreenGrid] = None,
    ) -> None:
        self.instance = instance
        self.hooks = hooks
        geometry = instance.geometry
        self.grid = grid or ScreenGrid(geometry.rows, geometry.cols)
        self._subscribe_events()

    async def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> str:
        """Send one key press to the engine and return the notation used."""

        keys = to_nvim_keys(key, text=text, modifiers=modifiers)
        self._log_state("key ->", key=key, text=text, keys=keys)
        await self.instance.input(keys)
        return keys

    def resize(self, width: float, height: float) -> Any:
        """Forward a widget size; with cell metrics this is columns x rows."""

        return self.instance.resize(width, height)

    def _subscribe_events(self) -> None:
        instance = self.instance
        instance.on_action.subscribe(self._apply_action)
        instance.on_redraw_complete.subscribe(lambda _: self._refresh_screen())
        instance.on_mode_changed.subscribe(self._handle_mode)
        instance.on_title_changed.subscribe(self.hooks.set_title)
        instance.on_show_popup_menu.subscribe(self.hooks.show_popup)
        instance.on_hide_popup_menu.subscribe(lambda _: self.hooks.hide_popup())
        instance.on_error.subscribe(self._handle_error)
        instance.on_leave.subscribe(lambda _: self._handle_event("leave", None))
        instance.on_event.subscribe(lambda pair: self._handle_event(pair[0], pair[1]))

    def _apply_action(self, action: UIAction) -> None:
        self.grid.apply(action)

    def _refresh_screen(self) -> None:
        self.hooks.update_screen(self.grid.lines())

    def _handle_mode(self, mode: str) -> None:
        self._log_state("mode ->", mode=mode)
        self.hooks.update_status(f"mode::{mode}")

    def _handle_error(self, error: object) -> None:
        self._log_state("error ->", error=error)
        self.hooks.update_status(f"error::{error}")

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot: Dict[str, object] = {
            "mode": self.grid.mode or "?",
            "cursor": self.grid.cursor,
            "size": (self.grid.rows, self.grid.cols),
        }
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))


__all__ = ["TextualNeovimAdapter", "TextualUIHooks", "to_nvim_keys"]
