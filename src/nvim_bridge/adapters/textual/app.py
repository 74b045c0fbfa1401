"""Executable Textual app that embeds ``nvim --embed`` through the bridge."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os
import shlex
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use nvim_bridge.adapters.textual.app"
    ) from exc

from rich.text import Text

from nvim_bridge.errors import NvimBridgeError
from nvim_bridge.instance import NeovimInstance
from nvim_bridge.runtime import telemetry
from nvim_bridge.runtime.config import Settings
from nvim_bridge.screen import CellFontMeasurer
from nvim_bridge.session import MsgpackRpcSession, open_session

from .controller import TextualNeovimAdapter, TextualUIHooks

DEFAULT_NVIM_COMMAND = "nvim --embed"


def screen_renderable(lines: Sequence[str]) -> Text:
    """Plain grid text; brackets in buffer content are not Rich markup."""

    return Text("\n".join(lines), no_wrap=True)


async def spawn_embedded(
    argv: Sequence[str],
) -> Tuple[asyncio.subprocess.Process, MsgpackRpcSession]:
    """Start an embedded engine and open a session on its stdio pipes."""

    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
    )
    assert process.stdout is not None and process.stdin is not None
    session = await open_session(process.stdout, process.stdin)
    return process, session


@dataclass
class UIState:
    screen_text: str = ""
    status_text: str = ""
    title: str = ""


class NeovimApp(App[None]):
    """Minimal Textual UI rendering the engine's grid as plain text."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#screen-view {
		height: 1fr;
		padding: 0 0;
		content-align: left top;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        command: Sequence[str],
        settings: Settings | None = None,
    ) -> None:
        super().__init__()
        self._state = UIState()
        self._command = list(command)
        self._settings = settings or Settings.from_env()
        self.instance: NeovimInstance | None = None
        self.adapter: TextualNeovimAdapter | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._screen_widget: Static | None = None
        self._status_widget: Static | None = None
        self._logger = telemetry.get_logger("nvim_bridge.app")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        self._screen_widget = Static("", id="screen-view")
        self._status_widget = Static("", id="status-line")
        yield self._screen_widget
        yield self._status_widget
        yield Footer()

    async def on_mount(self) -> None:
        assert self._screen_widget is not None
        size = self._screen_widget.size
        self.instance = NeovimInstance(
            max(size.width, 1),
            max(size.height, 1),
            settings=self._settings,
            measurer=CellFontMeasurer(),
        )
        hooks = TextualUIHooks(
            update_screen=self._update_screen,
            update_status=self._update_status,
            set_title=self._set_title,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualNeovimAdapter(self.instance, hooks)
        self.instance.on_leave.subscribe(lambda _: self.exit())
        self._process, session = await spawn_embedded(self._command)
        try:
            await self.instance.start(session)
        except NvimBridgeError as exc:
            self._update_status(f"attach failed: {exc}")

    async def on_unmount(self) -> None:
        if self.instance:
            await self.instance.close()
        if self._process and self._process.returncode is None:
            self._process.terminate()
            await self._process.wait()

    async def on_resize(self, event: events.Resize) -> None:
        if self.adapter and self._screen_widget:
            size = self._screen_widget.size
            self.adapter.resize(size.width, size.height)

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        normalized = self._normalize_key(event)
        if normalized is None:
            return
        key, text, modifiers = normalized
        await self.adapter.handle_textual_key(key, text=text, modifiers=modifiers)
        event.stop()

    def _update_screen(self, lines: List[str]) -> None:
        renderable = screen_renderable(lines)
        self._state.screen_text = renderable.plain
        if self._screen_widget:
            self._screen_widget.update(renderable)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _set_title(self, title: str) -> None:
        self._state.title = title
        self.title = title

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "DirChanged":
            self._update_status(name)

    def _log_line(self, line: str) -> None:
        self._logger.debug(line)

    @staticmethod
    def _normalize_key(
        event: events.Key,
    ) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
        key = event.key
        if key == "ctrl+q":
            return None
        if key.startswith("ctrl+") and len(key) == len("ctrl+") + 1:
            return (key[-1], key[-1], ("CTRL",))
        if event.character and event.is_printable:
            return (event.character, event.character, ())
        return (key.upper(), None, ())


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run Neovim inside a Textual app.")
    parser.add_argument(
        "--nvim",
        default=os.environ.get("NVIM_BRIDGE_NVIM_COMMAND", DEFAULT_NVIM_COMMAND),
        help=f"Command used to start the embedded engine (default: {DEFAULT_NVIM_COMMAND})",
    )
    parser.add_argument(
        "--no-connect",
        action="store_true",
        help="Skip the post-attach plugin handshake function",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    settings = Settings.from_env()
    if args.no_connect:
        settings = dataclasses.replace(settings, connect_function=None)
    app = NeovimApp(command=shlex.split(args.nvim), settings=settings)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
