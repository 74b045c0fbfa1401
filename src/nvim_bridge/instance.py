"""Integration with the Neovim API over a single RPC session."""

from __future__ import annotations

import asyncio
import os
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from nvim_bridge.attach import ApiVersion, AttachCapabilities, AttachNegotiator
from nvim_bridge.autocommands import AutoCommands
from nvim_bridge.buffer import (
    BufferSynchronizer,
    EventContext,
    FullBufferUpdate,
    IncrementalBufferUpdate,
    YankInfo,
)
from nvim_bridge.errors import (
    NvimBridgeError,
    TransportError,
    UnexpectedDisconnect,
)
from nvim_bridge.plugin import PluginNotificationRouter
from nvim_bridge.redraw import (
    PopupMenuState,
    RedrawInterpreter,
    ScrollSettledNotifier,
    TablineState,
)
from nvim_bridge.redraw.actions import UIAction
from nvim_bridge.runtime import telemetry
from nvim_bridge.runtime.audio import play_sound
from nvim_bridge.runtime.config import Settings
from nvim_bridge.runtime.paths import ensure_init_vim
from nvim_bridge.runtime.tasks import BackgroundTasks
from nvim_bridge.screen import EstimatedFontMeasurer, FontMeasurer, Geometry
from nvim_bridge.screen.geometry import GeometryCoordinator
from nvim_bridge.session.transport import (
    DISCONNECT,
    NOTIFICATION,
    REQUEST,
    Responder,
    SessionTransport,
)
from nvim_bridge.signals import Event

DISCONNECT_MESSAGE = (
    "Neovim disconnected. This likely means that the Neovim process crashed."
)

SoundPlayer = Callable[[str], Awaitable[Any]]


class NeovimInstance:
    """Owns one engine session and turns its traffic into typed feeds.

    The instance is one-shot: :meth:`start` attaches to a connected
    transport, and the session ends on disconnect or :meth:`close`.
    """

    def __init__(
        self,
        width_px: float,
        height_px: float,
        *,
        settings: Settings | None = None,
        measurer: FontMeasurer | None = None,
        negotiator: AttachNegotiator | None = None,
        sound_player: SoundPlayer | None = None,
        logger_name: str | None = "nvim_bridge.instance",
    ) -> None:
        self.settings = settings or Settings()
        self._logger_name = logger_name
        self._session: Optional[SessionTransport] = None
        self._attach_task: Optional["asyncio.Task[AttachCapabilities]"] = None
        self._capabilities: Optional[AttachCapabilities] = None
        self._is_leaving = False
        self._tasks = BackgroundTasks(on_error=self._report_error)
        self._negotiator = negotiator or AttachNegotiator()
        self._play_sound = sound_player or play_sound

        self._on_error: Event[Exception | str] = Event("error")
        self._on_redraw_complete: Event[None] = Event("redraw_complete")
        self._on_leave: Event[None] = Event("leave")
        self._on_directory_changed: Event[str] = Event("directory_changed")
        self.autocommands = AutoCommands()

        self._redraw = RedrawInterpreter(
            on_scroll=self._dispatch_scroll_event, on_bell=self._ring_bell
        )
        self._scroll = ScrollSettledNotifier(
            self.get_context,
            self._report_error,
            delay=self.settings.scroll_settle_delay,
            spawn=self._tasks.spawn,
        )
        self._synchronizer = BufferSynchronizer(
            self.request,
            self._report_error,
            max_lines=self.settings.max_lines_for_buffer_update,
        )
        self._router = PluginNotificationRouter(
            self._synchronizer,
            self.autocommands,
            self._tasks.spawn,
            on_directory_changed=self._refresh_directory,
            on_vim_leave=self._handle_vim_leave,
        )
        self._geometry = GeometryCoordinator(
            width_px,
            height_px,
            measurer=measurer or EstimatedFontMeasurer(),
            issue_resize=self._ui_try_resize,
            spawn=self._tasks.spawn,
            on_action=self._redraw.feeds.actions.emit,
            on_error=self._report_error,
            settings=self.settings,
        )

    # Feeds

    @property
    def on_action(self) -> Event[UIAction]:
        return self._redraw.feeds.actions

    @property
    def on_buffer_update(self) -> Event[FullBufferUpdate]:
        return self._synchronizer.feed

    @property
    def on_buffer_update_incremental(self) -> Event[IncrementalBufferUpdate]:
        return self._router.feeds.buffer_update_incremental

    @property
    def on_directory_changed(self) -> Event[str]:
        return self._on_directory_changed

    @property
    def on_error(self) -> Event[Exception | str]:
        return self._on_error

    @property
    def on_event(self) -> Event[Tuple[str, EventContext]]:
        return self._router.feeds.events

    @property
    def on_leave(self) -> Event[None]:
        return self._on_leave

    @property
    def on_mode_changed(self) -> Event[str]:
        return self._redraw.feeds.mode_changed

    @property
    def on_oni_command(self) -> Event[str]:
        return self._router.feeds.oni_command

    @property
    def on_redraw_complete(self) -> Event[None]:
        return self._on_redraw_complete

    @property
    def on_scroll(self) -> Event[EventContext]:
        return self._scroll.feed

    @property
    def on_hide_popup_menu(self) -> Event[None]:
        return self._redraw.feeds.popup_menu_hidden

    @property
    def on_select_popup_menu(self) -> Event[int]:
        return self._redraw.feeds.popup_menu_selected

    @property
    def on_show_popup_menu(self) -> Event[PopupMenuState]:
        return self._redraw.feeds.popup_menu_shown

    @property
    def on_tabline_update(self) -> Event[TablineState]:
        return self._redraw.feeds.tabline_updated

    @property
    def on_title_changed(self) -> Event[str]:
        return self._redraw.feeds.title_changed

    @property
    def on_yank(self) -> Event[YankInfo]:
        return self._router.feeds.yank

    # State

    @property
    def capabilities(self) -> Optional[AttachCapabilities]:
        return self._capabilities

    @property
    def geometry(self) -> Geometry:
        return self._geometry.geometry

    @property
    def is_leaving(self) -> bool:
        return self._is_leaving

    # Lifecycle

    async def start(self, session: SessionTransport) -> AttachCapabilities:
        """Attach the UI to ``session`` and run the post-attach handshake.

        Raises :class:`~nvim_bridge.errors.UnsupportedVersion` (or a
        :class:`~nvim_bridge.errors.TransportError`) when attaching fails.
        """

        if self._session is not None:
            raise RuntimeError("NeovimInstance.start() may only be called once")
        self._session = session
        session.on(NOTIFICATION, self._handle_notification)
        session.on(REQUEST, self._handle_request)
        session.on(DISCONNECT, self._handle_disconnect)

        rows, cols = self._geometry.size
        self._attach_task = asyncio.get_running_loop().create_task(
            self._negotiator.attach(session, cols, rows)
        )
        self._geometry.bind_attach(self._attach_task)
        try:
            capabilities = await self._attach_task
        except NvimBridgeError as exc:
            telemetry.record_event(
                "session.attach_failed",
                level="error",
                data={"error": str(exc)},
                logger_name=self._logger_name,
            )
            raise

        self._capabilities = capabilities
        try:
            # handlers must be registered before ``set title`` or the first
            # set_title notification is dropped
            await self.command("set title")
            if self.settings.connect_function:
                await self.call_function(self.settings.connect_function, [])
        except TransportError as exc:
            self._report_error(exc)
        return capabilities

    async def close(self) -> None:
        """Leave explicitly: the following disconnect is not an error."""

        self._is_leaving = True
        self._tasks.cancel_all()
        if self._session is not None:
            self._session.close()

    async def drain(self) -> None:
        """Wait for background work (fetches, resizes, scroll context)."""

        await self._tasks.drain()

    # RPC helpers

    async def request(self, method: str, args: Sequence[Any]) -> Any:
        if self._session is None:
            raise TransportError("Neovim session has not been started", method=method)
        return await self._session.request(method, args)

    async def eval(self, expression: str) -> Any:
        return await self.request("nvim_eval", [expression])

    async def command(self, command: str) -> Any:
        telemetry.record_event(
            "session.command",
            level="debug",
            data={"command": command},
            logger_name=self._logger_name,
        )
        return await self.request("nvim_command", [command])

    async def call_function(self, function_name: str, args: Sequence[Any]) -> Any:
        return await self.request("nvim_call_function", [function_name, list(args)])

    async def input(self, keys: str) -> Any:
        return await self.request("nvim_input", [keys])

    async def get_context(self) -> EventContext:
        return await self.call_function(self.settings.context_function, [])

    async def chdir(self, directory_path: str) -> None:
        await self.command(f"cd! {directory_path}")

    async def open(self, file_name: str) -> None:
        await self.command(f"e! {file_name}")

    async def open_init_vim(self) -> None:
        if isinstance(self.settings.load_init_vim, str):
            await self.open(self.settings.load_init_vim)
            return
        await self.open(ensure_init_vim())

    async def get_buffer_ids(self) -> List[int]:
        buffers = await self.request("nvim_list_bufs", [])
        return [int(getattr(buffer, "id", buffer)) for buffer in buffers]

    async def get_current_working_directory(self) -> str:
        directory = await self.eval("getcwd()")
        return os.path.normpath(directory)

    async def get_api_version(self) -> ApiVersion:
        if self._session is None:
            raise TransportError(
                "Neovim session has not been started", method="nvim_get_api_info"
            )
        return await self._negotiator.get_api_version(self._session)

    # Geometry

    def set_font(
        self, font_family: str, font_size: str, line_padding: float = 0
    ) -> Optional["asyncio.Task[Any]"]:
        return self._geometry.set_font(font_family, font_size, line_padding)

    def resize(
        self, width_px: float, height_px: float
    ) -> Optional["asyncio.Task[Any]"]:
        return self._geometry.resize(width_px, height_px)

    def screen_to_pixels(self, row: int, col: int) -> Tuple[float, float]:
        return self._geometry.screen_to_pixels(row, col)

    async def _ui_try_resize(self, cols: int, rows: int) -> None:
        await self.request("nvim_ui_try_resize", [cols, rows])

    # Session handlers

    def _handle_notification(self, method: str, args: Any) -> None:
        if method == "redraw":
            try:
                self._redraw.interpret(args)
            finally:
                self._on_redraw_complete.emit()
        elif method == "oni_plugin_notify":
            self._router.route(args)
        else:
            telemetry.record_event(
                "session.unknown_notification",
                level="warning",
                data={"method": method},
                logger_name=self._logger_name,
            )

    def _handle_request(self, method: str, args: Any, responder: Responder) -> None:
        del args
        telemetry.record_event(
            "session.unhandled_request",
            level="warning",
            data={"method": method},
            logger_name=self._logger_name,
        )
        responder.send(f"Unhandled request: {method}", is_error=True)

    def _handle_disconnect(self) -> None:
        telemetry.record_event(
            "session.disconnected",
            data={"leaving": self._is_leaving},
            logger_name=self._logger_name,
        )
        if not self._is_leaving:
            self._report_error(UnexpectedDisconnect(DISCONNECT_MESSAGE))

    def _handle_vim_leave(self) -> None:
        self._is_leaving = True
        self._on_leave.emit()

    def _dispatch_scroll_event(self) -> None:
        self._scroll.schedule()

    def _refresh_directory(self) -> None:
        self._tasks.spawn(self._update_process_directory())

    async def _update_process_directory(self) -> None:
        try:
            directory = await self.get_current_working_directory()
        except TransportError as exc:
            self._report_error(exc)
            return
        self._on_directory_changed.emit(directory)

    def _ring_bell(self) -> None:
        bell_url = self.settings.bell_url
        if bell_url:
            self._tasks.spawn(self._play_bell(bell_url))

    async def _play_bell(self, url: str) -> None:
        try:
            await self._play_sound(url)
        except (OSError, ValueError) as exc:
            telemetry.record_event(
                "bell.failed",
                level="debug",
                data={"url": url, "error": str(exc)},
                logger_name=self._logger_name,
            )

    def _report_error(self, error: Exception | str) -> None:
        telemetry.record_event(
            "session.error",
            level="error",
            data={"error": str(error)},
            logger_name=self._logger_name,
        )
        self._on_error.emit(error)


__all__ = ["DISCONNECT_MESSAGE", "NeovimInstance", "SoundPlayer"]
