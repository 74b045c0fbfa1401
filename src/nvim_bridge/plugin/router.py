"""Routes ``oni_plugin_notify`` sub-events to their typed feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Optional, Tuple

from nvim_bridge.autocommands import AutocommandNotifier
from nvim_bridge.buffer.sync import BufferSynchronizer
from nvim_bridge.buffer.updates import EventContext, IncrementalBufferUpdate, YankInfo
from nvim_bridge.errors import MalformedNotification
from nvim_bridge.runtime import telemetry
from nvim_bridge.signals import Event

from .notifications import (
    AutocommandNotification,
    BufferUpdateRequested,
    IncrementalBufferUpdateNotification,
    OniCommandNotification,
    PluginNotification,
    UnknownPluginNotification,
    YankNotification,
    decode_plugin_notification,
)

DIR_CHANGED = "DirChanged"
VIM_LEAVE = "VimLeave"

Spawn = Callable[[Coroutine[Any, Any, Any]], Any]


def _noop() -> None:
    return None


@dataclass
class PluginFeeds:
    yank: Event[YankInfo] = field(default_factory=lambda: Event("yank"))
    oni_command: Event[str] = field(default_factory=lambda: Event("oni_command"))
    buffer_update_incremental: Event[IncrementalBufferUpdate] = field(
        default_factory=lambda: Event("buffer_update_incremental")
    )
    events: Event[Tuple[str, EventContext]] = field(
        default_factory=lambda: Event("event")
    )


class PluginNotificationRouter:
    def __init__(
        self,
        synchronizer: BufferSynchronizer,
        autocommands: AutocommandNotifier,
        spawn: Spawn,
        *,
        feeds: PluginFeeds | None = None,
        on_directory_changed: Callable[[], None] = _noop,
        on_vim_leave: Callable[[], None] = _noop,
        logger_name: str | None = "nvim_bridge.plugin",
    ) -> None:
        self.synchronizer = synchronizer
        self.autocommands = autocommands
        self.feeds = feeds or PluginFeeds()
        self._spawn = spawn
        self._on_directory_changed = on_directory_changed
        self._on_vim_leave = on_vim_leave
        self._logger_name = logger_name

    def route(self, args: Any) -> Optional[PluginNotification]:
        """Decode and dispatch one payload; malformed payloads are skipped."""

        try:
            notification = decode_plugin_notification(args)
        except MalformedNotification as exc:
            telemetry.record_event(
                "plugin.malformed_payload",
                level="warning",
                data={"error": str(exc)},
                logger_name=self._logger_name,
            )
            return None

        if isinstance(notification, BufferUpdateRequested):
            self._spawn(
                self.synchronizer.on_full_update_trigger(
                    notification.context,
                    notification.start_line,
                    notification.end_line,
                )
            )
        elif isinstance(notification, YankNotification):
            self.feeds.yank.emit(notification.info)
        elif isinstance(notification, OniCommandNotification):
            self.feeds.oni_command.emit(notification.command)
        elif isinstance(notification, AutocommandNotification):
            self._autocommand(notification)
        elif isinstance(notification, IncrementalBufferUpdateNotification):
            self.feeds.buffer_update_incremental.emit(
                IncrementalBufferUpdate(
                    context=notification.context,
                    line_number=notification.line_number,
                    line_content=notification.line_content,
                )
            )
        elif isinstance(notification, UnknownPluginNotification):
            telemetry.record_event(
                "plugin.unknown_method",
                level="warning",
                data={"method": notification.method},
                logger_name=self._logger_name,
            )
        return notification

    def _autocommand(self, notification: AutocommandNotification) -> None:
        name, context = notification.event_name, notification.context
        if name == DIR_CHANGED:
            self._on_directory_changed()
        elif name == VIM_LEAVE:
            self._on_vim_leave()

        self.autocommands.notify_autocommand(name, context)
        self.feeds.events.emit((name, context))


__all__ = ["DIR_CHANGED", "VIM_LEAVE", "PluginFeeds", "PluginNotificationRouter"]
