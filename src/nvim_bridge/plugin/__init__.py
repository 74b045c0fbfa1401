"""Plugin-originated notifications (``oni_plugin_notify``)."""

from .notifications import (
    AutocommandNotification,
    BufferUpdateRequested,
    IncrementalBufferUpdateNotification,
    OniCommandNotification,
    PluginNotification,
    UnknownPluginNotification,
    YankNotification,
    decode_plugin_notification,
    split_method,
)
from .router import DIR_CHANGED, VIM_LEAVE, PluginFeeds, PluginNotificationRouter

__all__ = [
    "AutocommandNotification",
    "BufferUpdateRequested",
    "DIR_CHANGED",
    "IncrementalBufferUpdateNotification",
    "OniCommandNotification",
    "PluginFeeds",
    "PluginNotification",
    "PluginNotificationRouter",
    "UnknownPluginNotification",
    "VIM_LEAVE",
    "YankNotification",
    "decode_plugin_notification",
    "split_method",
]
