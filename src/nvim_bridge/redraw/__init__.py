"""Redraw notification decoding and interpretation."""

from . import actions
from .commands import (
    PopupMenuItem,
    PopupMenuState,
    RedrawCommand,
    TablineState,
    TablineTab,
    decode_command,
)
from .interpreter import RedrawFeeds, RedrawInterpreter
from .scroll import ScrollSettledNotifier

__all__ = [
    "actions",
    "PopupMenuItem",
    "PopupMenuState",
    "RedrawCommand",
    "RedrawFeeds",
    "RedrawInterpreter",
    "ScrollSettledNotifier",
    "TablineState",
    "TablineTab",
    "decode_command",
]
