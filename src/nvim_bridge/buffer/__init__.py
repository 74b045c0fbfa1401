"""Buffer content updates published to consumers."""

from .sync import BufferSynchronizer
from .updates import EventContext, FullBufferUpdate, IncrementalBufferUpdate, YankInfo

__all__ = [
    "BufferSynchronizer",
    "EventContext",
    "FullBufferUpdate",
    "IncrementalBufferUpdate",
    "YankInfo",
]
