"""Ambient services: telemetry, settings, paths, and background tasks."""

from .config import FixedSize, Settings
from .tasks import BackgroundTasks

__all__ = ["BackgroundTasks", "FixedSize", "Settings"]
