"""Structured logging for the bridge on top of telelog.

Components never hold a telelog logger themselves. They call
:func:`record_event` with a dotted ``component.event`` name, or wrap a hot
path in :func:`span` to get telelog profiling plus a closing
``span::end`` line carrying whatever metadata the block attached.

The logger configuration comes from ``NVIM_BRIDGE_*`` variables:
``LOG_LEVEL``, ``LOG_FILE``, ``LOG_JSON``, ``DISABLE_CONSOLE``, ``NO_COLOR``.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "NVIM_BRIDGE_"
DEFAULT_LOGGER_NAME = "nvim_bridge"

_LOGGERS: MutableMapping[str, Any] = {}
_CONFIG: Optional[Any] = None


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def build_config() -> Any:
    """Return a ``telelog.Config`` built from the environment."""

    config = tl.Config()
    config.with_min_level((env("LOG_LEVEL") or "INFO").upper())

    console = not env_flag("DISABLE_CONSOLE", False)
    config.with_console_output(console)
    if console:
        config.with_colored_output(not env_flag("NO_COLOR", False))
    if env_flag("LOG_JSON", False):
        config.with_json_format(True)

    log_file = env("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)

    config.with_profiling(True)
    return config


def get_logger(name: Optional[str] = None) -> Any:
    global _CONFIG
    key = name or DEFAULT_LOGGER_NAME
    logger = _LOGGERS.get(key)
    if logger is None:
        if _CONFIG is None:
            _CONFIG = build_config()
        logger = _LOGGERS[key] = tl.Logger.with_config(key, _CONFIG)
    return logger


def _pairs(data: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [
        (str(key), value if isinstance(value, str) else repr(value))
        for key, value in data.items()
    ]


def _emit(logger: Any, level: Any, message: str, data: Dict[str, Any]) -> None:
    name = str(level).lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, _pairs(data))
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {data}")


def record_event(
    name: str,
    *,
    level: str | Any = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit ``event::<name>`` with ``data`` attached as key/value pairs."""

    _emit(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str] = None,
) -> Iterator[SpanHandle]:
    """Profile a block, optionally tracked as a telelog component.

    Ends with ``span::end`` at debug, or ``span::fail`` at error when the
    block raises (the exception propagates).
    """

    log = get_logger(logger_name)
    handle = SpanHandle(name)
    with ExitStack() as stack:
        if component:
            stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            _emit(log, "error", "span::fail", {"span": name, **handle.metadata, "error": str(exc)})
            raise
    _emit(log, "debug", "span::end", {"span": name, **handle.metadata})


__all__ = [
    "SpanHandle",
    "build_config",
    "env",
    "env_flag",
    "get_logger",
    "record_event",
    "span",
]
