"""Read-only settings consumed by the bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .telemetry import env, env_flag

DEFAULT_FONT_FAMILY = "monospace"
DEFAULT_FONT_SIZE = "12px"
MAX_LINES_FOR_BUFFER_UPDATE = 5000


@dataclass(frozen=True, slots=True)
class FixedSize:
    """Debug override pinning the screen to a fixed grid."""

    rows: int
    columns: int

    @classmethod
    def parse(cls, raw: str) -> "FixedSize":
        """Parse ``"ROWSxCOLUMNS"`` (for example ``"40x120"``)."""

        rows, sep, columns = raw.lower().partition("x")
        if not sep:
            raise ValueError(f"Expected ROWSxCOLUMNS, got '{raw}'")
        return cls(rows=int(rows), columns=int(columns))


@dataclass(frozen=True, slots=True)
class Settings:
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: str = DEFAULT_FONT_SIZE
    fixed_size: Optional[FixedSize] = None
    bell_url: Optional[str] = None
    load_init_vim: Optional[str] = None
    connect_function: Optional[str] = "OniConnect"
    context_function: str = "OniGetContext"
    scroll_settle_delay: float = 0.0
    max_lines_for_buffer_update: int = MAX_LINES_FOR_BUFFER_UPDATE

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``NVIM_BRIDGE_*`` environment variables."""

        fixed = env("FIXED_SIZE")
        connect = env("CONNECT_FUNCTION", "OniConnect")
        return cls(
            font_family=env("FONT_FAMILY") or DEFAULT_FONT_FAMILY,
            font_size=env("FONT_SIZE") or DEFAULT_FONT_SIZE,
            fixed_size=FixedSize.parse(fixed) if fixed else None,
            bell_url=env("BELL_URL") or None,
            load_init_vim=env("LOAD_INIT_VIM") or None,
            connect_function=None if env_flag("NO_CONNECT", False) else connect,
            context_function=env("CONTEXT_FUNCTION") or "OniGetContext",
            scroll_settle_delay=float(env("SCROLL_SETTLE_DELAY") or "0"),
            max_lines_for_buffer_update=int(
                env("MAX_LINES_FOR_BUFFER_UPDATE") or MAX_LINES_FOR_BUFFER_UPDATE
            ),
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Settings":
        """Build settings from dotted editor configuration keys.

        Recognised keys: ``editor.fontFamily``, ``editor.fontSize``,
        ``debug.fixedSize`` (``{"rows": .., "columns": ..}``),
        ``oni.audio.bellUrl`` and ``oni.loadInitVim``. ``oni.loadInitVim`` only
        counts as a path override when it is a string.
        """

        fixed_raw = values.get("debug.fixedSize")
        fixed: Optional[FixedSize] = None
        if isinstance(fixed_raw, Mapping):
            fixed = FixedSize(
                rows=int(fixed_raw["rows"]), columns=int(fixed_raw["columns"])
            )
        init_vim = values.get("oni.loadInitVim")
        return cls(
            font_family=str(values.get("editor.fontFamily", DEFAULT_FONT_FAMILY)),
            font_size=str(values.get("editor.fontSize", DEFAULT_FONT_SIZE)),
            fixed_size=fixed,
            bell_url=values.get("oni.audio.bellUrl") or None,
            load_init_vim=init_vim if isinstance(init_vim, str) else None,
        )


__all__ = ["FixedSize", "Settings", "MAX_LINES_FOR_BUFFER_UPDATE"]
