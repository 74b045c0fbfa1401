"""Pixel <-> grid geometry and the resize RPC it drives."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, Optional, Tuple

from nvim_bridge.errors import NvimBridgeError, TransportError
from nvim_bridge.redraw.actions import SetFont, UIAction
from nvim_bridge.runtime import telemetry
from nvim_bridge.runtime.config import Settings

from .font import FontMeasurer

Spawn = Callable[[Coroutine[Any, Any, Any]], "asyncio.Task[Any]"]


@dataclass(slots=True)
class Geometry:
    rows: int = 0
    cols: int = 0
    width_px: float = 0.0
    height_px: float = 0.0
    font_width_px: float = 0.0
    font_height_px: float = 0.0


class GeometryCoordinator:
    """Keeps rows/cols in step with the pixel size and the active font.

    Rows and columns are always recomputed as ``floor(pixels / cell)``; they
    are never carried across a font change. Until :meth:`bind_attach` is
    called the new size is only recorded; afterwards each effective change
    issues one resize request once the attach has completed.
    """

    def __init__(
        self,
        width_px: float,
        height_px: float,
        *,
        measurer: FontMeasurer,
        issue_resize: Callable[[int, int], Awaitable[Any]],
        spawn: Spawn,
        on_action: Callable[[UIAction], None],
        on_error: Callable[[Exception], None],
        settings: Settings | None = None,
        logger_name: str | None = "nvim_bridge.geometry",
    ) -> None:
        self.settings = settings or Settings()
        self._measurer = measurer
        self._issue_resize = issue_resize
        self._spawn = spawn
        self._on_action = on_action
        self._on_error = on_error
        self._logger_name = logger_name
        self._attach: Optional[Awaitable[Any]] = None

        width, height = self._cell_size(self.settings.font_family, self.settings.font_size)
        self.geometry = Geometry(
            width_px=width_px,
            height_px=height_px,
            font_width_px=width,
            font_height_px=height,
        )
        self.geometry.rows, self.geometry.cols = self._target_size()

    @property
    def size(self) -> Tuple[int, int]:
        """Currently applied ``(rows, cols)``."""

        return self.geometry.rows, self.geometry.cols

    @property
    def attached(self) -> bool:
        return self._attach is not None

    def bind_attach(self, attach: Awaitable[Any]) -> None:
        self._attach = attach

    def _cell_size(
        self, family: str, size: str, line_padding: float = 0
    ) -> Tuple[float, float]:
        width, height = self._measurer.measure(family, size)
        if width <= 0 or height + line_padding <= 0:
            raise ValueError(f"Font '{family}' at '{size}' has no usable cell size")
        return width, height

    def set_font(
        self, family: str, size: str, line_padding: float = 0
    ) -> Optional["asyncio.Task[Any]"]:
        width, height = self._cell_size(family, size, line_padding)
        self.geometry.font_width_px = width
        self.geometry.font_height_px = height + line_padding
        self._on_action(
            SetFont(
                family=family,
                size=size,
                width=width,
                height=height + line_padding,
                line_padding=line_padding,
            )
        )
        return self.resize(self.geometry.width_px, self.geometry.height_px)

    def resize(self, width_px: float, height_px: float) -> Optional["asyncio.Task[Any]"]:
        self.geometry.width_px = width_px
        self.geometry.height_px = height_px

        rows, cols = self._target_size()
        if (rows, cols) == self.size:
            return None

        self.geometry.rows, self.geometry.cols = rows, cols
        if self._attach is None:
            return None
        return self._spawn(self._resize_after_attach(cols, rows))

    def screen_to_pixels(self, row: int, col: int) -> Tuple[float, float]:
        return col * self.geometry.font_width_px, row * self.geometry.font_height_px

    def _target_size(self) -> Tuple[int, int]:
        fixed = self.settings.fixed_size
        if fixed is not None:
            telemetry.record_event(
                "geometry.fixed_size_override",
                level="warning",
                data={"rows": fixed.rows, "columns": fixed.columns},
                logger_name=self._logger_name,
            )
            return fixed.rows, fixed.columns
        geometry = self.geometry
        rows = math.floor(geometry.height_px / geometry.font_height_px)
        cols = math.floor(geometry.width_px / geometry.font_width_px)
        return rows, cols

    async def _resize_after_attach(self, cols: int, rows: int) -> None:
        assert self._attach is not None
        try:
            await self._attach
        except NvimBridgeError:
            # start() already surfaced the attach failure
            return
        try:
            await self._issue_resize(cols, rows)
        except TransportError as exc:
            self._on_error(exc)


__all__ = ["Geometry", "GeometryCoordinator"]
