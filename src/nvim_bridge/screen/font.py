"""Font metric providers used to turn pixels into grid cells."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, Tuple

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(px|pt)?\s*$", re.IGNORECASE)
_PT_TO_PX = 4.0 / 3.0


class FontMeasurer(Protocol):
    def measure(self, family: str, size: str) -> Tuple[float, float]:
        """Return ``(cell_width, cell_height)`` in pixels."""
        ...


def parse_font_size(size: str) -> float:
    """Convert ``"12px"``, ``"9pt"`` or ``"12"`` to pixels."""

    match = _SIZE_PATTERN.match(str(size))
    if match is None:
        raise ValueError(f"Unrecognised font size '{size}'")
    value = float(match.group(1))
    if value <= 0:
        raise ValueError(f"Font size must be positive, got '{size}'")
    if (match.group(2) or "px").lower() == "pt":
        value *= _PT_TO_PX
    return value


@dataclass(frozen=True, slots=True)
class FixedFontMeasurer:
    """Same metrics for every font."""

    width: float
    height: float

    def measure(self, family: str, size: str) -> Tuple[float, float]:
        del family, size
        return self.width, self.height


@dataclass(frozen=True, slots=True)
class CellFontMeasurer:
    """Metrics for terminal hosts where one "pixel" is one character cell."""

    def measure(self, family: str, size: str) -> Tuple[float, float]:
        del family, size
        return 1.0, 1.0


@dataclass(frozen=True, slots=True)
class EstimatedFontMeasurer:
    """Approximates monospace metrics from the point/pixel size alone."""

    width_ratio: float = 0.6
    height_ratio: float = 1.2

    def measure(self, family: str, size: str) -> Tuple[float, float]:
        del family
        pixels = parse_font_size(size)
        return pixels * self.width_ratio, pixels * self.height_ratio


__all__ = [
    "CellFontMeasurer",
    "EstimatedFontMeasurer",
    "FixedFontMeasurer",
    "FontMeasurer",
    "parse_font_size",
]
