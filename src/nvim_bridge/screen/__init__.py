"""Screen geometry, font metrics, and the cell grid model."""

from .font import (
    CellFontMeasurer,
    EstimatedFontMeasurer,
    FixedFontMeasurer,
    FontMeasurer,
    parse_font_size,
)
from .geometry import Geometry, GeometryCoordinator
from .grid import Cell, ScreenGrid

__all__ = [
    "Cell",
    "CellFontMeasurer",
    "EstimatedFontMeasurer",
    "FixedFontMeasurer",
    "FontMeasurer",
    "Geometry",
    "GeometryCoordinator",
    "ScreenGrid",
    "parse_font_size",
]
