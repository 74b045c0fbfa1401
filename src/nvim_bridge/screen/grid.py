"""In-memory cell grid rebuilt from the UI action stream."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from nvim_bridge.redraw import actions
from nvim_bridge.redraw.actions import Color, HighlightAttributes

Cursor = Tuple[int, int]  # (row, column)
Region = Tuple[int, int, int, int]  # (top, bottom, left, right), inclusive

_DEFAULT_HIGHLIGHT = HighlightAttributes()


@dataclass(frozen=True, slots=True)
class Cell:
    char: str = " "
    highlight: HighlightAttributes = _DEFAULT_HIGHLIGHT


_BLANK = Cell()


class ScreenGrid:
    """Applies :mod:`nvim_bridge.redraw.actions` to a rows x cols grid."""

    def __init__(self, rows: int = 0, cols: int = 0) -> None:
        self.rows = rows
        self.cols = cols
        self.cells: List[List[Cell]] = []
        self.cursor: Cursor = (0, 0)
        self.scroll_region: Region = (0, 0, 0, 0)
        self.highlight = _DEFAULT_HIGHLIGHT
        self.foreground: Color = None
        self.background: Color = None
        self.mode: Optional[str] = None
        self.font: Optional[actions.SetFont] = None
        self._handlers: Dict[Type[Any], Callable[[Any], None]] = {
            actions.CursorGoto: self._cursor_goto,
            actions.Put: self._put,
            actions.SetScrollRegion: self._set_scroll_region,
            actions.Scroll: self._scroll,
            actions.SetHighlight: self._set_highlight,
            actions.Resize: self._resize,
            actions.ClearToEndOfLine: self._clear_to_eol,
            actions.Clear: self._clear,
            actions.UpdateBackground: self._update_background,
            actions.UpdateForeground: self._update_foreground,
            actions.ChangeMode: self._change_mode,
            actions.SetFont: self._set_font,
        }
        self._allocate(rows, cols)

    def apply(self, action: actions.UIAction) -> None:
        self._handlers[type(action)](action)

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def row_text(self, row: int) -> str:
        return "".join(cell.char for cell in self.cells[row])

    def lines(self) -> List[str]:
        return [self.row_text(row) for row in range(self.rows)]

    def _allocate(self, rows: int, cols: int) -> None:
        self.rows, self.cols = rows, cols
        self.cells = [[_BLANK] * cols for _ in range(rows)]
        self.cursor = (0, 0)
        self.scroll_region = (0, max(rows - 1, 0), 0, max(cols - 1, 0))

    def _cursor_goto(self, action: actions.CursorGoto) -> None:
        self.cursor = (action.row, action.col)

    def _put(self, action: actions.Put) -> None:
        row, col = self.cursor
        for char in action.characters:
            if 0 <= row < self.rows and 0 <= col < self.cols:
                self.cells[row][col] = Cell(char=char, highlight=self.highlight)
            col += 1
        self.cursor = (row, col)

    def _set_scroll_region(self, action: actions.SetScrollRegion) -> None:
        self.scroll_region = (action.top, action.bottom, action.left, action.right)

    def _scroll(self, action: actions.Scroll) -> None:
        top, bottom, left, right = self.scroll_region
        count = action.count
        if count == 0:
            return
        height = bottom - top + 1
        width = right - left + 1
        # count > 0 moves the region up, count < 0 moves it down
        source_rows = range(top, bottom + 1)
        snapshot = [self.cells[row][left : right + 1] for row in source_rows]
        for offset, row in enumerate(source_rows):
            index = offset + count
            if 0 <= index < height:
                segment = snapshot[index]
            else:
                segment = [_BLANK] * width
            self.cells[row][left : right + 1] = segment

    def _set_highlight(self, action: actions.SetHighlight) -> None:
        self.highlight = action.attributes

    def _resize(self, action: actions.Resize) -> None:
        self._allocate(action.rows, action.columns)

    def _clear_to_eol(self, action: actions.ClearToEndOfLine) -> None:
        del action
        row, col = self.cursor
        if 0 <= row < self.rows:
            for index in range(max(col, 0), self.cols):
                self.cells[row][index] = _BLANK

    def _clear(self, action: actions.Clear) -> None:
        del action
        self.cells = [[_BLANK] * self.cols for _ in range(self.rows)]

    def _update_background(self, action: actions.UpdateBackground) -> None:
        self.background = action.color

    def _update_foreground(self, action: actions.UpdateForeground) -> None:
        self.foreground = action.color

    def _change_mode(self, action: actions.ChangeMode) -> None:
        self.mode = action.mode

    def _set_font(self, action: actions.SetFont) -> None:
        self.font = action


__all__ = ["Cell", "ScreenGrid"]
