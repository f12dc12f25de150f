# ============================================================
# MyBrowse - Terminal MySQL Browser
# core/grid.py — Grid Model, Selection & Visible Column Window
# ============================================================
#
# One TableGrid per tab (Records / Columns). It owns:
#   Grid           → name + headers + stringified rows
#   Selection      → row/column cursor, saturating at every edge
#   VisibleWindow  → PAGE_SIZE columns rendered at a time
#
# The window moves in jumps: stepping past the right edge makes the
# selected column the rightmost visible one, stepping past the left
# edge makes it the leftmost one.
# ============================================================

from dataclasses import dataclass, field, replace as dc_replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

PAGE_SIZE = 10


class DataShapeError(ValueError):
    """A row does not have one cell per header."""


class NavigationIntent(Enum):
    """Directional moves a grid understands."""
    MOVE_UP = "up"
    MOVE_DOWN = "down"
    MOVE_LEFT = "left"
    MOVE_RIGHT = "right"


@dataclass(frozen=True)
class SwitchResultSet:
    """Intent to replace the grid's contents with a new result set."""
    name: str
    headers: Sequence[str]
    rows: Sequence[Sequence[str]]


# ── Grid Model ────────────────────────────────────────────────

@dataclass(frozen=True)
class Grid:
    """One rectangular result set (table records or column metadata)."""
    name: str
    headers: Tuple[str, ...] = ()
    rows: Tuple[Tuple[str, ...], ...] = ()

    @classmethod
    def create(
        cls,
        name: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> "Grid":
        """
        Build a Grid, rejecting ragged data.

        Raises:
            DataShapeError: if any row's cell count differs from the
                number of headers.
        """
        headers = tuple(str(h) for h in headers)
        width = len(headers)
        if width == 0 and len(rows) > 0:
            raise DataShapeError(f"'{name}' has {len(rows)} rows but no headers")
        checked = []
        for index, row in enumerate(rows):
            row = tuple(row)
            if len(row) != width:
                raise DataShapeError(
                    f"Row {index} of '{name}' has {len(row)} cells, expected {width}"
                )
            checked.append(row)
        return cls(name=name, headers=headers, rows=tuple(checked))

    @property
    def width(self) -> int:
        return len(self.headers)

    @property
    def height(self) -> int:
        return len(self.rows)

    def is_empty(self) -> bool:
        return self.height == 0 or self.width == 0


# ── Selection ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Selection:
    row: Optional[int] = None
    column: int = 0

    @classmethod
    def initial(cls, grid: Grid) -> "Selection":
        return cls(row=0 if grid.height > 0 else None, column=0)


def move_up(grid: Grid, selection: Selection) -> Selection:
    if selection.row is None or selection.row == 0:
        return selection
    return dc_replace(selection, row=selection.row - 1)


def move_down(grid: Grid, selection: Selection) -> Selection:
    if selection.row is None or selection.row >= grid.height - 1:
        return selection
    return dc_replace(selection, row=selection.row + 1)


def move_left(grid: Grid, selection: Selection) -> Selection:
    if grid.is_empty() or selection.column == 0:
        return selection
    return dc_replace(selection, column=selection.column - 1)


def move_right(grid: Grid, selection: Selection) -> Selection:
    if grid.is_empty() or selection.column >= grid.width - 1:
        return selection
    return dc_replace(selection, column=selection.column + 1)


_MOVES = {
    NavigationIntent.MOVE_UP: move_up,
    NavigationIntent.MOVE_DOWN: move_down,
    NavigationIntent.MOVE_LEFT: move_left,
    NavigationIntent.MOVE_RIGHT: move_right,
}


# ── Visible Window ────────────────────────────────────────────

@dataclass
class VisibleWindow:
    """Contiguous column slice; may extend past the last real column."""
    start: int = 0
    end: int = PAGE_SIZE - 1

    def recalculate(self, selected_column: int) -> None:
        if selected_column > self.end:
            self.end = selected_column
            self.start = max(0, self.end - (PAGE_SIZE - 1))
        elif selected_column < self.start:
            self.start = selected_column
            self.end = self.start + (PAGE_SIZE - 1)

    def clip(self, width: int) -> Tuple[int, int]:
        """Half-open [start, stop) bounds of the window within `width` columns."""
        stop = min(self.end, width - 1) + 1
        return self.start, max(self.start, stop)


# ── TableGrid ─────────────────────────────────────────────────

@dataclass
class TableGrid:
    """
    Grid + Selection + VisibleWindow for a single tab.
    The title is a display label only ("Records", "Columns").
    """
    title: str
    grid: Grid = field(default_factory=lambda: Grid(name=""))
    selection: Selection = field(default_factory=Selection)
    window: VisibleWindow = field(default_factory=VisibleWindow)

    @property
    def name(self) -> str:
        return self.grid.name

    def load(self, grid: Grid) -> None:
        """Swap in an already validated grid and reset the cursor."""
        self.grid = grid
        self.selection = Selection.initial(grid)
        self.window = VisibleWindow()

    def replace(
        self,
        name: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        # Grid.create raises before anything is assigned.
        self.load(Grid.create(name, headers, rows))

    def is_empty(self) -> bool:
        return self.grid.is_empty()

    # ── Navigation ────────────────────────────────────────────

    def move(self, intent: NavigationIntent) -> None:
        self.selection = _MOVES[intent](self.grid, self.selection)
        self.recalculate_window()

    def move_up(self) -> None:
        self.move(NavigationIntent.MOVE_UP)

    def move_down(self) -> None:
        self.move(NavigationIntent.MOVE_DOWN)

    def move_left(self) -> None:
        self.move(NavigationIntent.MOVE_LEFT)

    def move_right(self) -> None:
        self.move(NavigationIntent.MOVE_RIGHT)

    def apply(self, intent) -> None:
        """Apply a NavigationIntent or a SwitchResultSet."""
        if isinstance(intent, SwitchResultSet):
            self.replace(intent.name, intent.headers, intent.rows)
        else:
            self.move(intent)

    def recalculate_window(self) -> None:
        self.window.recalculate(self.selection.column)

    # ── Renderer view ─────────────────────────────────────────

    @property
    def visible_headers(self) -> List[str]:
        start, stop = self.window.clip(self.grid.width)
        return list(self.grid.headers[start:stop])

    @property
    def visible_rows(self) -> List[List[str]]:
        return self.row_slice(0, self.grid.height)

    def row_slice(self, first: int, stop: int) -> List[List[str]]:
        """Rows first..stop-1, cut down to the visible columns."""
        start, end = self.window.clip(self.grid.width)
        return [list(row[start:end]) for row in self.grid.rows[first:stop]]

    @property
    def highlighted(self) -> Optional[Tuple[int, int]]:
        """(row index, column index within the visible slice), or None."""
        if self.selection.row is None or self.grid.width == 0:
            return None
        return self.selection.row, self.selection.column - self.window.start

    @property
    def selected_value(self) -> Optional[str]:
        if self.selection.row is None or self.grid.width == 0:
            return None
        return self.grid.rows[self.selection.row][self.selection.column]
