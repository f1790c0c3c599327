import math
from enum import IntEnum
from typing import Iterable, Iterator, List, Optional, Tuple

from path_engine.core.errors import MalformedGridError, OutOfBoundsError

Coord = Tuple[int, int]


class CellState(IntEnum):
    # Ordinals are written to grid files, do not reorder
    EMPTY = 0
    OBSTACLE = 1
    START = 2
    END = 3
    VISITED = 4
    PATH = 5

    @classmethod
    def parse(cls, value) -> "CellState":
        if isinstance(value, CellState):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise MalformedGridError(f"Unknown cell state: {value!r}") from None
        if isinstance(value, dict):
            for key in ("type", "state"):
                if key in value:
                    return cls.parse(value[key])
            raise MalformedGridError(f"Cell has no type/state field: {value!r}")
        if isinstance(value, Cell):
            return value.state
        raise MalformedGridError(f"Cannot read a cell state from {value!r}")


# ASCII map glyphs
GLYPHS = {
    CellState.EMPTY: ".",
    CellState.OBSTACLE: "#",
    CellState.START: "S",
    CellState.END: "E",
    CellState.VISITED: "v",
    CellState.PATH: "*",
}
GLYPH_STATES = {glyph: state for state, glyph in GLYPHS.items()}


class Cell:
    """
    One grid position. Equality and hashing use (row, col) only, so a cell
    from one grid compares equal to the cell at the same spot in a copy.
    The predecessor is stored as a coordinate, never as a Cell reference.
    """
    __slots__ = ('row', 'col', 'state', 'distance', 'finalized', 'predecessor')

    def __init__(self, row: int, col: int, state: CellState = CellState.EMPTY):
        self.row = row
        self.col = col
        self.state = state
        self.distance = math.inf
        self.finalized = False
        self.predecessor: Optional[Coord] = None

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    @property
    def is_obstacle(self) -> bool:
        return self.state == CellState.OBSTACLE

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return self.row == other.row and self.col == other.col

    def __hash__(self):
        return hash((self.row, self.col))

    def __repr__(self):
        return f"Cell({self.row}, {self.col}, {self.state.name})"


class Grid:
    # Neighbour order is N, S, W, E. The frontier breaks ties by insertion
    # order, so changing this changes the trace.
    DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))

    __slots__ = ('rows', 'cols', '_cells')

    def __init__(self, rows: int, cols: int, fill: CellState = CellState.EMPTY):
        if rows < 1 or cols < 1:
            raise MalformedGridError(f"Grid must be at least 1x1, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self._cells: List[List[Cell]] = [
            [Cell(r, c, fill) for c in range(cols)] for r in range(rows)
        ]

    @classmethod
    def load(cls, rows: Iterable[Iterable]) -> "Grid":
        """
        Builds a grid from caller rows. Items may be CellState values, state
        names, dicts with a 'type' (or 'state') key, or Cells. Only the
        state is read; distances, visited flags and predecessors in the
        input are ignored.
        """
        states = [[CellState.parse(item) for item in row] for row in rows]
        if not states:
            raise MalformedGridError("Grid is empty")
        width = len(states[0])
        if width == 0:
            raise MalformedGridError("Grid rows are empty")
        for r, row in enumerate(states):
            if len(row) != width:
                raise MalformedGridError(
                    f"Row {r} has {len(row)} cells, expected {width}"
                )

        grid = cls(len(states), width)
        for r, row in enumerate(states):
            for c, state in enumerate(row):
                grid._cells[r][c].state = state
        return grid

    @classmethod
    def from_text(cls, text: str) -> "Grid":
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        rows = []
        for r, line in enumerate(lines):
            row = []
            for c, ch in enumerate(line):
                if ch not in GLYPH_STATES:
                    raise MalformedGridError(f"Unknown map glyph {ch!r} at ({r}, {c})")
                row.append(GLYPH_STATES[ch])
            rows.append(row)
        return cls.load(rows)

    def to_text(self) -> str:
        return "\n".join(
            "".join(GLYPHS[cell.state] for cell in row) for row in self._cells
        )

    def copy(self) -> "Grid":
        """Fresh working copy: same identities and states, algorithm fields reset."""
        clone = Grid(self.rows, self.cols)
        for r in range(self.rows):
            for c in range(self.cols):
                clone._cells[r][c].state = self._cells[r][c].state
        return clone

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def locate(self, coord: Coord) -> Cell:
        row, col = coord
        if not self.in_bounds(row, col):
            raise OutOfBoundsError(row, col, self.rows, self.cols)
        return self._cells[row][col]

    def neighbors(self, cell: Cell) -> Iterator[Cell]:
        """
        Yields the orthogonal neighbours of `cell` in N, S, W, E order.
        Does NOT skip obstacles (that's for the search).
        """
        for dr, dc in self.DIRECTIONS:
            nr, nc = cell.row + dr, cell.col + dc
            if 0 <= nr < self.rows and 0 <= nc < self.cols:
                yield self._cells[nr][nc]

    def cells(self) -> Iterator[Cell]:
        for row in self._cells:
            yield from row

    def find(self, state: CellState) -> Optional[Cell]:
        for cell in self.cells():
            if cell.state == state:
                return cell
        return None

    def set_state(self, coord: Coord, state: CellState):
        self.locate(coord).state = state

    def states(self) -> List[List[CellState]]:
        return [[cell.state for cell in row] for row in self._cells]
