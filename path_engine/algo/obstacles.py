import random
from typing import Iterator, List, Tuple

from path_engine.algo.base import Generator
from path_engine.core.grid import CellState, Coord, Grid


class ObstacleScatter(Generator):
    """Turns each cell into an obstacle with probability `density`."""

    def __init__(self, grid: Grid, density: float = 0.3, seed: int = None):
        super().__init__(grid, seed)
        if not 0.0 <= density <= 1.0:
            raise ValueError(f"density must be within 0.0 - 1.0, got {density}")
        self.density = density

    def run(self) -> Iterator[str]:
        rng = random.Random(self.seed)
        for cell in self.grid.cells():
            # Always draw so the pattern for a seed doesn't depend on density
            roll = rng.random()
            if roll < self.density:
                cell.state = CellState.OBSTACLE
                self.step_count += 1
        yield f"Placed {self.step_count} obstacles"


class MazeCarver(Generator):
    """
    Recursive backtracker on the cell grid. Cells at even (row, col) are
    rooms, everything else starts as an obstacle and is knocked out when
    two rooms get connected.
    """
    STEPS = ((-2, 0), (2, 0), (0, -2), (0, 2))

    def run(self) -> Iterator[str]:
        rng = random.Random(self.seed)
        for cell in self.grid.cells():
            cell.state = CellState.OBSTACLE

        start = self.grid.locate((0, 0))
        start.state = CellState.EMPTY
        stack: List[Tuple[int, int]] = [(0, 0)]

        while stack:
            r, c = stack[-1]

            # Unvisited rooms two cells away
            options = []
            for dr, dc in self.STEPS:
                nr, nc = r + dr, c + dc
                if self.grid.in_bounds(nr, nc) and self.grid.locate((nr, nc)).is_obstacle:
                    options.append((nr, nc, dr // 2, dc // 2))

            if options:
                nr, nc, wr, wc = rng.choice(options)
                self.grid.set_state((r + wr, c + wc), CellState.EMPTY)
                self.grid.set_state((nr, nc), CellState.EMPTY)
                stack.append((nr, nc))
                self.step_count += 1

                if self.step_count % 100 == 0:
                    yield f"Carving... Stack: {len(stack)}"
            else:
                stack.pop()

        yield "Done"


def scatter_obstacles(rows: int, cols: int, density: float = 0.3, seed: int = None) -> Grid:
    return ObstacleScatter.build(rows, cols, seed=seed, density=density)


def carve_maze(rows: int, cols: int, seed: int = None) -> Grid:
    return MazeCarver.build(rows, cols, seed=seed)


def last_room(grid: Grid) -> Coord:
    """Bottom-right cell that MazeCarver treats as a room."""
    return (grid.rows - 1 - (grid.rows - 1) % 2, grid.cols - 1 - (grid.cols - 1) % 2)


def place_endpoints(grid: Grid, start: Coord, end: Coord) -> Grid:
    """
    Returns a copy with START and END marked at the given coordinates.
    Existing markers are cleared and the endpoint cells stop being obstacles.
    Raises ValueError when start and end coincide, since one marker would
    overwrite the other.
    """
    if tuple(start) == tuple(end):
        raise ValueError(f"Start and end are both {tuple(start)}; a grid needs two distinct markers")
    out = grid.copy()
    for cell in out.cells():
        if cell.state in (CellState.START, CellState.END):
            cell.state = CellState.EMPTY
    out.set_state(start, CellState.START)
    out.set_state(end, CellState.END)
    return out
