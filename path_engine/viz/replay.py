from typing import Dict, Iterable, Iterator, List

from path_engine.core.events import (
    ACTION_PATH_FOUND, ACTION_UPDATING_DISTANCE, ACTION_VISITING, VisualizationStep,
)
from path_engine.core.grid import CellState, Coord, Grid


class TraceReplay:
    """
    Plays a trace back onto a display copy of the grid, one step per
    iteration of run(). The renderer only reads `grid`, `distances` and
    `path`; START/END markers are never painted over.
    """
    PROTECTED = (CellState.START, CellState.END)

    def __init__(self, grid: Grid, trace: Iterable[VisualizationStep]):
        self.grid = grid.copy()
        self.trace: List[VisualizationStep] = list(trace)

        self.step_index = 0
        self.visited_count = 0
        self.distances: Dict[Coord, float] = {}
        self.path: List[Coord] = []
        self.found = False

    @property
    def finished(self) -> bool:
        return self.step_index >= len(self.trace)

    def _paint(self, row: int, col: int, state: CellState):
        cell = self.grid.locate((row, col))
        if cell.state not in self.PROTECTED:
            cell.state = state

    def apply(self, step: VisualizationStep):
        if step.action == ACTION_VISITING:
            for row, col, state in step.visited:
                self._paint(row, col, state)
                self.visited_count += 1

        elif step.action == ACTION_UPDATING_DISTANCE:
            self.distances.update(step.distances)

        elif step.action == ACTION_PATH_FOUND:
            for row, col, state in step.visited:
                self._paint(row, col, state)
                self.path.append((row, col))
            self.found = True

    def step(self) -> VisualizationStep:
        step = self.trace[self.step_index]
        self.apply(step)
        self.step_index += 1
        return step

    def run(self) -> Iterator[str]:
        while not self.finished:
            yield self.step().action
        yield "Done"

    def run_all(self) -> Grid:
        for _ in self.run():
            pass
        return self.grid
