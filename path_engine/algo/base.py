from abc import ABC, abstractmethod
from typing import Iterator

from path_engine.core.grid import Grid


class Generator(ABC):
    """
    Produces a problem instance by rewriting cell states of `grid` in place.
    run() is a generator so the renderer can show progress; run_all() drives
    it to the end for headless use.
    """

    def __init__(self, grid: Grid, seed: int = None):
        self.grid = grid
        self.seed = seed
        self.step_count = 0

    @classmethod
    def build(cls, rows: int, cols: int, seed: int = None, **options) -> Grid:
        """Runs the generator on a fresh all-EMPTY rows x cols grid and returns it."""
        return cls(Grid(rows, cols), seed=seed, **options).run_all()

    @abstractmethod
    def run(self) -> Iterator[str]:
        pass

    def run_all(self) -> Grid:
        for _ in self.run():
            pass
        return self.grid
