import heapq
import logging
from itertools import count
from typing import List, NamedTuple, Tuple

from path_engine.core.errors import ObstacleEndpointError, SearchError
from path_engine.core.events import VisualizationStep
from path_engine.core.grid import Cell, Coord, Grid

logger = logging.getLogger(__name__)


class SearchResult(NamedTuple):
    path: Tuple[Coord, ...]
    trace: Tuple[VisualizationStep, ...]
    found: bool


def _resolve_endpoint(grid: Grid, coord: Coord, label: str) -> Cell:
    cell = grid.locate(coord)
    if cell.is_obstacle:
        raise ObstacleEndpointError(label, cell.row, cell.col)
    return cell


def find_shortest_path(grid: Grid, start: Coord, end: Coord) -> SearchResult:
    """
    Dijkstra with unit edge weights over the 4-neighbourhood.

    Works on a private copy of `grid`; the caller's grid is never touched.
    Returns (path, trace, found). An unreachable target is a normal result
    with found=False and an empty path.
    """
    work = grid.copy()
    start_cell = _resolve_endpoint(work, start, "Start")
    end_cell = _resolve_endpoint(work, end, "End")

    logger.debug(f"Searching {work.rows}x{work.cols} grid from {start_cell.coord} to {end_cell.coord}")

    trace: List[VisualizationStep] = []
    start_cell.distance = 0.0

    # Priority Queue: (distance, seq, (row, col))
    # seq keeps equal distances first-in-first-served. No decrease-key:
    # every relaxation pushes a new entry and stale ones are skipped on pop.
    seq = count()
    frontier = [(0.0, next(seq), start_cell.coord)]
    finalized = 0

    while frontier:
        _, _, coord = heapq.heappop(frontier)
        current = work.locate(coord)

        if current.finalized:
            continue

        current.finalized = True
        finalized += 1
        trace.append(VisualizationStep.visiting(current.row, current.col))

        if current is end_cell:
            path = reconstruct_path(work, end_cell)
            trace.append(VisualizationStep.path_found(path))
            logger.debug(f"Path found: {len(path)} cells, {finalized} finalized, {len(trace)} steps")
            return SearchResult(tuple(path), tuple(trace), True)

        for neighbor in work.neighbors(current):
            if neighbor.is_obstacle or neighbor.finalized:
                continue

            candidate = current.distance + 1
            if candidate < neighbor.distance:
                neighbor.distance = candidate
                neighbor.predecessor = current.coord
                heapq.heappush(frontier, (candidate, next(seq), neighbor.coord))
                trace.append(VisualizationStep.updating_distance(neighbor.row, neighbor.col, candidate))

    logger.debug(f"No path: frontier exhausted after {finalized} finalized, {len(trace)} steps")
    return SearchResult((), tuple(trace), False)


def reconstruct_path(grid: Grid, end: Cell) -> List[Coord]:
    """
    Walks predecessor coordinates back from `end` and returns start..end.
    The start appears exactly once: a cell pointing at itself ends the
    chain, and a chain that revisits any other cell raises SearchError.
    """
    path: List[Coord] = [end.coord]
    seen = {end.coord}
    cell = end
    while cell.predecessor is not None and cell.predecessor != cell.coord:
        pred = cell.predecessor
        if pred in seen:
            raise SearchError(f"Predecessor chain loops at {pred}")
        seen.add(pred)
        path.append(pred)
        cell = grid.locate(pred)

    path.reverse()
    return path
