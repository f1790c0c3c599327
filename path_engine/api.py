import logging
import os
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from path_engine.algo.dijkstra import find_shortest_path
from path_engine.core.errors import MalformedGridError, PathEngineError
from path_engine.core.events import VisualizationStep
from path_engine.core.grid import Grid

logger = logging.getLogger(__name__)

CORS_ENV = "PATH_ENGINE_CORS_ORIGINS"

MSG_FOUND = "Path found successfully!"
MSG_NOT_FOUND = "No path found."
MSG_INVALID = "Invalid request: Grid, start, or end not provided."


class CellModel(BaseModel):
    """A cell as the frontend sends it. Any algorithm fields are ignored."""
    row: Optional[int] = None
    col: Optional[int] = None
    type: str = "EMPTY"


class Coordinate(BaseModel):
    row: int
    col: int


class PathfindingRequest(BaseModel):
    grid: Optional[List[List[CellModel]]] = None
    start: Optional[Coordinate] = None
    end: Optional[Coordinate] = None


class NodeModel(BaseModel):
    row: int
    col: int
    type: str


class DistanceUpdate(BaseModel):
    row: int
    col: int
    distance: float


class StepModel(BaseModel):
    visitedNodes: List[NodeModel]
    updatedDistances: List[DistanceUpdate]
    action: str


class PathfindingResponse(BaseModel):
    shortestPath: Optional[List[NodeModel]] = None
    visualizationSteps: Optional[List[StepModel]] = None
    message: str
    pathFound: bool


def grid_from_request(rows: List[List[CellModel]]) -> Grid:
    """
    Builds the core Grid. Identity is the cell's position in the rows; a
    cell that names a different row/col is rejected, as are ragged rows.
    """
    for r, row in enumerate(rows):
        for c, cell in enumerate(row):
            if (cell.row is not None and cell.row != r) or (cell.col is not None and cell.col != c):
                raise MalformedGridError(
                    f"Cell at position ({r}, {c}) is labelled ({cell.row}, {cell.col})"
                )
    return Grid.load([[cell.type for cell in row] for row in rows])


def step_to_model(step: VisualizationStep) -> StepModel:
    return StepModel(
        visitedNodes=[NodeModel(row=r, col=c, type=state.name) for r, c, state in step.visited],
        updatedDistances=[
            DistanceUpdate(row=r, col=c, distance=d) for (r, c), d in step.distances.items()
        ],
        action=step.action,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    body = PathfindingResponse(message=message, pathFound=False)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(cors_origins: Optional[List[str]] = None) -> FastAPI:
    if cors_origins is None:
        raw = os.environ.get(CORS_ENV, "*")
        cors_origins = [o.strip() for o in raw.split(",") if o.strip()]

    app = FastAPI(title="path_engine")
    app.add_middleware(
        CORSMiddleware, allow_origins=cors_origins, allow_methods=["*"],
        allow_headers=["*"], allow_credentials=True
    )

    @app.exception_handler(RequestValidationError)
    def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Same envelope as every other rejected request, not FastAPI's 422 detail list
        problems = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        ]
        logger.info(f"Rejected malformed body: {problems}")
        return _error(400, "Invalid request: " + "; ".join(problems))

    @app.post("/api/find-path", response_model=PathfindingResponse)
    def find_path(request: PathfindingRequest):
        if not request.grid or request.start is None or request.end is None:
            return _error(400, MSG_INVALID)

        try:
            grid = grid_from_request(request.grid)
            result = find_shortest_path(
                grid,
                (request.start.row, request.start.col),
                (request.end.row, request.end.col),
            )
        except PathEngineError as e:
            logger.info(f"Rejected request: {e}")
            return _error(400, str(e))
        except Exception as e:
            logger.exception("Pathfinding failed")
            return _error(500, f"An error occurred: {e}")

        shortest_path = [
            NodeModel(row=r, col=c, type=grid.locate((r, c)).state.name)
            for r, c in result.path
        ]
        return PathfindingResponse(
            shortestPath=shortest_path,
            visualizationSteps=[step_to_model(step) for step in result.trace],
            message=MSG_FOUND if result.found else MSG_NOT_FOUND,
            pathFound=result.found,
        )

    @app.get("/api/ping")
    def ping() -> Dict[str, str]:
        return {"ping": "pong"}

    return app


app = create_app()
