import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Tuple

from path_engine.core.errors import TraceFormatError
from path_engine.core.grid import CellState, Coord

# Step actions
ACTION_VISITING = "visiting"
ACTION_UPDATING_DISTANCE = "updating_distance"
ACTION_PATH_FOUND = "path_found"


@dataclass(frozen=True)
class VisualizationStep:
    """
    One observable event of a search.
    visited:          (row, col, state) cells marked in this step
    distance_updates: ((row, col), new tentative distance) pairs
    action:           one of the ACTION_* names
    Steps are hashable; `distances` is a read-only view of the updates.
    """
    visited: Tuple[Tuple[int, int, CellState], ...] = ()
    distance_updates: Tuple[Tuple[Coord, float], ...] = ()
    action: str = ACTION_VISITING

    @property
    def distances(self) -> Mapping[Coord, float]:
        return MappingProxyType(dict(self.distance_updates))

    @classmethod
    def visiting(cls, row: int, col: int) -> "VisualizationStep":
        return cls(visited=((row, col, CellState.VISITED),), action=ACTION_VISITING)

    @classmethod
    def updating_distance(cls, row: int, col: int, distance: float) -> "VisualizationStep":
        return cls(distance_updates=(((row, col), distance),), action=ACTION_UPDATING_DISTANCE)

    @classmethod
    def path_found(cls, path: Iterable[Coord]) -> "VisualizationStep":
        return cls(
            visited=tuple((r, c, CellState.PATH) for r, c in path),
            action=ACTION_PATH_FOUND,
        )


# Event Types
EVT_VISIT = 0x01
EVT_DISTANCE = 0x02
EVT_PATH_ADD = 0x03
EVT_PATH_END = 0x04

MAGIC = b"PATHLOG"
MAX_COORD = 0xFFFF  # coordinates are packed as unsigned shorts


class TraceWriter:
    """
    Writes a trace to a binary log.
    Header: MAGIC + rows (4b) + cols (4b), then one record per event:
    1 byte type + 2b row + 2b col [+ 8b distance].
    A path_found step is a run of EVT_PATH_ADD closed by EVT_PATH_END.
    """
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "wb")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def write_header(self, rows: int, cols: int):
        if rows > MAX_COORD + 1 or cols > MAX_COORD + 1:
            raise TraceFormatError(f"Grid {rows}x{cols} too large for the event log")
        self.file.write(MAGIC)
        self.file.write(struct.pack(">II", rows, cols))

    def log_visit(self, row: int, col: int):
        self.file.write(struct.pack(">BHH", EVT_VISIT, row, col))

    def log_distance(self, row: int, col: int, distance: float):
        self.file.write(struct.pack(">BHHd", EVT_DISTANCE, row, col, distance))

    def log_path(self, path: Iterable[Coord]):
        for row, col in path:
            self.file.write(struct.pack(">BHH", EVT_PATH_ADD, row, col))
        self.file.write(struct.pack(">B", EVT_PATH_END))

    def write_step(self, step: VisualizationStep):
        if step.action == ACTION_VISITING:
            if len(step.visited) != 1:
                raise TraceFormatError("A visiting step must mark exactly one cell")
            row, col, _ = step.visited[0]
            self.log_visit(row, col)
        elif step.action == ACTION_UPDATING_DISTANCE:
            if len(step.distance_updates) != 1:
                raise TraceFormatError("An updating_distance step must carry exactly one distance")
            ((row, col), distance), = step.distance_updates
            self.log_distance(row, col, distance)
        elif step.action == ACTION_PATH_FOUND:
            self.log_path((row, col) for row, col, _ in step.visited)
        else:
            raise TraceFormatError(f"Unknown step action: {step.action!r}")

    def write_trace(self, trace: Iterable[VisualizationStep]):
        for step in trace:
            self.write_step(step)

    def close(self):
        if self.file:
            self.file.close()
            self.file = None


class TraceReader:
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "rb")
        self.rows = 0
        self.cols = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def read_header(self) -> Tuple[int, int]:
        magic = self.file.read(len(MAGIC))
        if magic != MAGIC:
            raise TraceFormatError("Invalid event log file")
        data = self.file.read(8)
        if len(data) != 8:
            raise TraceFormatError("Truncated event log header")
        self.rows, self.cols = struct.unpack(">II", data)
        return self.rows, self.cols

    def _read(self, size: int) -> bytes:
        data = self.file.read(size)
        if len(data) != size:
            raise TraceFormatError("Truncated event record")
        return data

    def stream_events(self) -> Iterator[Tuple[int, Tuple]]:
        while True:
            type_byte = self.file.read(1)
            if not type_byte:
                break

            type_code = ord(type_byte)

            if type_code == EVT_VISIT or type_code == EVT_PATH_ADD:
                yield (type_code, struct.unpack(">HH", self._read(4)))

            elif type_code == EVT_DISTANCE:
                yield (type_code, struct.unpack(">HHd", self._read(12)))

            elif type_code == EVT_PATH_END:
                yield (type_code, ())

            else:
                raise TraceFormatError(f"Unknown event type 0x{type_code:02x}")

    def read_trace(self) -> List[VisualizationStep]:
        """Rebuilds the VisualizationStep sequence. Reads the header if needed."""
        if not self.rows:
            self.read_header()

        trace: List[VisualizationStep] = []
        pending_path: List[Coord] = []
        for type_code, data in self.stream_events():
            if type_code == EVT_VISIT:
                trace.append(VisualizationStep.visiting(*data))
            elif type_code == EVT_DISTANCE:
                trace.append(VisualizationStep.updating_distance(*data))
            elif type_code == EVT_PATH_ADD:
                pending_path.append(data)
            elif type_code == EVT_PATH_END:
                trace.append(VisualizationStep.path_found(pending_path))
                pending_path = []

        if pending_path:
            raise TraceFormatError("Path records without a closing EVT_PATH_END")
        return trace

    def close(self):
        if self.file:
            self.file.close()
            self.file = None
