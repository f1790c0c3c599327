class PathEngineError(Exception):
    """Base class for all errors raised by path_engine."""


class MalformedGridError(PathEngineError, ValueError):
    """Grid is empty, has ragged rows, or carries an unknown cell state."""


class OutOfBoundsError(PathEngineError, IndexError):
    def __init__(self, row: int, col: int, rows: int, cols: int):
        super().__init__(f"Coordinate ({row}, {col}) out of bounds for {rows}x{cols} grid")
        self.row = row
        self.col = col


class ObstacleEndpointError(PathEngineError, ValueError):
    def __init__(self, label: str, row: int, col: int):
        super().__init__(f"{label} coordinate ({row}, {col}) is an obstacle")
        self.label = label
        self.row = row
        self.col = col


class SearchError(PathEngineError):
    """Predecessor chain is broken (should never happen on a valid run)."""


class GridFormatError(PathEngineError, ValueError):
    pass


class TraceFormatError(PathEngineError, ValueError):
    pass
