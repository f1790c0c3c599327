import json
import struct
import zlib
from typing import Any, Dict, Tuple

from path_engine.core.errors import GridFormatError, MalformedGridError
from path_engine.core.grid import CellState, Grid


class GridSerializer:
    MAGIC = b"GRID"
    VERSION = 1

    # Flags
    FLAG_COMPRESSED = 1

    TEXT_SUFFIXES = (".txt", ".map")

    @staticmethod
    def is_text(filepath: str) -> bool:
        return filepath.lower().endswith(GridSerializer.TEXT_SUFFIXES)

    @staticmethod
    def save(grid: Grid, filepath: str, meta: Dict[str, Any] = None, compress=False):
        """
        Saves the grid. `.txt`/`.map` paths get the ASCII map format (meta is
        dropped), anything else the binary format:
        - MAGIC (4 bytes)
        - VERSION (1 byte)
        - FLAGS (1 byte)
        - ROWS (4 bytes)
        - COLS (4 bytes)
        - META_LEN (2 bytes)
        - META_JSON (META_LEN bytes)
        - DATA_LEN (4 bytes)
        - DATA (one CellState byte per cell, row-major, optionally zlib)
        """
        if GridSerializer.is_text(filepath):
            with open(filepath, "w", encoding="utf-8") as f:
                f.write(grid.to_text())
                f.write("\n")
            return

        if meta is None:
            meta = {}

        flags = 0
        if compress:
            flags |= GridSerializer.FLAG_COMPRESSED

        meta_bytes = json.dumps(meta).encode('utf-8')
        data = bytes(int(cell.state) for cell in grid.cells())
        if compress:
            data = zlib.compress(data)

        with open(filepath, "wb") as f:
            f.write(GridSerializer.MAGIC)
            f.write(struct.pack(">BB", GridSerializer.VERSION, flags))
            f.write(struct.pack(">II", grid.rows, grid.cols))
            f.write(struct.pack(">H", len(meta_bytes)))
            f.write(meta_bytes)
            f.write(struct.pack(">I", len(data)))
            f.write(data)

    @staticmethod
    def load(filepath: str) -> Tuple[Grid, Dict[str, Any]]:
        if GridSerializer.is_text(filepath):
            with open(filepath, "r", encoding="utf-8") as f:
                text = f.read()
            try:
                return Grid.from_text(text), {}
            except MalformedGridError as e:
                raise GridFormatError(f"{filepath}: {e}") from e

        with open(filepath, "rb") as f:
            magic = f.read(4)
            if magic != GridSerializer.MAGIC:
                raise GridFormatError("Invalid file format")

            try:
                version, flags = struct.unpack(">BB", f.read(2))
                rows, cols = struct.unpack(">II", f.read(8))
                meta_len = struct.unpack(">H", f.read(2))[0]
                meta = json.loads(f.read(meta_len).decode('utf-8'))
                data_len = struct.unpack(">I", f.read(4))[0]
            except (struct.error, ValueError) as e:
                raise GridFormatError(f"Corrupt header: {e}") from e

            if version != GridSerializer.VERSION:
                raise GridFormatError(f"Unsupported version {version}")

            data = f.read(data_len)
            if len(data) != data_len:
                raise GridFormatError("Truncated cell data")
            if flags & GridSerializer.FLAG_COMPRESSED:
                try:
                    data = zlib.decompress(data)
                except zlib.error as e:
                    raise GridFormatError(f"Corrupt compressed data: {e}") from e

        if len(data) != rows * cols:
            raise GridFormatError(f"Expected {rows * cols} cells, found {len(data)}")

        try:
            states = [
                [CellState(b) for b in data[r * cols:(r + 1) * cols]]
                for r in range(rows)
            ]
            return Grid.load(states), meta
        except ValueError as e:
            raise GridFormatError(f"Invalid cell data: {e}") from e
