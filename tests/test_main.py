import unittest
import sys
import os
import shutil
import tempfile
from contextlib import redirect_stdout
from io import StringIO

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from path_engine.core.events import ACTION_PATH_FOUND, TraceReader
from path_engine.io.serializer import GridSerializer
from path_engine.main import main


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def run_cli(self, *argv):
        out = StringIO()
        with redirect_stdout(out):
            code = main(list(argv))
        return code, out.getvalue()

    def test_generate_then_solve(self):
        grid_file = os.path.join(self.tmp, "maze.grid")
        events = os.path.join(self.tmp, "maze.events")

        code, _ = self.run_cli("generate", "--rows", "11", "--cols", "11", "--maze", "--seed", "5",
                               "--out", grid_file)
        self.assertEqual(code, 0)
        grid, meta = GridSerializer.load(grid_file)
        self.assertEqual((grid.rows, grid.cols), (11, 11))
        self.assertEqual(meta["generator"], "maze")

        code, out = self.run_cli("solve", grid_file, "--record-events", events, "--show")
        self.assertEqual(code, 0)
        self.assertIn("Path found.", out)

        with TraceReader(events) as reader:
            self.assertEqual(reader.read_header(), (11, 11))
            trace = reader.read_trace()
        self.assertEqual(trace[-1].action, ACTION_PATH_FOUND)

    def test_solve_explicit_coordinates(self):
        grid_file = os.path.join(self.tmp, "open.txt")
        with open(grid_file, "w") as f:
            f.write("....\n.##.\n....\n")

        code, out = self.run_cli("solve", grid_file, "--start", "0,0", "--end", "2,3")
        self.assertEqual(code, 0)
        self.assertIn("Length: 6 cells", out)

    def test_solve_without_markers_fails(self):
        grid_file = os.path.join(self.tmp, "open.txt")
        with open(grid_file, "w") as f:
            f.write("...\n...\n")

        code, _ = self.run_cli("solve", grid_file)
        self.assertEqual(code, 1)

    def test_generate_records_density_only_for_scatter(self):
        maze_file = os.path.join(self.tmp, "maze.grid")
        scatter_file = os.path.join(self.tmp, "scatter.grid")

        self.assertEqual(self.run_cli("generate", "--rows", "5", "--cols", "5", "--maze",
                                      "--out", maze_file)[0], 0)
        self.assertEqual(self.run_cli("generate", "--rows", "5", "--cols", "5", "--density", "0.1",
                                      "--seed", "2", "--out", scatter_file)[0], 0)

        _, maze_meta = GridSerializer.load(maze_file)
        _, scatter_meta = GridSerializer.load(scatter_file)
        self.assertNotIn("density", maze_meta)
        self.assertEqual(scatter_meta["generator"], "scatter")
        self.assertEqual(scatter_meta["density"], 0.1)

    def test_generate_single_cell_fails(self):
        grid_file = os.path.join(self.tmp, "tiny.txt")
        code, _ = self.run_cli("generate", "--rows", "1", "--cols", "1", "--density", "0",
                               "--out", grid_file)
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(grid_file))

    def test_generate_bad_density_fails(self):
        grid_file = os.path.join(self.tmp, "dense.grid")
        code, _ = self.run_cli("generate", "--density", "1.5", "--out", grid_file)
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(grid_file))

    def test_missing_file(self):
        code, _ = self.run_cli("solve", os.path.join(self.tmp, "nope.grid"))
        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main()
