import sys
import os
import time
import argparse

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from path_engine.algo.dijkstra import find_shortest_path
from path_engine.algo.obstacles import carve_maze, last_room, place_endpoints, scatter_obstacles
from path_engine.core.events import ACTION_VISITING
from path_engine.core.grid import Grid

SIZES = [50, 100, 200, 400]


def build_grid(kind: str, size: int, density: float, seed):
    if kind == "open":
        grid = Grid(size, size)
        end = (size - 1, size - 1)
    elif kind == "maze":
        grid = carve_maze(size, size, seed=seed)
        end = last_room(grid)
    else:
        grid = scatter_obstacles(size, size, density=density, seed=seed)
        end = (size - 1, size - 1)
    return place_endpoints(grid, (0, 0), end), end


def run_benchmark():
    parser = argparse.ArgumentParser(description="Dijkstra Search Benchmark")
    parser.add_argument("--kind", choices=["open", "scatter", "maze"], default="scatter", help="Grid type")
    parser.add_argument("--density", type=float, default=0.25, help="Obstacle density for scatter grids")
    parser.add_argument("--seed", type=int, default=1, help="Random Seed")
    parser.add_argument("--sizes", type=int, nargs="+", default=SIZES, help="Square grid sizes")
    args = parser.parse_args()

    print(f"=== DIJKSTRA SEARCH BENCHMARK ({args.kind}) ===")
    print(f"{'SIZE':<10} | {'TIME (s)':<10} | {'FOUND':<6} | {'PATH':<8} | {'VISITED':<8} | {'STEPS':<8}")
    print("-" * 64)

    for size in args.sizes:
        grid, end = build_grid(args.kind, size, args.density, args.seed)

        t_start = time.time()
        path, trace, found = find_shortest_path(grid, (0, 0), end)
        duration = time.time() - t_start

        visited = sum(1 for step in trace if step.action == ACTION_VISITING)
        label = f"{size}x{size}"
        print(f"{label:<10} | {duration:<10.4f} | {str(found):<6} | {len(path):<8} | {visited:<8} | {len(trace):<8}")

    print("=" * 64)


if __name__ == "__main__":
    run_benchmark()
