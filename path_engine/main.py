import argparse
import sys
import os
import logging

# Ensure project root is in path so we can import 'path_engine' package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from path_engine.core.errors import PathEngineError

logger = logging.getLogger("path_engine")


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def parse_coord(text: str):
    try:
        row, col = (int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected 'row,col', got {text!r}")
    return row, col


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Path Engine: Dijkstra shortest paths on obstacle grids")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate Command
    gen_parser = subparsers.add_parser("generate", help="Generate a grid with obstacles")
    gen_parser.add_argument("--rows", type=int, default=20, help="Grid rows")
    gen_parser.add_argument("--cols", type=int, default=40, help="Grid columns")
    gen_parser.add_argument("--density", type=float, default=0.25, help="Obstacle probability (0.0 - 1.0)")
    gen_parser.add_argument("--maze", action="store_true", help="Carve a maze instead of scattering obstacles")
    gen_parser.add_argument("--seed", type=int, default=None, help="Random Seed")
    gen_parser.add_argument("--compress", action="store_true", help="zlib-compress binary output")
    gen_parser.add_argument("--out", type=str, required=True, help="Output file (.txt/.map for ASCII)")

    # Solve Command
    solve_parser = subparsers.add_parser("solve", help="Find the shortest path on a grid file")
    solve_parser.add_argument("input_file", help="Path to grid file")
    solve_parser.add_argument("--start", type=parse_coord, help="Start 'row,col' (default: S marker)")
    solve_parser.add_argument("--end", type=parse_coord, help="End 'row,col' (default: E marker)")
    solve_parser.add_argument("--visual", action="store_true", help="Animate the search")
    solve_parser.add_argument("--record", action="store_true", help="Record the animation to mp4")
    solve_parser.add_argument("--speed", type=int, default=1, help="Trace steps per frame")
    solve_parser.add_argument("--record-events", type=str, help="Save the trace to a binary event log")
    solve_parser.add_argument("--show", action="store_true", help="Print the solved grid as ASCII")

    # Replay Command
    replay_parser = subparsers.add_parser("replay", help="Replay an event log")
    replay_parser.add_argument("event_file", help="Path to event log file")
    replay_parser.add_argument("--grid", type=str, required=True, help="Grid file the trace was recorded on")
    replay_parser.add_argument("--speed", type=int, default=1, help="Trace steps per frame")
    replay_parser.add_argument("--record", action="store_true", help="Record video")

    # Serve Command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8080, help="Bind port")

    return parser


def resolve_endpoints(grid, start, end):
    from path_engine.core.grid import CellState

    if start is None:
        cell = grid.find(CellState.START)
        if cell is None:
            raise PathEngineError("No --start given and the grid has no START marker")
        start = cell.coord
    if end is None:
        cell = grid.find(CellState.END)
        if cell is None:
            raise PathEngineError("No --end given and the grid has no END marker")
        end = cell.coord
    return start, end


def animate(grid, trace, speed, record, prefix):
    from path_engine.viz.replay import TraceReplay
    from path_engine.viz.renderer import Renderer

    output_file = None
    if record:
        from path_engine.viz.recorder import default_output_file
        output_file = default_output_file(prefix)
        logger.info(f"Recording video to {output_file}")

    renderer = Renderer(TraceReplay(grid, trace), steps_per_frame=speed, record=record,
                        output_file=output_file)
    renderer.init_window()
    renderer.run_loop(close_when_done=record)


def cmd_generate(args):
    from path_engine.algo.obstacles import carve_maze, last_room, place_endpoints, scatter_obstacles
    from path_engine.io.serializer import GridSerializer

    if args.maze:
        logger.info(f"Carving {args.rows}x{args.cols} maze...")
        grid = carve_maze(args.rows, args.cols, seed=args.seed)
        end = last_room(grid)
    else:
        logger.info(f"Scattering obstacles on {args.rows}x{args.cols} grid (density={args.density})...")
        grid = scatter_obstacles(args.rows, args.cols, density=args.density, seed=args.seed)
        end = (grid.rows - 1, grid.cols - 1)

    # Raises ValueError on grids too small to hold both markers
    grid = place_endpoints(grid, (0, 0), end)

    meta = {"generator": "maze" if args.maze else "scatter", "seed": args.seed}
    if not args.maze:
        meta["density"] = args.density
    GridSerializer.save(grid, args.out, meta=meta, compress=args.compress)
    logger.info(f"Saved grid to {args.out}")


def cmd_solve(args):
    from path_engine.algo.dijkstra import find_shortest_path
    from path_engine.core.events import ACTION_VISITING
    from path_engine.io.serializer import GridSerializer

    logger.info(f"Loading {args.input_file}...")
    grid, meta = GridSerializer.load(args.input_file)
    logger.info(f"Loaded {grid.rows}x{grid.cols} grid. Meta: {meta}")

    start, end = resolve_endpoints(grid, args.start, args.end)
    logger.info(f"Solving from {start} to {end}...")

    path, trace, found = find_shortest_path(grid, start, end)
    visited = sum(1 for step in trace if step.action == ACTION_VISITING)

    if found:
        print(f"Path found. Length: {len(path)} cells, Visited: {visited}, Steps: {len(trace)}")
    else:
        print(f"No path found. Visited: {visited}, Steps: {len(trace)}")

    if args.record_events:
        from path_engine.core.events import TraceWriter
        with TraceWriter(args.record_events) as writer:
            writer.write_header(grid.rows, grid.cols)
            writer.write_trace(trace)
        logger.info(f"Saved events to {args.record_events}")

    if args.show:
        from path_engine.viz.replay import TraceReplay
        print(TraceReplay(grid, trace).run_all().to_text())

    if args.visual or args.record:
        base_name = os.path.splitext(os.path.basename(args.input_file))[0]
        animate(grid, trace, args.speed, args.record, f"solve_{base_name}")


def cmd_replay(args):
    from path_engine.core.events import TraceReader
    from path_engine.io.serializer import GridSerializer

    logger.info(f"Replaying {args.event_file}...")
    grid, _ = GridSerializer.load(args.grid)
    with TraceReader(args.event_file) as reader:
        rows, cols = reader.read_header()
        logger.info(f"Log Header: {rows}x{cols}")
        if (rows, cols) != (grid.rows, grid.cols):
            raise PathEngineError(
                f"Grid file is {grid.rows}x{grid.cols} but the event log is {rows}x{cols}"
            )
        trace = reader.read_trace()

    base_name = os.path.splitext(os.path.basename(args.event_file))[0]
    animate(grid, trace, args.speed, args.record, f"replay_{base_name}")


def cmd_serve(args):
    import uvicorn

    logger.info(f"Serving API on http://{args.host}:{args.port}")
    uvicorn.run("path_engine.api:app", host=args.host, port=args.port)


COMMANDS = {
    "generate": cmd_generate,
    "solve": cmd_solve,
    "replay": cmd_replay,
    "serve": cmd_serve,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    logger.info(f"Running command: {args.command}")
    try:
        COMMANDS[args.command](args)
    except (PathEngineError, OSError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
