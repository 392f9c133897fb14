"""
Command-line interface for scopegrid.

Provides commands for tiling a seed region, inferring a grid from a scene,
inspecting regions and writing a default configuration.
"""

import argparse
import os
import sys

from scopegrid.config import load_config, save_default_config
from scopegrid.models import Side
from scopegrid.tracer import configure_from_config, configure_tracer, get_tracer


def _add_common_args(parser):
    parser.add_argument(
        "--scene", "-s",
        required=True,
        help="Path to the scene JSON file",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="scopegrid",
        description="scopegrid: tile, infer and annotate grids of oriented rectangles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Tile command
    tile_parser = subparsers.add_parser("tile", help="Tile the seed region into a grid")
    _add_common_args(tile_parser)
    tile_parser.add_argument("--out", "-o", required=True, help="Output directory")
    tile_parser.add_argument("--rows", type=int, required=True, help="Number of rows")
    tile_parser.add_argument("--cols", type=int, required=True, help="Number of columns")
    tile_parser.add_argument("--overlap-x", type=float, default=0.0, help="Overlap between columns")
    tile_parser.add_argument("--overlap-y", type=float, default=0.0, help="Overlap between rows")
    tile_parser.add_argument("--base-name", default=None, help="Label copies '<base> R<r>C<c>'")

    # Duplicate command
    dup_parser = subparsers.add_parser("duplicate", help="Place one copy beside the seed region")
    _add_common_args(dup_parser)
    dup_parser.add_argument(
        "--side",
        required=True,
        choices=[Side.LEFT.value, Side.RIGHT.value, Side.TOP.value, Side.BOTTOM.value],
        help="Side of the seed to place the copy against",
    )
    dup_parser.add_argument("--overlap", type=float, default=0.0, help="Overlap with the seed")

    # Infer command
    infer_parser = subparsers.add_parser("infer", help="Infer the grid formed by the scene's regions")
    _add_common_args(infer_parser)
    infer_parser.add_argument("--out", "-o", required=True, help="Output directory")
    infer_parser.add_argument("--padding", type=float, default=None, help="Guide extension past the grid")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Print the oriented rectangle of each region")
    _add_common_args(inspect_parser)

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="scopegrid_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handlers = {
        "tile": handle_tile,
        "duplicate": handle_duplicate,
        "infer": handle_infer,
        "inspect": handle_inspect,
        "init-config": handle_init_config,
    }
    return handlers[args.command](args)


def _configure_tracing(args):
    """Command-line trace flags win; otherwise the config file's tracing section."""
    if args.trace:
        configure_tracer(
            enabled=True,
            level=args.trace_level,
            file_path=args.trace_file,
            json_output=args.trace_json,
        )
    else:
        configure_from_config(load_config(args.config).tracing)
    return get_tracer()


def _fail(tracer, label, error):
    if hasattr(error, "to_dict"):
        info = error.to_dict()
    else:
        info = {"kind": type(error).__name__, "details": {}}
    kind = info["kind"]
    tracer.event(f"{label} failed: {error}", level="ERROR", **info["details"])
    print(f"\nError ({kind}): {error}", file=sys.stderr)
    return 1


def handle_tile(args):
    """Handle the tile command."""
    tracer = _configure_tracing(args)

    try:
        from scopegrid.pipeline import run_tile_pipeline

        config = load_config(args.config)
        if args.base_name:
            config.tiling.base_name = args.base_name

        with tracer.span("cli_tile", module="cli"):
            plan = run_tile_pipeline(
                scene_path=args.scene,
                out_dir=args.out,
                rows=args.rows,
                cols=args.cols,
                overlap_x=args.overlap_x,
                overlap_y=args.overlap_y,
                config=config,
            )

        print(f"\nTiling completed successfully.")
        print(f"  Grid: {plan.rows} x {plan.cols}")
        print(f"  Placements: {len(plan.placements)}")
        print(f"\nOutputs saved to: {args.out}/")
        print(f"  - seed.json")
        print(f"  - grid_plan.json")
        return 0

    except (ValueError, OSError) as e:
        return _fail(tracer, "Tiling", e)


def handle_duplicate(args):
    """Handle the duplicate command."""
    tracer = _configure_tracing(args)

    try:
        from scopegrid.io.load_scene import inspect_region, load_scene
        from scopegrid.tiling.grid_builder import duplicate_adjacent

        config = load_config(args.config)
        scene = load_scene(args.scene)
        seed_input = scene.seed or (scene.regions[0] if scene.regions else None)
        if seed_input is None:
            raise ValueError(f"Scene {args.scene} has no seed or regions")

        seed = inspect_region(seed_input, scene.frame, config.inspect, default_id="seed")
        placement = duplicate_adjacent(seed, args.side, args.overlap, config=config.tiling)

        x, y, z = placement.translation
        print(f"Move by ({x:.9g}, {y:.9g}, {z:.9g}) to place a copy {args.side} of {seed.region_id}")
        return 0

    except (ValueError, OSError) as e:
        return _fail(tracer, "Duplicate", e)


def handle_infer(args):
    """Handle the infer command."""
    tracer = _configure_tracing(args)

    try:
        from scopegrid.pipeline import run_infer_pipeline

        with tracer.span("cli_infer", module="cli"):
            run = run_infer_pipeline(
                scene_path=args.scene,
                out_dir=args.out,
                padding=args.padding,
                config_path=args.config,
            )

        result = run.result
        print(f"\nGrid inferred successfully.")
        print(f"  Detected rows × columns = {result.row_count} × {result.col_count}")
        print(f"  Guides: {len(run.guides)}")
        print(f"  Anchors: {len(run.anchors)}")
        print(f"  Validation errors: {run.validation.error_count}")
        print(f"  Validation warnings: {run.validation.warning_count}")
        print(f"\nOutputs saved to: {args.out}/")
        for name in ("regions.json", "grid.json", "guides.json", "anchors.json", "validation_report.json"):
            print(f"  - {name}")

        if run.validation.has_errors:
            print(f"\n[!] Validation errors detected. Review {os.path.join(args.out, 'validation_report.json')}")
            return 1
        return 0

    except (ValueError, OSError) as e:
        return _fail(tracer, "Inference", e)


def handle_inspect(args):
    """Handle the inspect command."""
    tracer = _configure_tracing(args)

    try:
        from scopegrid.io.load_scene import inspect_scene, load_scene

        config = load_config(args.config)
        scene = load_scene(args.scene)
        for rect in inspect_scene(scene, config.inspect):
            cx, cy, cz = rect.center
            aligned = " (axis aligned)" if rect.is_axis_aligned else ""
            print(
                f"{rect.region_id}: {rect.width:.6g} x {rect.height:.6g} "
                f"at {rect.angle_degrees:.4f} deg{aligned}, center ({cx:.6g}, {cy:.6g}, {cz:.6g})"
            )
        return 0

    except (ValueError, OSError) as e:
        return _fail(tracer, "Inspect", e)


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
