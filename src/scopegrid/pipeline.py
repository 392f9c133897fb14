"""
Pipeline orchestration for scopegrid.

Two runs over scene files:
- tile: inspect the seed and write the placements of a rows x cols grid
- infer: inspect every region, infer the grid, build guides and anchors,
  validate and write all artifacts
"""

import os

from scopegrid.annotate.anchors import seam_anchors
from scopegrid.config import load_config
from scopegrid.guides.guide_builder import build_guides, guide_crossings
from scopegrid.inference.grid_inference import infer_grid, order_row_major
from scopegrid.io.load_scene import inspect_region, inspect_scene, load_scene, validate_scene_inputs
from scopegrid.io.save_artifacts import ensure_dir, save_json
from scopegrid.models import InferenceRun
from scopegrid.tiling.grid_builder import build_grid
from scopegrid.tracer import get_tracer, trace
from scopegrid.validate.report import generate_report
from scopegrid.validate.rules import run_validation


def _prepare(scene_path, out_dir, config, config_path):
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    errors = validate_scene_inputs([scene_path])
    if errors:
        for error in errors:
            tracer.event(error, level="ERROR")
        raise ValueError(f"Input validation failed: {errors}")

    ensure_dir(out_dir)
    return config, load_scene(scene_path)


@trace(label="run_tile_pipeline")
def run_tile_pipeline(scene_path, out_dir, rows, cols, overlap_x=0.0, overlap_y=0.0,
                      config=None, config_path=None):
    """
    Tile the scene's seed region (or its first region) into a grid.

    Writes seed.json and grid_plan.json to out_dir and returns the GridPlan.
    """
    tracer = get_tracer()
    config, scene = _prepare(scene_path, out_dir, config, config_path)

    seed_input = scene.seed or (scene.regions[0] if scene.regions else None)
    if seed_input is None:
        raise ValueError(f"Scene {scene_path} has no seed or regions")

    with tracer.span("inspect_seed", module="pipeline"):
        seed = inspect_region(seed_input, scene.frame, config.inspect, default_id="seed")

    plan = build_grid(seed, rows, cols, overlap_x, overlap_y, config=config.tiling)

    save_json(seed, os.path.join(out_dir, "seed.json"))
    save_json(plan, os.path.join(out_dir, "grid_plan.json"))
    return plan


@trace(label="run_infer_pipeline")
def run_infer_pipeline(scene_path, out_dir, padding=None, config=None, config_path=None):
    """
    Infer the grid formed by the scene's regions and annotate it.

    Writes regions.json, grid.json, guides.json, anchors.json and the
    validation report to out_dir and returns an InferenceRun.
    """
    tracer = get_tracer()
    config, scene = _prepare(scene_path, out_dir, config, config_path)

    with tracer.span("inspect_regions", module="pipeline"):
        regions = inspect_scene(scene, config.inspect)

    result = infer_grid(regions, config.inference)

    with tracer.span("annotate", module="pipeline"):
        grid = order_row_major(regions, result)
        guides = build_guides(grid, scene.frame, padding=padding, config=config.guides)
        crossings = guide_crossings(guides, scene.frame, config.guides)
        anchors = seam_anchors(result, regions, config.anchors)

    validation = run_validation(regions, result, config.validation)

    run = InferenceRun(
        regions=regions,
        result=result,
        guides=guides,
        crossings=crossings,
        anchors=anchors,
        validation=validation,
    )

    save_json(regions, os.path.join(out_dir, "regions.json"))
    save_json(result, os.path.join(out_dir, "grid.json"))
    save_json({"guides": guides, "crossings": crossings}, os.path.join(out_dir, "guides.json"))
    save_json(anchors, os.path.join(out_dir, "anchors.json"))
    generate_report(validation, out_dir)

    return run
