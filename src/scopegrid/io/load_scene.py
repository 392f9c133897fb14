"""
Scene loading for scopegrid.

A scene file is JSON: a working plane plus regions, each given either as
boundary geometry (segments, optionally nested under transforms) or as four
explicit corners.

    {
      "frame": {"right": [1, 0, 0], "up": [0, 1, 0], "normal": [0, 0, 1]},
      "regions": [
        {"region_id": "A", "corners": [[0, 10, 0], [10, 10, 0], [10, 0, 0], [0, 0, 0]]}
      ]
    }
"""

import json
import os

from pydantic import ValidationError

from scopegrid.errors import InsufficientGeometry
from scopegrid.inspect.rectangle import inspect_rectangle, rect_from_corners
from scopegrid.models import Scene
from scopegrid.tracer import get_tracer, trace


@trace(label="load_scene")
def load_scene(path):
    """
    Load and validate a scene file.

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if the file is not a valid scene.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Scene not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    try:
        scene = Scene.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid scene file {path}: {e}") from e

    tracer.event(f"Loaded scene with {len(scene.regions)} regions", seed=scene.seed is not None)
    return scene


def inspect_region(region, frame, config=None, default_id=None):
    """OrientedRect for one RegionInput; default_id stands in for a missing region_id."""
    region_id = region.region_id or default_id
    if region.corners is not None:
        return rect_from_corners(region.corners, frame, region_id=region_id, config=config)
    if not region.boundary:
        raise InsufficientGeometry(
            f"Region {region_id or '<unnamed>'} has neither corners nor boundary",
            found=0,
        )
    return inspect_rectangle(region.boundary, frame, region_id=region_id, config=config)


def inspect_scene(scene, config=None):
    """
    OrientedRect for every region of the scene, in file order.

    Regions without an id are named region_<position>, the same fallback
    grid inference uses, so coincident unnamed regions stay distinct.
    """
    return [
        inspect_region(region, scene.frame, config, default_id=f"region_{i}")
        for i, region in enumerate(scene.regions)
    ]


def validate_scene_inputs(paths):
    """
    Check that every path exists and is a .json file.

    Returns list of error messages (empty if all valid).
    """
    errors = []
    for path in paths:
        if not os.path.exists(path):
            errors.append(f"File not found: {path}")
        elif not path.lower().endswith(".json"):
            errors.append(f"Not a JSON scene file: {path}")
    return errors
