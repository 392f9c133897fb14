"""Pytest fixtures for scopegrid tests."""

import json
import math
import os
import tempfile

import pytest


def rotated_corners(width, height, angle_degrees=0.0, center=(0.0, 0.0, 0.0)):
    """
    Corners TL, TR, BR, BL of a width x height rectangle in the XY plane,
    rotated counter-clockwise about its center.
    """
    a = math.radians(angle_degrees)
    c, s = math.cos(a), math.sin(a)
    local = [(-width / 2, height / 2), (width / 2, height / 2),
             (width / 2, -height / 2), (-width / 2, -height / 2)]
    return [
        [center[0] + x * c - y * s, center[1] + x * s + y * c, center[2]]
        for x, y in local
    ]


def box_corners(min_x, min_y, max_x, max_y, z=0.0):
    """Axis-aligned corners TL, TR, BR, BL."""
    return [[min_x, max_y, z], [max_x, max_y, z], [max_x, min_y, z], [min_x, min_y, z]]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def plan_frame():
    """World XY plane viewed from +Z."""
    from scopegrid.models import PlaneFrame
    return PlaneFrame.plan()


@pytest.fixture
def default_config():
    """Create default engine configuration."""
    from scopegrid.config import EngineConfig
    return EngineConfig()


@pytest.fixture
def make_rect(plan_frame):
    """Factory for OrientedRect snapshots of rotated rectangles."""
    from scopegrid.inspect.rectangle import rect_from_corners

    def factory(width=10.0, height=10.0, angle=0.0, center=(0.0, 0.0, 0.0), frame=None, region_id=None):
        corners = rotated_corners(width, height, angle, center)
        return rect_from_corners(corners, frame or plan_frame, region_id=region_id)

    return factory


@pytest.fixture
def scenario_grid(plan_frame):
    """
    2x2 grid of 10x10 axis-aligned cells with zero overlap; top row spans
    y in [0, 10], bottom row y in [-10, 0].
    """
    from scopegrid.inspect.rectangle import rect_from_corners

    bounds = {
        (0, 0): (0, 0, 10, 10),
        (0, 1): (10, 0, 20, 10),
        (1, 0): (0, -10, 10, 0),
        (1, 1): (10, -10, 20, 0),
    }
    return [
        [rect_from_corners(box_corners(*bounds[(r, c)]), plan_frame, region_id=f"R{r + 1}C{c + 1}")
         for c in range(2)]
        for r in range(2)
    ]


@pytest.fixture
def write_scene(temp_dir):
    """Write a scene dict to scene.json in the temp dir and return its path."""
    def writer(scene, name="scene.json"):
        path = os.path.join(temp_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(scene, f)
        return path
    return writer
