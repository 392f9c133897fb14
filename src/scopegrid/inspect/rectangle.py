"""
Oriented-rectangle extraction from boundary curves.

Given a region's boundary and the working PlaneFrame, produce an OrientedRect:
corners ordered by the frame's (right, up) extremes, edge directions, size
measured between edge midpoints, and the signed angle to the frame's right.
"""

import math

import numpy as np

from scopegrid.config import InspectConfig
from scopegrid.errors import DegenerateRegion, InsufficientGeometry
from scopegrid.geometry.boundary import flatten_boundary, rectangle_boundary
from scopegrid.geometry.vectors import (
    dedupe_plane_points, dedupe_points, midpoint, plane_coords,
    project_to_plane, signed_angle, to_list, unit,
)
from scopegrid.models import OrientedRect, SegmentKind, generate_region_id
from scopegrid.tracer import get_tracer, trace


def collect_plane_endpoints(boundary, normal, in_plane_tolerance=1e-6):
    """
    Endpoints of boundary lines lying in or parallel to the plane.

    Lines along the normal (the vertical edges of a box) are skipped; curves
    always contribute both endpoints.
    """
    points = []
    for start, end, kind in flatten_boundary(boundary):
        if kind != SegmentKind.LINE:
            points.extend([start, end])
            continue

        direction, length = unit(end - start)
        if length == 0.0:
            continue
        if abs(float(np.dot(direction, normal))) <= in_plane_tolerance:
            points.extend([start, end])
    return points


def order_corners(plane_points):
    """
    Pick TL, TR, BL, BR from (r, u, point) entries.

    Each corner is the entry nearest in (r, u) to one combination of the
    coordinate extremes: (minR, maxU), (maxR, maxU), (minR, minU), (maxR, minU).
    """
    rs = [e[0] for e in plane_points]
    us = [e[1] for e in plane_points]
    min_r, max_r, min_u, max_u = min(rs), max(rs), min(us), max(us)

    def nearest(target_r, target_u):
        return min(
            range(len(plane_points)),
            key=lambda i: math.hypot(plane_points[i][0] - target_r, plane_points[i][1] - target_u),
        )

    picks = [nearest(min_r, max_u), nearest(max_r, max_u), nearest(min_r, min_u), nearest(max_r, min_u)]
    if len(set(picks)) < 4:
        # A side at 45 degrees to the frame ties two extremes; walk the loop instead.
        picks = _clockwise_from(plane_points, picks[0])

    return tuple(plane_points[i][2] for i in picks)


def _clockwise_from(plane_points, first):
    """TL, TR, BL, BR indices by walking the four points clockwise from `first`."""
    if len(plane_points) != 4:
        raise DegenerateRegion(
            f"Corner selection is ambiguous with {len(plane_points)} boundary points",
            found=len(plane_points),
        )
    cr = sum(e[0] for e in plane_points) / 4.0
    cu = sum(e[1] for e in plane_points) / 4.0
    loop = sorted(range(4), key=lambda i: -math.atan2(plane_points[i][1] - cu, plane_points[i][0] - cr))
    shift = loop.index(first)
    top_left, top_right, bottom_right, bottom_left = loop[shift:] + loop[:shift]
    return [top_left, top_right, bottom_left, bottom_right]


@trace(label="inspect_rectangle")
def inspect_rectangle(boundary, frame, region_id=None, config=None):
    """
    Build an OrientedRect from boundary curves.

    Args:
        boundary: boundary items accepted by flatten_boundary
        frame: PlaneFrame of the working plane
        region_id: caller identity; left unset when omitted
        config: InspectConfig (defaults when None)

    Raises:
        InsufficientGeometry: fewer than 4 distinct in-plane points
        DegenerateRegion: zero-length edge, or width/height at or below
            config.degenerate_size while config.reject_degenerate is set
    """
    tracer = get_tracer()
    config = config or InspectConfig()

    right, up, normal = frame.right_vec, frame.up_vec, frame.normal_vec
    tol = config.point_tolerance

    raw_points = collect_plane_endpoints(boundary, normal, config.in_plane_tolerance)
    if len(raw_points) < 4:
        raise InsufficientGeometry(
            f"Boundary yields {len(raw_points)} in-plane endpoints, need at least 4",
            found=len(raw_points),
        )

    points = dedupe_points(raw_points, tol)
    plane_points = dedupe_plane_points(
        [plane_coords(p, right, up) + (p,) for p in points], tol
    )
    tracer.event(
        f"Endpoints: {len(raw_points)} raw, {len(points)} unique 3D, {len(plane_points)} unique in plane",
        level="DEBUG",
    )
    if len(plane_points) < 4:
        raise InsufficientGeometry(
            f"Only {len(plane_points)} distinct in-plane points, need at least 4",
            found=len(plane_points),
        )

    top_left, top_right, bottom_left, bottom_right = order_corners(plane_points)

    edge_right = project_to_plane(top_right - top_left, normal)
    edge_down = project_to_plane(bottom_left - top_left, normal)
    if float(np.dot(edge_down, up)) > 0:
        edge_down = -edge_down

    dir_right, right_length = unit(edge_right)
    dir_down, down_length = unit(edge_down)
    if right_length <= config.min_edge_length or down_length <= config.min_edge_length:
        raise DegenerateRegion(
            f"Edge too short (right={right_length:.3e}, down={down_length:.3e})",
            right_length=right_length,
            down_length=down_length,
        )

    mid_top = midpoint(top_left, top_right)
    mid_bottom = midpoint(bottom_left, bottom_right)
    mid_left = midpoint(top_left, bottom_left)
    mid_right = midpoint(top_right, bottom_right)

    width = float(np.linalg.norm(project_to_plane(mid_right - mid_left, normal)))
    height = float(np.linalg.norm(project_to_plane(mid_bottom - mid_top, normal)))
    is_degenerate = width <= config.degenerate_size or height <= config.degenerate_size
    if is_degenerate and config.reject_degenerate:
        raise DegenerateRegion(
            f"Region is degenerate (width={width:.3e}, height={height:.3e})",
            width=width,
            height=height,
        )

    angle = signed_angle(dir_right, right, normal)
    corners = [top_left, top_right, bottom_right, bottom_left]
    center = sum(corners) / 4.0

    rect = OrientedRect(
        region_id=region_id,
        frame=frame,
        center=to_list(center),
        corner_top_left=to_list(top_left),
        corner_top_right=to_list(top_right),
        corner_bottom_left=to_list(bottom_left),
        corner_bottom_right=to_list(bottom_right),
        mid_top=to_list(mid_top),
        mid_right=to_list(mid_right),
        mid_bottom=to_list(mid_bottom),
        mid_left=to_list(mid_left),
        edge_right=to_list(edge_right),
        edge_down=to_list(edge_down),
        dir_right=to_list(dir_right),
        dir_down=to_list(dir_down),
        width=width,
        height=height,
        angle_to_frame_right=angle,
        is_degenerate=is_degenerate,
        is_axis_aligned=abs(math.degrees(angle)) <= config.axis_aligned_degrees,
    )

    tracer.event(
        f"Inspected {region_id or generate_region_id(corners)}: "
        f"{width:.6g} x {height:.6g} at {rect.angle_degrees:.4f} deg"
    )
    return rect


def rect_from_corners(corners, frame, region_id=None, config=None):
    """Inspect a region given as four corner points in loop order."""
    return inspect_rectangle(rectangle_boundary(corners), frame, region_id=region_id, config=config)
