"""
Vector helpers shared by the engine stages.

Points and vectors are numpy float arrays of shape (3,). Plane coordinates
(r, u) are the dot products with a frame's right and up vectors.
"""

import math

import numpy as np

from scopegrid.errors import ParallelIntersection


def as_vec(p):
    """Convert a 3-sequence to a float array."""
    v = np.asarray(p, dtype=float)
    if v.shape != (3,):
        raise ValueError(f"Expected a 3D point or vector, got shape {v.shape}")
    return v


def to_list(v):
    """Convert an array back to a plain list for model fields."""
    return [float(x) for x in v]


def unit(v):
    """Return (v / |v|, |v|); the zero vector comes back unchanged with length 0."""
    length = float(np.linalg.norm(v))
    if length == 0.0:
        return v, 0.0
    return v / length, length


def project_to_plane(v, normal):
    """Remove the component of v along the unit normal."""
    return v - normal * float(np.dot(v, normal))


def plane_coords(p, right, up):
    """(r, u) coordinates of a point in the frame's plane."""
    return float(np.dot(p, right)), float(np.dot(p, up))


def plane_to_world(r, u, right, up, reference):
    """
    Map plane coordinates back to 3D.

    The result lies in the plane through `reference`. The 2x2 Gram system is
    solved so that plane_coords(plane_to_world(r, u)) == (r, u) also when
    right and up are not orthogonal.
    """
    ref_r, ref_u = plane_coords(reference, right, up)
    gram = np.array([
        [np.dot(right, right), np.dot(right, up)],
        [np.dot(up, right), np.dot(up, up)],
    ])
    a, b = np.linalg.solve(gram, np.array([r - ref_r, u - ref_u]))
    return reference + right * a + up * b


def signed_angle(a, b, normal):
    """
    Signed angle from a to b in radians.

    Magnitude from the clamped dot product of the unit vectors; negative when
    normal . (a x b) is negative.
    """
    a_unit, _ = unit(a)
    b_unit, _ = unit(b)
    dot = max(-1.0, min(1.0, float(np.dot(a_unit, b_unit))))
    angle = math.acos(dot)
    if float(np.dot(normal, np.cross(a_unit, b_unit))) < 0:
        angle = -angle
    return angle


def dedupe_points(points, tolerance):
    """Drop points closer than tolerance to an earlier point (first wins)."""
    unique = []
    for p in points:
        if all(np.linalg.norm(p - q) > tolerance for q in unique):
            unique.append(p)
    return unique


def dedupe_plane_points(points, tolerance):
    """
    Deduplicate (r, u, payload) tuples by plane coordinates.

    Two entries are duplicates when both |dr| and |du| are within tolerance.
    """
    unique = []
    for entry in points:
        r, u = entry[0], entry[1]
        if not any(abs(r - q[0]) <= tolerance and abs(u - q[1]) <= tolerance for q in unique):
            unique.append(entry)
    return unique


def intersect_line_segment_2d(origin, direction, seg_start, seg_end, parallel_tolerance=1e-12):
    """
    Intersect the infinite line origin + t*direction with the segment's line.

    Solves origin + t*d = seg_start + s*(seg_end - seg_start) by Cramer's rule.
    Returns (point, t, s); s in [0, 1] means the hit lies on the segment.

    Raises ParallelIntersection when |det| <= parallel_tolerance.
    """
    ox, oy = origin
    dx, dy = direction
    ax, ay = seg_start
    ex, ey = seg_end[0] - ax, seg_end[1] - ay
    wx, wy = ax - ox, ay - oy

    det = ex * dy - dx * ey
    if abs(det) <= parallel_tolerance:
        raise ParallelIntersection(
            f"Line is parallel to edge (det={det:.3e})",
            determinant=det,
        )

    t = (ex * wy - ey * wx) / det
    s = (dx * wy - dy * wx) / det
    point = (ox + t * dx, oy + t * dy)
    return point, t, s


def midpoint(a, b):
    return (a + b) * 0.5
