"""
Boundary flattening.

Region geometry may arrive as plain segments, as (start, end) pairs, or
wrapped in nested BoundaryInstance transforms. flatten_boundary composes the
transforms and yields world-space segments.
"""

import numpy as np

from scopegrid.models import BoundaryInstance, BoundarySegment, SegmentKind


def _coerce(item):
    if isinstance(item, (BoundarySegment, BoundaryInstance)):
        return item
    if isinstance(item, dict):
        if "children" in item or "transform" in item:
            return BoundaryInstance.model_validate(item)
        return BoundarySegment.model_validate(item)
    start, end = item
    return BoundarySegment(start=list(start), end=list(end))


def apply_transform(matrix, point):
    """Apply a 4x4 homogeneous transform to a 3D point."""
    p = matrix @ np.append(np.asarray(point, dtype=float), 1.0)
    return p[:3] / p[3]


def flatten_boundary(items, transform=None):
    """
    Yield (start, end, kind) in world coordinates for every segment.

    Args:
        items: iterable of BoundarySegment, BoundaryInstance, dicts of either,
            or (start, end) point pairs
        transform: accumulated 4x4 transform of the enclosing instances
    """
    if transform is None:
        transform = np.eye(4)

    for raw in items:
        item = _coerce(raw)
        if isinstance(item, BoundaryInstance):
            child_transform = transform @ np.asarray(item.transform, dtype=float)
            yield from flatten_boundary(item.children, child_transform)
            continue

        yield (
            apply_transform(transform, item.start),
            apply_transform(transform, item.end),
            item.kind,
        )


def rectangle_boundary(corners):
    """Closed loop of four line segments through the given corners."""
    loop = [list(map(float, c)) for c in corners]
    return [
        BoundarySegment(start=loop[i], end=loop[(i + 1) % 4], kind=SegmentKind.LINE)
        for i in range(4)
    ]
