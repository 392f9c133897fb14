"""
Seam guide lines for a row-major grid of OrientedRect snapshots.

A column guide runs down the middle of the overlap band between columns c and
c+1 and is clipped to the grid's true top and bottom edges; row guides are the
same construction on the transposed axes. All clipping happens in the
working plane's (r, u) coordinates.
"""

import numpy as np

from scopegrid.config import GuideConfig
from scopegrid.errors import ArgumentRange, IntersectionOutsideEdge
from scopegrid.geometry.vectors import intersect_line_segment_2d, midpoint, to_list
from scopegrid.models import GuideAxis, GuideCrossing, GuideLineSegment, vec
from scopegrid.tracer import get_tracer, trace


def _check_grid(grid):
    if not grid or not grid[0]:
        raise ArgumentRange("Grid must have at least one row and one column")
    cols = len(grid[0])
    for r, row in enumerate(grid):
        if len(row) != cols:
            raise ArgumentRange(f"Row {r} has {len(row)} cells, expected {cols}", row=r)
        if any(cell is None for cell in row):
            raise ArgumentRange(f"Row {r} has missing cells", row=r)
    return len(grid), cols


class _PlaneMapper:
    """Converts between world points and frame (r, u) around a reference point."""

    def __init__(self, frame, reference):
        self.frame = frame
        self.reference = reference

    def to_plane(self, p):
        return self.frame.to_plane(p)

    def direction(self, d):
        return self.frame.to_plane(d)

    def to_world(self, ru):
        return self.frame.from_plane(ru[0], ru[1], self.reference)


def _clip(mapper, origin, direction, edges, config, what):
    """
    Intersect the guide line with the first edge segment it actually hits.

    edges lists candidate (start, end) world segments in preference order: the
    owning cell's edge, then the outer edge spanning both cells of the seam so
    a seam inside a gap (or a nudged touching seam) still resolves.
    """
    origin_2d = mapper.to_plane(origin)
    direction_2d = mapper.direction(direction)

    last_s = None
    for start, end in edges:
        point, _, s = intersect_line_segment_2d(
            origin_2d, direction_2d, mapper.to_plane(start), mapper.to_plane(end),
            config.parallel_tolerance,
        )
        if -config.segment_tolerance <= s <= 1.0 + config.segment_tolerance:
            return mapper.to_world(point)
        last_s = s

    raise IntersectionOutsideEdge(
        f"Guide misses the {what} edge (segment parameter {last_s:.6g})",
        segment_parameter=last_s,
    )


def _guide(mapper, origin, direction, near_edges, far_edges, padding, axis, index, config):
    direction = direction / np.linalg.norm(direction)
    near = _clip(mapper, origin, direction, near_edges, config, "near")
    far = _clip(mapper, origin, direction, far_edges, config, "far")

    # Padding extends outward along the guide direction.
    if float(np.dot(far - near, direction)) < 0:
        near, far = far, near

    return GuideLineSegment(
        start=to_list(near - direction * padding),
        end=to_list(far + direction * padding),
        axis=axis,
        boundary_index=index,
        clip_start=to_list(near),
        clip_end=to_list(far),
        padding=padding,
    )


def column_guide(grid, c, frame, padding, config, mapper=None):
    """Guide between columns c and c+1, clipped by the top and bottom outer edges."""
    rows = len(grid)
    mapper = mapper or _PlaneMapper(frame, vec(grid[0][0], "center"))
    top_left, top_right = grid[0][c], grid[0][c + 1]
    bottom_left, bottom_right = grid[rows - 1][c], grid[rows - 1][c + 1]

    origin = midpoint(vec(top_left, "mid_right"), vec(top_right, "mid_left"))
    direction = vec(top_left, "dir_down")
    top_edges = [
        (vec(top_left, "corner_top_left"), vec(top_left, "corner_top_right")),
        (vec(top_left, "corner_top_left"), vec(top_right, "corner_top_right")),
    ]
    bottom_edges = [
        (vec(bottom_left, "corner_bottom_left"), vec(bottom_left, "corner_bottom_right")),
        (vec(bottom_left, "corner_bottom_left"), vec(bottom_right, "corner_bottom_right")),
    ]
    return _guide(mapper, origin, direction, top_edges, bottom_edges, padding, GuideAxis.COLUMN, c, config)


def row_guide(grid, r, frame, padding, config, mapper=None):
    """Guide between rows r and r+1, clipped by the left and right outer edges."""
    cols = len(grid[0])
    mapper = mapper or _PlaneMapper(frame, vec(grid[0][0], "center"))
    left_upper, left_lower = grid[r][0], grid[r + 1][0]
    right_upper, right_lower = grid[r][cols - 1], grid[r + 1][cols - 1]

    origin = midpoint(vec(left_upper, "mid_bottom"), vec(left_lower, "mid_top"))
    direction = vec(left_upper, "dir_right")
    left_edges = [
        (vec(left_upper, "corner_top_left"), vec(left_upper, "corner_bottom_left")),
        (vec(left_upper, "corner_top_left"), vec(left_lower, "corner_bottom_left")),
    ]
    right_edges = [
        (vec(right_upper, "corner_top_right"), vec(right_upper, "corner_bottom_right")),
        (vec(right_upper, "corner_top_right"), vec(right_lower, "corner_bottom_right")),
    ]
    return _guide(mapper, origin, direction, left_edges, right_edges, padding, GuideAxis.ROW, r, config)


@trace(label="build_guides")
def build_guides(grid, frame, padding=None, config=None):
    """
    Build every internal seam guide of a row-major grid.

    Args:
        grid: list of rows, each a list of OrientedRect (all rows equal length)
        frame: PlaneFrame used for the 2D clipping
        padding: extension past the outer edges (config.padding when None)
        config: GuideConfig (defaults when None)

    Returns:
        cols-1 column guides (left to right) followed by rows-1 row guides
        (top to bottom)

    Raises:
        ArgumentRange: empty or ragged grid
        ParallelIntersection: a guide is parallel to the edge it is clipped by
        IntersectionOutsideEdge: a guide misses its boundary edges
    """
    tracer = get_tracer()
    config = config or GuideConfig()
    if padding is None:
        padding = config.padding

    rows, cols = _check_grid(grid)
    mapper = _PlaneMapper(frame, vec(grid[0][0], "center"))

    guides = [column_guide(grid, c, frame, padding, config, mapper) for c in range(cols - 1)]
    guides += [row_guide(grid, r, frame, padding, config, mapper) for r in range(rows - 1)]

    tracer.event(f"Built {cols - 1} column and {rows - 1} row guides", padding=padding)
    return guides


def guide_crossings(guides, frame, config=None):
    """
    Labelled crossing points of every column guide with every row guide.

    The crossing of column guide c and row guide r lies at the top-left corner
    of cell (r+1, c+1) and is labelled 'R<r+2>C<c+2>'.
    """
    config = config or GuideConfig()
    columns = [g for g in guides if g.axis == GuideAxis.COLUMN]
    rows = [g for g in guides if g.axis == GuideAxis.ROW]
    if not columns or not rows:
        return []

    mapper = _PlaneMapper(frame, vec(columns[0], "clip_start"))
    crossings = []
    for row in rows:
        row_start = vec(row, "clip_start")
        row_end = vec(row, "clip_end")
        for column in columns:
            start = vec(column, "clip_start")
            direction = vec(column, "clip_end") - start
            point, _, _ = intersect_line_segment_2d(
                mapper.to_plane(start), mapper.direction(direction),
                mapper.to_plane(row_start), mapper.to_plane(row_end),
                config.parallel_tolerance,
            )
            crossings.append(GuideCrossing(
                label=f"R{row.boundary_index + 2}C{column.boundary_index + 2}",
                point=to_list(mapper.to_world(point)),
                row_boundary=row.boundary_index,
                col_boundary=column.boundary_index,
            ))
    return crossings
