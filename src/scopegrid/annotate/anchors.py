"""
Seam anchors: where to drop an annotation marker next to each shared edge of
an inferred grid, and at each interior crossing.

An edge anchor sits at the edge midpoint, pulled into the owning cell by
`inset` and bumped sideways by `normal_offset`, so the marker stays clear of
the seam guide. Both distances scale with the view scale (100 = 1x).
"""

import numpy as np

from scopegrid.config import AnchorConfig
from scopegrid.geometry.vectors import project_to_plane, to_list, unit
from scopegrid.inference.grid_inference import region_identities
from scopegrid.models import GridCellIndex, SeamAnchor, Side, vec
from scopegrid.tracer import get_tracer, trace


def scale_by_view(value, view_scale):
    """Scale a model distance by the view scale; non-positive scales count as 100."""
    scale = view_scale if view_scale > 0 else 100
    return value * (scale / 100.0)


def _anchor(index, side, base, inward, orientation, inset, bump, normal, region_id):
    perp, _ = unit(np.cross(orientation, normal))
    point = project_to_plane(base + inward * inset + perp * bump, normal)
    return SeamAnchor(
        cell=index,
        side=side,
        point=to_list(point),
        orientation=to_list(orientation),
        region_id=region_id,
    )


def edge_anchors(rect, index, neighbors, inset, bump, region_id=None):
    """Anchors on the sides of one cell that have a neighbour."""
    normal = rect.frame.normal_vec
    dir_right = vec(rect, "dir_right")
    dir_down = vec(rect, "dir_down")

    anchors = []
    if neighbors.has_right:
        anchors.append(_anchor(index, Side.RIGHT, vec(rect, "mid_right"),
                               -dir_right, dir_right, inset, bump, normal, region_id))
    if neighbors.has_left:
        anchors.append(_anchor(index, Side.LEFT, vec(rect, "mid_left"),
                               dir_right, -dir_right, inset, bump, normal, region_id))
    if neighbors.has_up:
        anchors.append(_anchor(index, Side.TOP, vec(rect, "mid_top"),
                               dir_down, dir_right, inset, bump, normal, region_id))
    if neighbors.has_down:
        anchors.append(_anchor(index, Side.BOTTOM, vec(rect, "mid_bottom"),
                               -dir_down, dir_right, inset, bump, normal, region_id))
    return anchors


def crossing_anchors(top_left, index, inset, bump, region_id=None):
    """
    Two anchors inside the top-left cell of an interior crossing: one
    horizontal just above the crossing, one vertical just left of it.
    """
    normal = top_left.frame.normal_vec
    dir_right = vec(top_left, "dir_right")
    dir_down = vec(top_left, "dir_down")

    crossing = (
        vec(top_left, "center")
        + dir_right * (top_left.width * 0.5)
        + dir_down * (top_left.height * 0.5)
    )
    crossing = project_to_plane(crossing, normal)

    return [
        _anchor(index, Side.CROSSING, crossing, -dir_down, dir_right, inset, bump, normal, region_id),
        _anchor(index, Side.CROSSING, crossing, -dir_right, dir_down, inset, bump, normal, region_id),
    ]


@trace(label="seam_anchors")
def seam_anchors(result, regions, config=None):
    """
    Anchors for every shared edge and interior crossing of an inferred grid.

    Args:
        result: GridInferenceResult for `regions`
        regions: the OrientedRect snapshots passed to infer_grid
        config: AnchorConfig (defaults when None)

    Returns:
        list of SeamAnchor, edge anchors row-major first, then crossings
    """
    tracer = get_tracer()
    config = config or AnchorConfig()
    inset = scale_by_view(config.inset, config.view_scale)
    bump = scale_by_view(config.normal_offset, config.view_scale)

    regions = list(regions)
    by_index = {}
    for region_id, region in zip(region_identities(regions), regions):
        by_index[result.index_by_region[region_id].key()] = (region_id, region)

    anchors = []
    for record in result.neighbors:
        region_id, rect = by_index[(record.row, record.col)]
        index = GridCellIndex(row=record.row, col=record.col)
        anchors.extend(edge_anchors(rect, index, record, inset, bump, region_id))

    edge_count = len(anchors)
    if config.include_crossings:
        for r in range(result.row_count - 1):
            for c in range(result.col_count - 1):
                quad = [(r, c), (r, c + 1), (r + 1, c), (r + 1, c + 1)]
                if not all(k in by_index for k in quad):
                    continue
                region_id, rect = by_index[(r, c)]
                anchors.extend(crossing_anchors(rect, GridCellIndex(row=r, col=c), inset, bump, region_id))

    tracer.event(f"Anchors: {edge_count} on edges, {len(anchors) - edge_count} at crossings")
    return anchors
