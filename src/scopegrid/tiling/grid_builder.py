"""
Seed-to-grid tiling.

Every cell is placed by a single translation from the seed,
col_step * c + row_step * r, so error does not accumulate across large grids.
The builder only computes placements; creating the copies is up to the caller.
"""

import numpy as np

from scopegrid.config import TilingConfig
from scopegrid.errors import ArgumentRange
from scopegrid.geometry.vectors import to_list
from scopegrid.models import CellPlacement, GridCellIndex, GridPlan, Side, vec
from scopegrid.tiling.step import column_step, row_step, side_step
from scopegrid.tracer import get_tracer, trace


def default_label(base_name):
    """Formatter producing '<base> R<row+1>C<col+1>'."""
    def formatter(row, col):
        return f"{base_name} R{row + 1}C{col + 1}"
    return formatter


@trace(label="build_grid")
def build_grid(seed, rows, cols, overlap_x=0.0, overlap_y=0.0, name_formatter=None, config=None):
    """
    Tile the seed into a rows x cols grid.

    Args:
        seed: OrientedRect used as cell (0, 0)
        rows, cols: grid size, both >= 1
        overlap_x: overlap between horizontally adjacent cells
        overlap_y: overlap between vertically adjacent cells
        name_formatter: optional (row, col) -> label with 0-based indices
        config: TilingConfig (defaults when None)

    Returns:
        GridPlan with row-major placements. The seed placement has a zero
        translation and is omitted when config.include_seed is false.
    """
    tracer = get_tracer()
    config = config or TilingConfig()

    if rows < 1 or cols < 1:
        raise ArgumentRange(f"rows and cols must be >= 1 (got rows={rows}, cols={cols})", rows=rows, cols=cols)

    col_step = column_step(seed, overlap_x, config)
    row_step_vec = row_step(seed, overlap_y, config)

    if name_formatter is None and config.base_name:
        name_formatter = default_label(config.base_name)

    placements = []
    for r in range(rows):
        for c in range(cols):
            is_seed = r == 0 and c == 0
            if is_seed and not config.include_seed:
                continue

            translation = col_step * c + row_step_vec * r
            label = None
            if name_formatter is not None and not is_seed:
                label = name_formatter(r, c)

            placements.append(CellPlacement(
                index=GridCellIndex(row=r, col=c),
                translation=to_list(translation),
                label=label,
                is_seed=is_seed,
                rect=seed if is_seed else seed.translated(translation, region_id=label or _copy_id(seed, r, c)),
            ))

    # Signed advances; negative when the overlap exceeds the cell size
    advance_x = float(np.dot(col_step, vec(seed, "dir_right")))
    advance_y = float(np.dot(row_step_vec, vec(seed, "dir_down")))
    tracer.event(
        f"Grid {rows}x{cols}: {len(placements)} placements, "
        f"steps {advance_x:.6g} x {advance_y:.6g}"
    )

    return GridPlan(
        rows=rows,
        cols=cols,
        overlap_x=overlap_x,
        overlap_y=overlap_y,
        col_step=to_list(col_step),
        row_step=to_list(row_step_vec),
        placements=placements,
    )


def duplicate_adjacent(seed, side, overlap=0.0, label=None, config=None):
    """
    Place a single copy of the seed against one of its sides.

    RIGHT and LEFT step across the width, BOTTOM and TOP across the height.
    """
    side = Side(side)
    translation = side_step(seed, side, overlap, config)
    offsets = {Side.RIGHT: (0, 1), Side.LEFT: (0, -1), Side.BOTTOM: (1, 0), Side.TOP: (-1, 0)}
    row, col = offsets[side]

    get_tracer().event(f"Duplicate toward {side.value} with overlap {overlap:.6g}")

    return CellPlacement(
        index=GridCellIndex(row=row, col=col),
        translation=to_list(translation),
        label=label,
        rect=seed.translated(translation, region_id=label or f"{seed.region_id or 'seed'}:{side.value}"),
    )


def _copy_id(seed, row, col):
    return f"{seed.region_id or 'seed'}:R{row + 1}C{col + 1}"
