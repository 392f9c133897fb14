"""
Grid inference: recover (row, col) indices and adjacency from an unordered
set of OrientedRect snapshots.

The grid basis comes from the first region's own edges, not from the working
plane, so a grid rotated as a whole is still recovered. Spacing is estimated
robustly from pairs of regions that share a row or a column, centers are
rounded onto that lattice, and the result must form a dense rectangle.
Tolerance applies to fitting only; a missing cell is always an error.
"""

import numpy as np

from scopegrid.config import InferenceConfig
from scopegrid.errors import DegenerateSpacing, EmptyInput, ExcessiveJitter, NonRectangularSelection
from scopegrid.geometry.vectors import to_list, unit
from scopegrid.inference.spacing import (
    axis_tolerance, collect_spacing_samples, compact_indices, quantize, robust_median,
)
from scopegrid.models import CellNeighbors, GridCellIndex, GridInferenceResult, vec
from scopegrid.tracer import get_tracer, trace


def region_identities(regions):
    """region_id of each region, or region_<position> when unset; must be unique."""
    ids = [r.region_id or f"region_{i}" for i, r in enumerate(regions)]
    seen = set()
    for region_id in ids:
        if region_id in seen:
            raise ValueError(f"Duplicate region identity: {region_id}")
        seen.add(region_id)
    return ids


def _is_dense(rows, cols):
    n = len(rows)
    row_count = int(rows.max()) + 1
    col_count = int(cols.max()) + 1
    if row_count * col_count != n:
        return False
    return len(set(zip(rows.tolist(), cols.tolist()))) == n


def build_adjacency(occupied):
    """
    Neighbour records for every occupied (row, col), row-major.

    A neighbour exists iff its index is a key of `occupied`.
    """
    records = []
    for row, col in sorted(occupied):
        records.append(CellNeighbors(
            row=row,
            col=col,
            has_left=(row, col - 1) in occupied,
            has_right=(row, col + 1) in occupied,
            has_up=(row - 1, col) in occupied,
            has_down=(row + 1, col) in occupied,
        ))
    return records


def _reprojection_deviations(ids, rows, cols, row_dev, col_dev, allowed):
    deviations = []
    for region_id, row, col, dr, dc in zip(ids, rows, cols, row_dev, col_dev):
        worst = max(float(dr), float(dc))
        if worst > allowed:
            deviations.append({
                "region_id": region_id,
                "row": int(row),
                "col": int(col),
                "row_deviation": float(dr),
                "col_deviation": float(dc),
            })
    return deviations


@trace(label="infer_grid")
def infer_grid(regions, config=None):
    """
    Infer the grid topology of a set of regions.

    Args:
        regions: OrientedRect snapshots in any order
        config: InferenceConfig (defaults when None)

    Returns:
        GridInferenceResult; row 0 is the top row and column 0 the left column
        as seen along the first region's axes

    Raises:
        EmptyInput: no regions
        DegenerateSpacing: no same-row or same-column pairs, or a step at or
            below config.min_step
        NonRectangularSelection: indices are not a dense rows x cols block
        ExcessiveJitter: reprojection_check is "strict" and a center deviates
            more than allowed_relative_deviation from its lattice position
    """
    tracer = get_tracer()
    config = config or InferenceConfig()
    regions = list(regions)

    if not regions:
        raise EmptyInput("No regions to infer a grid from")

    ids = region_identities(regions)

    basis_right, _ = unit(vec(regions[0], "dir_right"))
    basis_up, _ = unit(-vec(regions[0], "dir_down"))

    centers = np.array([vec(r, "center") for r in regions])
    coords_r = centers @ basis_right
    coords_u = centers @ basis_up

    tolerance = axis_tolerance(coords_r, coords_u, config.tolerance_fraction, config.tolerance_floor)
    r_samples, u_samples = collect_spacing_samples(coords_r, coords_u, tolerance, config.min_sample)
    tracer.event(
        f"Spacing samples: {r_samples.size} along right, {u_samples.size} along up",
        tolerance=tolerance,
    )

    if r_samples.size == 0 or u_samples.size == 0:
        raise DegenerateSpacing(
            f"Not enough aligned pairs to estimate spacing "
            f"({r_samples.size} along right, {u_samples.size} along up)",
            right_samples=int(r_samples.size),
            up_samples=int(u_samples.size),
        )

    step_r = robust_median(r_samples, config.outlier_factor, config.min_sample)
    step_u = robust_median(u_samples, config.outlier_factor, config.min_sample)
    if step_r <= config.min_step or step_u <= config.min_step:
        raise DegenerateSpacing(
            f"Degenerate spacing (right={step_r:.3e}, up={step_u:.3e})",
            step_right=step_r,
            step_up=step_u,
        )
    tracer.event(f"Steps: right={step_r:.6g} up={step_u:.6g}")

    cols, col_dev = quantize(coords_r, step_r)
    # Rows count downward so row 0 is the top row.
    rows, row_dev = quantize(-coords_u, step_u)

    deviations = []
    if config.reprojection_check != "off":
        deviations = _reprojection_deviations(
            ids, rows, cols, row_dev, col_dev, config.allowed_relative_deviation
        )
        if deviations and config.reprojection_check == "strict":
            worst = deviations[0]
            raise ExcessiveJitter(
                f"{len(deviations)} region(s) deviate more than "
                f"{config.allowed_relative_deviation:.0%} of a step from the grid "
                f"(first: {worst['region_id']})",
                deviations=deviations,
            )
        for deviation in deviations:
            tracer.event(
                f"Region {deviation['region_id']} is off-lattice at "
                f"R{deviation['row'] + 1}C{deviation['col'] + 1}",
                level="WARN",
            )

    compacted = False
    if not _is_dense(rows, cols) and config.compact_sparse_indices:
        rows, cols = compact_indices(rows), compact_indices(cols)
        compacted = True
        tracer.event("Compacted sparse indices", level="DEBUG")

    row_count = int(rows.max()) + 1
    col_count = int(cols.max()) + 1
    if not _is_dense(rows, cols):
        raise NonRectangularSelection(row_count, col_count, len(regions))

    occupied = {(int(r), int(c)): region_id for region_id, r, c in zip(ids, rows, cols)}
    index_by_region = {
        region_id: GridCellIndex(row=int(r), col=int(c))
        for region_id, r, c in zip(ids, rows, cols)
    }

    tracer.event(f"Detected {row_count}x{col_count} grid")

    return GridInferenceResult(
        row_count=row_count,
        col_count=col_count,
        index_by_region=index_by_region,
        neighbors=build_adjacency(occupied),
        step_right=step_r,
        step_up=step_u,
        tolerance=tolerance,
        basis_right=to_list(basis_right),
        basis_up=to_list(basis_up),
        compacted=compacted,
        deviations=deviations,
    )


def order_row_major(regions, result):
    """
    Arrange regions as result.row_count lists of result.col_count snapshots.

    Regions are matched to indices by identity as assigned by infer_grid.
    """
    regions = list(regions)
    ids = region_identities(regions)
    grid = [[None] * result.col_count for _ in range(result.row_count)]
    for region_id, region in zip(ids, regions):
        index = result.index_by_region[region_id]
        grid[index.row][index.col] = region
    return grid
