"""
Step vectors for tiling.

A step is the translation from one cell to its neighbour: the in-plane span
between opposite edge midpoints, shortened by the overlap. Positive overlap
makes neighbours interpenetrate, zero makes them touch, negative leaves a gap.
"""

from scopegrid.config import TilingConfig
from scopegrid.errors import DegenerateSpan
from scopegrid.geometry.vectors import as_vec, project_to_plane, unit
from scopegrid.models import Side, vec


def compute_step_vector(from_mid, to_mid, normal, overlap, nudge_if_zero=True,
                        nudge=1e-6, zero_overlap_epsilon=1e-9, min_span_length=1e-12):
    """
    Translation along from_mid -> to_mid of length |span| - overlap.

    When |overlap| < zero_overlap_epsilon and nudge_if_zero is set, `nudge`
    is added to the distance so touching cells never leave a hairline gap
    after downstream rounding.

    Raises:
        DegenerateSpan: the projected span is no longer than min_span_length
    """
    normal = as_vec(normal)
    span = project_to_plane(as_vec(to_mid) - as_vec(from_mid), normal)
    axis, span_length = unit(span)
    if span_length <= min_span_length:
        raise DegenerateSpan(
            f"Span between midpoints is degenerate ({span_length:.3e})",
            span_length=span_length,
        )

    move_distance = span_length - overlap
    if nudge_if_zero and abs(overlap) < zero_overlap_epsilon:
        move_distance += nudge

    return axis * move_distance


def _step(from_mid, to_mid, rect, overlap, config):
    return compute_step_vector(
        vec(rect, from_mid),
        vec(rect, to_mid),
        rect.frame.normal_vec,
        overlap,
        nudge_if_zero=config.apply_zero_gap_nudge,
        nudge=config.zero_gap_nudge,
        zero_overlap_epsilon=config.zero_overlap_epsilon,
        min_span_length=config.min_span_length,
    )


def column_step(rect, overlap, config=None):
    """Step to the next column (mid_left -> mid_right)."""
    return _step("mid_left", "mid_right", rect, overlap, config or TilingConfig())


def row_step(rect, overlap, config=None):
    """Step to the next row down (mid_top -> mid_bottom)."""
    return _step("mid_top", "mid_bottom", rect, overlap, config or TilingConfig())


_SIDE_SPANS = {
    Side.RIGHT: ("mid_left", "mid_right"),
    Side.LEFT: ("mid_right", "mid_left"),
    Side.BOTTOM: ("mid_top", "mid_bottom"),
    Side.TOP: ("mid_bottom", "mid_top"),
}


def side_step(rect, side, overlap, config=None):
    """Step that places one copy against the given side of rect."""
    side = Side(side)
    if side not in _SIDE_SPANS:
        raise ValueError(f"Cannot step toward {side.value!r}")
    from_mid, to_mid = _SIDE_SPANS[side]
    return _step(from_mid, to_mid, rect, overlap, config or TilingConfig())
