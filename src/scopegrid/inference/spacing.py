"""
Spacing estimation and index quantization for grid inference.

Centers are given as scalar coordinates along the grid's right and up axes.
Pairs that share a row (|dU| within tolerance) sample the column spacing along
R; pairs that share a column sample the row spacing along U.
"""

import numpy as np


def axis_tolerance(coords_r, coords_u, fraction=0.01, floor=1e-4):
    """Same-row / same-column tolerance: a fraction of the larger span, floored."""
    span_r = float(np.ptp(coords_r)) if len(coords_r) else 0.0
    span_u = float(np.ptp(coords_u)) if len(coords_u) else 0.0
    return max(fraction * max(span_r, span_u), floor)


def _nearest_samples(along, across, tolerance, min_sample):
    # Pairs sharing a line (|d across| <= tolerance); each center keeps only
    # its closest partner so multi-cell spans never outnumber the true step.
    d_along = np.abs(along[:, None] - along[None, :])
    d_across = np.abs(across[:, None] - across[None, :])
    candidate = (d_across <= tolerance) & (d_along > min_sample)
    nearest = np.where(candidate, d_along, np.inf).min(axis=1)
    return nearest[np.isfinite(nearest)]


def collect_spacing_samples(coords_r, coords_u, tolerance, min_sample=1e-9):
    """
    Spacing samples from every pair of centers (O(n^2)).

    A pair in the same row (|dU| within tolerance) samples the column spacing
    |dR|, a pair in the same column samples |dU|. Each center contributes its
    nearest same-row and nearest same-column partner only: with all pairs, a
    row of four cells yields 3 x s, 2 x 2s and 1 x 3s and its median is 1.5s.

    Returns:
        (r_samples, u_samples), each only where the delta exceeds min_sample
    """
    r = np.asarray(coords_r, dtype=float)
    u = np.asarray(coords_u, dtype=float)

    r_samples = _nearest_samples(r, u, tolerance, min_sample)
    u_samples = _nearest_samples(u, r, tolerance, min_sample)
    return r_samples, u_samples


def robust_median(samples, outlier_factor=3.0, min_sample=1e-9):
    """
    Median after discarding outliers.

    Samples above outlier_factor x the raw median (diagonal or multi-cell
    pairings) and samples at or below min_sample are dropped; if nothing
    survives the raw median is returned.
    """
    samples = np.asarray(samples, dtype=float)
    if samples.size == 0:
        return 0.0

    raw = float(np.median(samples))
    if raw <= 0:
        return 0.0

    kept = samples[(samples > min_sample) & (samples <= outlier_factor * raw)]
    if kept.size == 0:
        return raw
    return float(np.median(kept))


def quantize(coords, step):
    """
    Nearest-integer index of each coordinate, measured from the minimum.

    Points are never rejected here; the fractional distance from the chosen
    index is returned alongside so callers can judge jitter.

    Returns:
        (indices, deviations): int array starting at 0, and |offset/step - index|
    """
    coords = np.asarray(coords, dtype=float)
    scaled = (coords - coords.min()) / step
    indices = np.rint(scaled).astype(int)
    deviations = np.abs(scaled - indices)
    indices -= indices.min()
    return indices, deviations


def compact_indices(indices):
    """Map each distinct index value to its rank, closing gaps (0, 2, 3 -> 0, 1, 2)."""
    indices = np.asarray(indices, dtype=int)
    distinct = np.unique(indices)
    return np.searchsorted(distinct, indices)
