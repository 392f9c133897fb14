"""
Validation rules for inferred grids.

Each rule inspects the regions and their GridInferenceResult and returns a
CheckResult. Rules report; they never repair.
"""

import math

import networkx as nx

from scopegrid.config import ValidationConfig
from scopegrid.inference.grid_inference import region_identities
from scopegrid.models import CheckResult, Severity, ValidationReport
from scopegrid.tracer import get_tracer, trace


@trace(label="run_validation")
def run_validation(regions, result, config=None):
    """
    Run all validation checks on an inferred grid.

    Returns ValidationReport with all check results.
    """
    tracer = get_tracer()
    config = config or ValidationConfig()
    regions = list(regions)

    checks = [
        check_dense_grid(result),
        check_connected_grid(result),
        check_uniform_size(regions, config),
        check_uniform_rotation(regions, config),
        check_seam_overlap(regions, result, config),
    ]
    report = ValidationReport(checks=checks)

    tracer.event(f"Validation complete: {report.error_count} errors, {report.warning_count} warnings")
    return report


def check_dense_grid(result):
    """Every (row, col) of the detected block is occupied exactly once."""
    expected = result.row_count * result.col_count
    occupied = {index.key() for index in result.index_by_region.values()}
    passed = expected == len(result.index_by_region) == len(occupied)

    return CheckResult(
        rule_id="dense_grid",
        severity=Severity.ERROR,
        passed=passed,
        message=(
            f"Grid {result.row_count}x{result.col_count} is fully occupied"
            if passed else
            f"Grid {result.row_count}x{result.col_count} expects {expected} cells, found {len(occupied)}"
        ),
        evidence={"rows": result.row_count, "cols": result.col_count, "cells": len(occupied)},
    )


def check_connected_grid(result):
    """
    Adjacency graph forms one connected component.
    """
    graph = result.to_graph()
    components = nx.number_connected_components(graph) if graph.number_of_nodes() else 0
    passed = components == 1

    return CheckResult(
        rule_id="connected_grid",
        severity=Severity.ERROR,
        passed=passed,
        message="Adjacency graph is connected" if passed else f"Adjacency graph has {components} components",
        evidence={
            "components": components,
            "nodes": graph.number_of_nodes(),
            "edges": graph.number_of_edges(),
        },
    )


def check_uniform_size(regions, config):
    """All regions share the first region's width and height."""
    if not regions:
        return CheckResult(rule_id="uniform_size", severity=Severity.WARN, passed=True,
                           message="No regions", evidence={})

    ref = regions[0]
    ids = region_identities(regions)
    outliers = [
        region_id for region_id, r in zip(ids, regions)
        if abs(r.width - ref.width) > config.size_tolerance
        or abs(r.height - ref.height) > config.size_tolerance
    ]

    return CheckResult(
        rule_id="uniform_size",
        severity=Severity.WARN,
        passed=not outliers,
        message=(
            f"All regions are {ref.width:.6g} x {ref.height:.6g}"
            if not outliers else
            f"{len(outliers)} regions differ in size from {ref.width:.6g} x {ref.height:.6g}"
        ),
        evidence={"width": ref.width, "height": ref.height, "outliers": outliers},
    )


def _angle_difference(a, b):
    d = (a - b + math.pi) % (2 * math.pi) - math.pi
    return abs(d)


def check_uniform_rotation(regions, config):
    """All regions are rotated like the first one."""
    if not regions:
        return CheckResult(rule_id="uniform_rotation", severity=Severity.WARN, passed=True,
                           message="No regions", evidence={})

    ref_angle = regions[0].angle_to_frame_right
    tolerance = math.radians(config.angle_tolerance_degrees)
    ids = region_identities(regions)
    # Quarter turns relabel the same rectangle, so compare modulo 90 degrees.
    outliers = [
        region_id for region_id, r in zip(ids, regions)
        if min(_angle_difference(r.angle_to_frame_right, ref_angle + k * math.pi / 2) for k in range(4)) > tolerance
    ]

    return CheckResult(
        rule_id="uniform_rotation",
        severity=Severity.WARN,
        passed=not outliers,
        message=(
            f"All regions rotated {math.degrees(ref_angle):.4f} deg"
            if not outliers else
            f"{len(outliers)} regions are rotated differently"
        ),
        evidence={"angle_degrees": math.degrees(ref_angle), "outliers": outliers},
    )


def check_seam_overlap(regions, result, config):
    """
    Horizontally and vertically adjacent footprints touch or overlap.

    A gap is legal (negative overlap) but usually unintended, so it warns.
    """
    by_index = {}
    for region_id, region in zip(region_identities(regions), regions):
        index = result.index_by_region.get(region_id)
        if index is not None:
            by_index[index.key()] = region.footprint()

    gaps = []
    overlap_areas = []
    for record in result.neighbors:
        here = by_index[(record.row, record.col)]
        pairs = []
        if record.has_right:
            pairs.append((record.row, record.col + 1))
        if record.has_down:
            pairs.append((record.row + 1, record.col))
        for other_key in pairs:
            other = by_index[other_key]
            distance = here.distance(other)
            if distance > config.seam_tolerance:
                gaps.append({
                    "cell": [record.row, record.col],
                    "neighbor": list(other_key),
                    "gap": distance,
                })
            else:
                overlap_areas.append(here.intersection(other).area)

    return CheckResult(
        rule_id="seam_overlap",
        severity=Severity.WARN,
        passed=not gaps,
        message=(
            f"All {len(overlap_areas)} seams touch or overlap"
            if not gaps else
            f"{len(gaps)} seams have a gap"
        ),
        evidence={
            "gaps": gaps,
            "max_overlap_area": max(overlap_areas) if overlap_areas else 0.0,
        },
    )
