"""Tests for vector helpers and boundary flattening."""

import math

import numpy as np
import pytest


class TestVectors:
    """Tests for the plane and angle helpers."""

    def test_signed_angle_sign(self):
        """Test that the sign follows the normal."""
        from scopegrid.geometry.vectors import signed_angle

        x = np.array([1.0, 0.0, 0.0])
        y = np.array([0.0, 1.0, 0.0])
        z = np.array([0.0, 0.0, 1.0])

        assert signed_angle(x, y, z) == pytest.approx(math.pi / 2)
        assert signed_angle(y, x, z) == pytest.approx(-math.pi / 2)
        assert signed_angle(x, y, -z) == pytest.approx(-math.pi / 2)

    def test_signed_angle_clamps(self):
        """Test that nearly parallel vectors do not overflow acos."""
        from scopegrid.geometry.vectors import signed_angle

        a = np.array([1.0, 1e-17, 0.0])

        assert signed_angle(a, a * 3.0, np.array([0.0, 0.0, 1.0])) == pytest.approx(0.0, abs=1e-7)

    def test_unit_of_zero(self):
        """Test that the zero vector has length 0."""
        from scopegrid.geometry.vectors import unit

        v, length = unit(np.zeros(3))

        assert length == 0.0
        assert v.tolist() == [0.0, 0.0, 0.0]

    def test_as_vec_rejects_wrong_shape(self):
        """Test that 2D input is refused."""
        from scopegrid.geometry.vectors import as_vec

        with pytest.raises(ValueError):
            as_vec([1.0, 2.0])

    def test_project_to_plane(self):
        """Test that the normal component is removed."""
        from scopegrid.geometry.vectors import project_to_plane

        result = project_to_plane(np.array([3.0, 4.0, 12.0]), np.array([0.0, 0.0, 1.0]))

        assert result.tolist() == [3.0, 4.0, 0.0]

    def test_plane_round_trip_non_orthogonal(self):
        """Test that plane_to_world inverts plane_coords for a skewed basis."""
        from scopegrid.geometry.vectors import plane_coords, plane_to_world

        right = np.array([1.0, 0.0, 0.0])
        up = np.array([1.0, 1.0, 0.0]) / math.sqrt(2)
        point = np.array([3.0, 4.0, 0.0])

        r, u = plane_coords(point, right, up)
        back = plane_to_world(r, u, right, up, np.zeros(3))

        assert back == pytest.approx([3.0, 4.0, 0.0])

    def test_plane_to_world_keeps_reference_plane(self):
        """Test that the result lies in the plane through the reference."""
        from scopegrid.geometry.vectors import plane_to_world

        right = np.array([1.0, 0.0, 0.0])
        up = np.array([0.0, 1.0, 0.0])

        result = plane_to_world(3.0, 4.0, right, up, np.array([0.0, 0.0, 5.0]))

        assert result == pytest.approx([3.0, 4.0, 5.0])

    def test_dedupe_points(self):
        """Test that near-identical points collapse to the first."""
        from scopegrid.geometry.vectors import dedupe_points

        p = np.array([1.0, 2.0, 3.0])
        q = np.array([4.0, 5.0, 6.0])

        unique = dedupe_points([p, p + 1e-12, q, q], 1e-9)

        assert len(unique) == 2
        assert unique[0] is p

    def test_dedupe_plane_points(self):
        """Test that plane duplicates keep the first payload."""
        from scopegrid.geometry.vectors import dedupe_plane_points

        entries = [(0.0, 0.0, "a"), (0.0, 0.0, "b"), (1.0, 0.0, "c")]

        assert [e[2] for e in dedupe_plane_points(entries, 1e-9)] == ["a", "c"]


class TestIntersection:
    """Tests for 2D line/segment intersection."""

    def test_hit_inside_segment(self):
        """Test parameters of a crossing at the segment midpoint."""
        from scopegrid.geometry.vectors import intersect_line_segment_2d

        point, t, s = intersect_line_segment_2d((0.0, 0.0), (1.0, 0.0), (5.0, -1.0), (5.0, 1.0))

        assert point == pytest.approx((5.0, 0.0))
        assert t == pytest.approx(5.0)
        assert s == pytest.approx(0.5)

    def test_hit_outside_segment(self):
        """Test that s reports a hit beyond the segment end."""
        from scopegrid.geometry.vectors import intersect_line_segment_2d

        _, _, s = intersect_line_segment_2d((0.0, 3.0), (1.0, 0.0), (5.0, -1.0), (5.0, 1.0))

        assert s == pytest.approx(2.0)

    def test_parallel_raises(self):
        """Test that a parallel edge is reported."""
        from scopegrid.errors import ParallelIntersection
        from scopegrid.geometry.vectors import intersect_line_segment_2d

        with pytest.raises(ParallelIntersection) as exc_info:
            intersect_line_segment_2d((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (5.0, 1.0))

        assert exc_info.value.kind == "ParallelIntersection"


class TestBoundary:
    """Tests for boundary flattening."""

    def test_plain_segments(self):
        """Test that segments pass through unchanged."""
        from scopegrid.geometry.boundary import flatten_boundary
        from scopegrid.models import SegmentKind

        flat = list(flatten_boundary([{"start": [0, 0, 0], "end": [1, 0, 0], "kind": "curve"}]))

        assert len(flat) == 1
        start, end, kind = flat[0]
        assert start.tolist() == [0.0, 0.0, 0.0]
        assert end.tolist() == [1.0, 0.0, 0.0]
        assert kind == SegmentKind.CURVE

    def test_nested_transforms_compose(self):
        """Test that outer transforms apply after inner ones."""
        from scopegrid.geometry.boundary import flatten_boundary
        from scopegrid.models import BoundaryInstance, BoundarySegment

        scale = [[2, 0, 0, 0], [0, 2, 0, 0], [0, 0, 2, 0], [0, 0, 0, 1]]
        shift = [[1, 0, 0, 10], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]]
        inner = BoundaryInstance(
            transform=scale,
            children=[BoundarySegment(start=[1, 1, 0], end=[2, 1, 0])],
        )
        outer = BoundaryInstance(transform=shift, children=[inner])

        (start, end, _), = list(flatten_boundary([outer]))

        assert start.tolist() == pytest.approx([12.0, 2.0, 0.0])
        assert end.tolist() == pytest.approx([14.0, 2.0, 0.0])

    def test_rectangle_boundary_closes(self):
        """Test that the generated loop ends where it starts."""
        from scopegrid.geometry.boundary import rectangle_boundary

        corners = [[0, 1, 0], [1, 1, 0], [1, 0, 0], [0, 0, 0]]
        loop = rectangle_boundary(corners)

        assert len(loop) == 4
        assert loop[-1].end == loop[0].start

    def test_transform_must_be_4x4(self):
        """Test that malformed transforms are rejected."""
        from pydantic import ValidationError

        from scopegrid.models import BoundaryInstance

        with pytest.raises(ValidationError):
            BoundaryInstance(transform=[[1, 0], [0, 1]], children=[])
