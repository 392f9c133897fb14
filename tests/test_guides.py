"""Tests for seam guide lines and their crossings."""

import numpy as np
import pytest


def _plan_grid(plan):
    """Nested rows of rects from a GridPlan."""
    return [
        [plan.placement_at(r, c).rect for c in range(plan.cols)]
        for r in range(plan.rows)
    ]


def _square_grid(make_rect, rows, cols, step=10.0):
    return [
        [make_rect(10.0, 10.0, center=(c * step, -r * step, 0.0), region_id=f"R{r + 1}C{c + 1}")
         for c in range(cols)]
        for r in range(rows)
    ]


class TestBuildGuides:
    """Tests for guide construction."""

    def test_touching_two_by_two(self, scenario_grid, plan_frame):
        """Test the column and row guide of a touching 2x2 grid."""
        from scopegrid.guides.guide_builder import build_guides
        from scopegrid.models import GuideAxis

        guides = build_guides(scenario_grid, plan_frame)

        assert len(guides) == 2
        column, row = guides

        assert column.axis == GuideAxis.COLUMN
        assert column.boundary_index == 0
        assert column.clip_start == pytest.approx([10, 10, 0])
        assert column.clip_end == pytest.approx([10, -10, 0])
        assert column.start == pytest.approx([10, 10.5, 0])
        assert column.end == pytest.approx([10, -10.5, 0])

        assert row.axis == GuideAxis.ROW
        assert row.clip_start == pytest.approx([0, 0, 0])
        assert row.clip_end == pytest.approx([20, 0, 0])
        assert row.start == pytest.approx([-0.5, 0, 0])
        assert row.end == pytest.approx([20.5, 0, 0])

    def test_padding_argument_overrides_config(self, scenario_grid, plan_frame):
        """Test that an explicit padding wins over the configured one."""
        from scopegrid.guides.guide_builder import build_guides

        column = build_guides(scenario_grid, plan_frame, padding=2.0)[0]

        assert column.start == pytest.approx([10, 12, 0])
        assert column.padding == 2.0
        assert column.length == pytest.approx(24.0)

    def test_overlap_seam_is_centered(self, make_rect, plan_frame):
        """Test that the guide runs down the middle of the overlap band."""
        from scopegrid.guides.guide_builder import build_guides
        from scopegrid.tiling.grid_builder import build_grid

        seed = make_rect(10.0, 10.0, center=(5.0, 5.0, 0.0))
        grid = _plan_grid(build_grid(seed, 2, 2, 2.0, 2.0))

        column, row = build_guides(grid, plan_frame, padding=0.0)

        assert column.clip_start == pytest.approx([9, 10, 0])
        assert column.clip_end == pytest.approx([9, -8, 0])
        assert row.clip_start == pytest.approx([0, 1, 0])
        assert row.clip_end == pytest.approx([18, 1, 0])

    def test_gap_seam_uses_outer_edge(self, make_rect, plan_frame):
        """Test that a seam inside a gap still clips to the grid's outer edge."""
        from scopegrid.guides.guide_builder import build_guides
        from scopegrid.tiling.grid_builder import build_grid

        seed = make_rect(10.0, 10.0, center=(5.0, 5.0, 0.0))
        grid = _plan_grid(build_grid(seed, 2, 2, -2.0, -2.0))

        column = build_guides(grid, plan_frame, padding=0.0)[0]

        assert column.clip_start == pytest.approx([11, 10, 0])
        assert column.clip_end == pytest.approx([11, -12, 0])

    def test_nudged_touching_grid(self, make_rect, plan_frame):
        """Test that the zero-overlap nudge does not break clipping."""
        from scopegrid.guides.guide_builder import build_guides
        from scopegrid.tiling.grid_builder import build_grid

        seed = make_rect(10.0, 10.0, center=(5.0, 5.0, 0.0))
        grid = _plan_grid(build_grid(seed, 3, 3))

        guides = build_guides(grid, plan_frame)

        assert len(guides) == 4
        assert guides[0].clip_start[0] == pytest.approx(10.0, abs=1e-5)

    @pytest.mark.parametrize("angle", [17.0, -30.0, 123.0])
    def test_rotated_grid(self, make_rect, plan_frame, angle):
        """Test that guides follow the grid's own axes."""
        from scopegrid.guides.guide_builder import build_guides
        from scopegrid.tiling.grid_builder import build_grid

        seed = make_rect(10.0, 6.0, angle)
        plan = build_grid(seed, 2, 3, 1.0, 1.0)
        grid = _plan_grid(plan)

        guides = build_guides(grid, plan_frame, padding=0.5)
        columns, rows = guides[:2], guides[2:]

        assert len(columns) == 2 and len(rows) == 1
        col_span = seed.height + (seed.height - 1.0)
        row_span = seed.width + 2 * (seed.width - 1.0)
        for guide in columns:
            clip = np.array(guide.clip_end) - np.array(guide.clip_start)
            assert np.linalg.norm(clip) == pytest.approx(col_span)
            assert clip / np.linalg.norm(clip) == pytest.approx(seed.dir_down)
            assert guide.length == pytest.approx(col_span + 1.0)
        assert rows[0].length == pytest.approx(row_span + 1.0)

    def test_single_cell_has_no_guides(self, scenario_grid, plan_frame):
        """Test that a 1x1 grid has no internal seams."""
        from scopegrid.guides.guide_builder import build_guides

        assert build_guides([[scenario_grid[0][0]]], plan_frame) == []


class TestGuideFailures:
    """Tests for guide failure modes."""

    def test_ragged_grid(self, scenario_grid, plan_frame):
        """Test that rows of unequal length are refused."""
        from scopegrid.errors import ArgumentRange
        from scopegrid.guides.guide_builder import build_guides

        grid = [scenario_grid[0], scenario_grid[1][:1]]

        with pytest.raises(ArgumentRange):
            build_guides(grid, plan_frame)

    def test_empty_grid(self, plan_frame):
        """Test that an empty grid is refused."""
        from scopegrid.errors import ArgumentRange
        from scopegrid.guides.guide_builder import build_guides

        with pytest.raises(ArgumentRange):
            build_guides([], plan_frame)

    def test_guide_misses_outer_edge(self, scenario_grid, plan_frame):
        """Test a bottom row shifted sideways so the seam misses it."""
        from scopegrid.errors import IntersectionOutsideEdge
        from scopegrid.guides.guide_builder import build_guides

        top, bottom = scenario_grid
        shifted = [rect.translated([50.0, 0.0, 0.0], region_id=rect.region_id) for rect in bottom]

        with pytest.raises(IntersectionOutsideEdge):
            build_guides([top, shifted], plan_frame)

    def test_parallel_guide(self, scenario_grid, plan_frame):
        """Test that a guide parallel to its clipping edge fails."""
        from scopegrid.errors import ParallelIntersection
        from scopegrid.guides.guide_builder import build_guides

        top, bottom = scenario_grid
        broken = top[0].model_copy(update={"dir_down": [1.0, 0.0, 0.0]})

        with pytest.raises(ParallelIntersection):
            build_guides([[broken, top[1]], bottom], plan_frame)


class TestGuideCrossings:
    """Tests for labelled guide crossings."""

    def test_three_by_three_labels(self, make_rect, plan_frame):
        """Test crossing labels and positions on a 3x3 grid."""
        from scopegrid.guides.guide_builder import build_guides, guide_crossings

        grid = _square_grid(make_rect, 3, 3)
        crossings = guide_crossings(build_guides(grid, plan_frame), plan_frame)

        assert [c.label for c in crossings] == ["R2C2", "R2C3", "R3C2", "R3C3"]
        assert crossings[0].point == pytest.approx([5, -5, 0])
        assert crossings[3].point == pytest.approx([15, -15, 0])
        assert crossings[0].point == pytest.approx(grid[1][1].corner_top_left)

    def test_no_crossings_for_single_row(self, make_rect, plan_frame):
        """Test that a 1xN grid has column guides but no crossings."""
        from scopegrid.guides.guide_builder import build_guides, guide_crossings

        guides = build_guides(_square_grid(make_rect, 1, 3), plan_frame)

        assert len(guides) == 2
        assert guide_crossings(guides, plan_frame) == []
