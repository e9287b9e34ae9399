"""Tests for beam-on-beam supports and beam segmentation."""

import math

import pytest

from framing_builder.models import AnchorRole, ColumnKind, FramingPlan, LayoutConfig, Point2D
from framing_builder.queries.segments import column_span, segment_beam, segment_plan
from framing_builder.topology.spans import enforce_spans
from framing_builder.topology.supports import link_support, split_beam_at, support_point


def P(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


def two_beams() -> tuple[FramingPlan, str, str]:
    """Support beam along X, dependent beam coming down toward it at x=4."""
    plan = FramingPlan()
    a = plan.add_column(P(0, 0))
    b = plan.add_column(P(10, 0))
    c = plan.add_column(P(4, 5))
    d = plan.add_column(P(4, 1))
    support = plan.add_beam(a.global_id, b.global_id)
    dependent = plan.add_beam(c.global_id, d.global_id)
    return plan, dependent.global_id, support.global_id


class TestSupportPoint:
    def test_perpendicular_hit(self):
        plan, dep, sup = two_beams()
        which, point = support_point(plan, dep, sup)
        assert which == "end"
        assert point == P(4, 0)

    def test_same_beam(self):
        plan, dep, _ = two_beams()
        assert support_point(plan, dep, dep) is None

    def test_missing_beam(self):
        plan, dep, _ = two_beams()
        assert support_point(plan, dep, "missing") is None


class TestLinkSupport:
    def test_creates_support_anchor(self):
        plan, dep, sup = two_beams()
        anchor = link_support(plan, dep, sup, LayoutConfig())
        assert anchor is not None
        assert anchor.kind == ColumnKind.ANCHOR
        assert anchor.anchor_role == AnchorRole.SUPPORT
        assert anchor.hidden
        assert anchor.position == P(4, 0)
        # support split in two, dependent re-pointed
        assert sup not in plan.beams
        assert len(plan.beams_at(anchor.global_id)) == 3
        assert plan.beams[dep].end_id == anchor.global_id
        assert plan.beams[dep].origin_end_id == anchor.global_id
        assert plan.beams[dep].length == pytest.approx(5.0)

    @pytest.mark.parametrize("angle, expected", [(45.0, P(5, 0)), (135.0, P(3, 0))])
    def test_oblique_angle(self, angle, expected):
        plan, dep, sup = two_beams()
        anchor = link_support(plan, dep, sup, LayoutConfig(), angle)
        assert anchor is not None
        assert anchor.position == expected
        assert plan.beams[dep].end_id == anchor.global_id
        assert plan.beams[dep].length == pytest.approx(math.hypot(expected.x - 4, 5))

    def test_reuses_column_on_support(self):
        plan, dep, sup = two_beams()
        existing = plan.add_column(P(4, 0))
        anchor = link_support(plan, dep, sup, LayoutConfig())
        assert anchor.global_id == existing.global_id
        assert plan.count(ColumnKind.ANCHOR) == 0

    def test_no_intersection_leaves_plan(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(10, 0))
        c = plan.add_column(P(20, 5))
        d = plan.add_column(P(20, 1))
        sup = plan.add_beam(a.global_id, b.global_id)
        dep = plan.add_beam(c.global_id, d.global_id)
        before = plan.model_dump()
        assert link_support(plan, dep.global_id, sup.global_id, LayoutConfig()) is None
        assert plan.model_dump() == before

    def test_long_support_keeps_spans(self):
        plan, dep, sup = two_beams()
        config = LayoutConfig(max_span_x=6)
        link_support(plan, dep, sup, config)
        # 0-4 fits, 4-10 fits: no automatic columns needed
        assert plan.count(ColumnKind.AUTO) == 0


class TestSplitBeamAt:
    def test_free_anchor(self):
        plan, _, sup = two_beams()
        node = split_beam_at(plan, sup, P(7, 0.01), LayoutConfig())
        assert node.kind == ColumnKind.ANCHOR
        assert node.anchor_role == AnchorRole.FREE
        assert node.position == P(7, 0)
        assert len(plan.beams_at(node.global_id)) == 2

    def test_off_beam(self):
        plan, _, sup = two_beams()
        assert split_beam_at(plan, sup, P(7, 1), LayoutConfig()) is None


class TestSegments:
    def test_single_segment_without_inner_columns(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(5, 0))
        beam = plan.add_beam(a.global_id, b.global_id)
        segments = segment_beam(plan, beam)
        assert len(segments) == 1
        assert segments[0].height == pytest.approx(0.5)

    def test_split_at_auto_columns(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(20, 0))
        beam = plan.add_beam(a.global_id, b.global_id)
        enforce_spans(plan, LayoutConfig(max_span_x=6))
        segments = segment_beam(plan, beam)
        assert [round(s.length, 6) for s in segments] == [6.0, 6.0, 6.0, 2.0]
        assert sum(s.length for s in segments) == pytest.approx(beam.length)
        assert segments[-1].height == pytest.approx(0.2)

    def test_round_trip_over_plan(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(14, 0))
        c = plan.add_column(P(14, 9))
        plan.add_beam(a.global_id, b.global_id)
        plan.add_beam(b.global_id, c.global_id)
        enforce_spans(plan, LayoutConfig(max_span_x=6, max_span_y=4))
        for beam in plan.beams.values():
            total = sum(s.length for s in segment_beam(plan, beam))
            assert total == pytest.approx(beam.length)
        assert plan.segments() == segment_plan(plan)

    def test_off_axis_column_ignored(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(10, 0))
        plan.add_column(P(5, 0.3))
        beam = plan.add_beam(a.global_id, b.global_id)
        assert len(segment_beam(plan, beam)) == 1

    def test_column_span(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(10, 0))
        beam = plan.add_beam(a.global_id, b.global_id)
        assert column_span(plan, beam) == pytest.approx(10.0)
