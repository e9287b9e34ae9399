"""Tests for span enforcement (automatic intermediate columns)."""

import math

import pytest

from framing_builder.models import ColumnKind, FramingPlan, LayoutConfig, Point2D
from framing_builder.topology.spans import (
    desired_positions,
    enforce_spans,
    limit_for,
    max_sub_span,
    prune_orphans,
)


def P(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


def beam_plan(p1: Point2D, p2: Point2D) -> tuple[FramingPlan, str]:
    plan = FramingPlan()
    a = plan.add_column(p1)
    b = plan.add_column(p2)
    beam = plan.add_beam(a.global_id, b.global_id)
    return plan, beam.global_id


def auto_xs(plan: FramingPlan) -> list[float]:
    return sorted(
        round(c.position.x, 6) for c in plan.columns.values() if c.kind == ColumnKind.AUTO
    )


class TestLimit:
    def test_horizontal_vertical_diagonal(self):
        config = LayoutConfig(max_span_x=5, max_span_y=7)
        plan, h = beam_plan(P(0, 0), P(10, 0))
        assert limit_for(plan.beams[h], config) == 5
        plan, v = beam_plan(P(0, 0), P(0, 10))
        assert limit_for(plan.beams[v], config) == 7
        plan, d = beam_plan(P(0, 0), P(10, 10))
        assert limit_for(plan.beams[d], config) == 7


class TestEnforceSpans:
    def test_scenario_a_long_beam(self):
        plan, _ = beam_plan(P(0, 0), P(20, 0))
        report = enforce_spans(plan, LayoutConfig(max_span_x=6))
        assert len(report.added) == 3
        assert auto_xs(plan) == [6.0, 12.0, 18.0]

    def test_scenario_b_existing_user_column(self):
        plan, beam_id = beam_plan(P(0, 0), P(20, 0))
        plan.add_column(P(10, 0))
        config = LayoutConfig(max_span_x=6)
        enforce_spans(plan, config)
        xs = auto_xs(plan)
        assert 10.0 not in xs
        assert xs == [6.0, 16.0]
        assert max_sub_span(plan, plan.beams[beam_id], config) <= 6.0 + 1e-9

    @pytest.mark.parametrize("length,span", [(20.0, 6.0), (12.0, 6.0), (5.0, 6.0), (17.5, 4.0)])
    def test_auto_count(self, length, span):
        plan, _ = beam_plan(P(0, 0), P(length, 0))
        enforce_spans(plan, LayoutConfig(max_span_x=span))
        assert plan.count(ColumnKind.AUTO) == max(0, math.ceil(length / span) - 1)

    def test_idempotent(self):
        plan, _ = beam_plan(P(0, 0), P(20, 0))
        config = LayoutConfig(max_span_x=6)
        enforce_spans(plan, config)
        before = {cid: c.position for cid, c in plan.columns.items()}
        report = enforce_spans(plan, config)
        assert not report.changed
        assert {cid: c.position for cid, c in plan.columns.items()} == before

    def test_stale_auto_removed_when_span_grows(self):
        plan, _ = beam_plan(P(0, 0), P(20, 0))
        enforce_spans(plan, LayoutConfig(max_span_x=6))
        report = enforce_spans(plan, LayoutConfig(max_span_x=10))
        assert len(report.removed) == 3
        assert auto_xs(plan) == [10.0]

    def test_review_subset_leaves_other_beams(self):
        plan, first = beam_plan(P(0, 0), P(20, 0))
        c = plan.add_column(P(0, 5))
        d = plan.add_column(P(20, 5))
        plan.add_beam(c.global_id, d.global_id)
        enforce_spans(plan, LayoutConfig(max_span_x=6), beam_ids=[first])
        assert plan.count(ColumnKind.AUTO) == 3

    def test_desired_positions_pure(self):
        plan, beam_id = beam_plan(P(0, 0), P(0, 13))
        positions = desired_positions(plan, plan.beams[beam_id], LayoutConfig(max_span_y=6))
        assert positions == [P(0, 6), P(0, 12)]
        assert plan.count(ColumnKind.AUTO) == 0


class TestPruneOrphans:
    def test_removes_auto_off_beams(self):
        plan, _ = beam_plan(P(0, 0), P(20, 0))
        stray = plan.add_column(P(5, 5), kind=ColumnKind.AUTO)
        assert prune_orphans(plan) == [stray.global_id]

    def test_keeps_user_and_listed(self):
        plan = FramingPlan()
        user = plan.add_column(P(5, 5))
        auto = plan.add_column(P(6, 6), kind=ColumnKind.AUTO)
        assert prune_orphans(plan, keep=[auto.global_id]) == []
        assert user.global_id in plan.columns
