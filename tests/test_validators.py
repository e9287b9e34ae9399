"""Tests for graph integrity validation."""

from framing_builder.models import Beam, ColumnKind, FramingPlan, LayoutConfig, Point2D
from framing_builder.topology.spans import enforce_spans
from framing_builder.validators import validate_plan


def P(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


def messages(plan: FramingPlan, config: LayoutConfig | None = None) -> list[str]:
    return [e.message for e in validate_plan(plan, config)]


class TestIntegrity:
    def test_clean_plan(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(20, 0))
        plan.add_beam(a.global_id, b.global_id)
        enforce_spans(plan, LayoutConfig())
        assert validate_plan(plan) == []
        assert plan.validate() == []

    def test_dangling_beam(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        beam = Beam(start_id=a.global_id, end_id="gone", start=P(0, 0), end=P(3, 0))
        plan.beams[beam.global_id] = beam
        errors = validate_plan(plan)
        assert any("non-existent column gone" in e.message for e in errors)
        assert errors[0].element_type == "Beam"

    def test_span_exceeded(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(20, 0))
        plan.add_beam(a.global_id, b.global_id)
        errors = validate_plan(plan, LayoutConfig(max_span_x=6))
        assert len(errors) == 1
        assert errors[0].severity == "error"
        assert "exceeds limit 6.00m" in errors[0].message

    def test_duplicate_columns(self):
        plan = FramingPlan()
        plan.add_column(P(0, 0))
        plan.add_column(P(0.01, 0))
        assert any("duplicates" in m for m in messages(plan))

    def test_orphan_auto(self):
        plan = FramingPlan()
        plan.add_column(P(0, 0), kind=ColumnKind.AUTO)
        errors = validate_plan(plan)
        assert errors[0].severity == "warning"
        assert "lies on no beam" in errors[0].message

    def test_beam_on_suspended_column(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(5, 0))
        plan.add_beam(a.global_id, b.global_id)
        plan.suspend(a.global_id, by="ghost")
        found = messages(plan)
        assert any("suspended column" in m for m in found)
        assert any("Suspended by missing column ghost" in m for m in found)

    def test_stale_geometry(self):
        plan = FramingPlan()
        a = plan.add_column(P(0, 0))
        b = plan.add_column(P(5, 0))
        plan.add_beam(a.global_id, b.global_id)
        b.position = P(5, 1)
        assert any("stale" in m for m in messages(plan))
