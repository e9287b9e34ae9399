"""Tests for plan view rendering."""

from framing_builder.export.planview import render_plan
from framing_builder.models import ColumnSection, FramingPlan, LayoutConfig, Point2D, SectionShape
from framing_builder.topology.spans import enforce_spans
from framing_builder.topology.supports import split_beam_at


def sample_plan() -> FramingPlan:
    plan = FramingPlan(name="Sample")
    a = plan.add_column(Point2D(x=0, y=0))
    b = plan.add_column(Point2D(x=14, y=0))
    c = plan.add_column(
        Point2D(x=14, y=8), section=ColumnSection(shape=SectionShape.CIRCULAR, diameter=0.5)
    )
    plan.add_beam(a.global_id, b.global_id)
    plan.add_beam(b.global_id, c.global_id)
    enforce_spans(plan, LayoutConfig())
    return plan


class TestRenderPlan:
    def test_render_creates_png(self, tmp_path):
        result = render_plan(sample_plan(), tmp_path / "out" / "plan.png")
        assert result.exists()
        assert result.stat().st_size > 0

    def test_render_assigns_tags(self, tmp_path):
        plan = sample_plan()
        render_plan(plan, tmp_path / "plan.png", show_info_box=False)
        assert all(c.tag for c in plan.columns.values())
        assert all(b.tag for b in plan.beams.values())

    def test_render_with_anchors(self, tmp_path):
        plan = sample_plan()
        beam = next(iter(plan.beams.values()))
        split_beam_at(plan, beam.global_id, Point2D(x=3, y=0), LayoutConfig())
        path = plan.render(tmp_path / "anchors.png", show_anchors=True, show_dimensions=False)
        assert path.exists()

    def test_empty_plan(self, tmp_path):
        assert render_plan(FramingPlan(), tmp_path / "empty.png").exists()
