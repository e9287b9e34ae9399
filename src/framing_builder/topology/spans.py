"""Span enforcement: automatic intermediate columns.

Keeps every beam's sub-spans within the configured maximum by inserting
AUTO columns, and removes AUTO columns that are no longer wanted. The
result depends only on the non-automatic columns and the beams, so
running it twice changes nothing.

Limit selection:
- horizontal beam (|dy| within tolerance): max_span_x
- vertical beam (|dx| within tolerance): max_span_y
- diagonal beam: max(max_span_x, max_span_y)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import Beam, ColumnKind
from framing_builder.models.geometry import (
    Point2D,
    point_along,
    point_on_segment,
    points_close,
    project_onto_segment,
)
from framing_builder.models.plan import FramingPlan

logger = logging.getLogger(__name__)


@dataclass
class SpanReport:
    """AUTO columns added and removed by one enforcement pass."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def limit_for(beam: Beam, config: LayoutConfig) -> float:
    """Maximum sub-span for a beam, by direction."""
    tol = config.structural_tolerance
    if abs(beam.dy) <= tol:
        return config.max_span_x
    if abs(beam.dx) <= tol:
        return config.max_span_y
    return config.max_span


def desired_positions(
    plan: FramingPlan, beam: Beam, config: LayoutConfig
) -> list[Point2D]:
    """Where AUTO columns belong on a beam.

    Stations are the beam ends plus every active non-AUTO column on the
    beam. Any gap longer than the limit gets columns at limit multiples
    from the gap start, stopping within tolerance of the far end.
    """
    tol = config.structural_tolerance
    length = beam.length
    if length <= tol:
        return []
    limit = limit_for(beam, config)

    stations = [0.0, length]
    for column in plan.columns_on_beam(
        beam, tol, predicate=lambda c: c.kind != ColumnKind.AUTO
    ):
        proj = project_onto_segment(column.position, beam.start, beam.end)
        if proj is not None:
            stations.append(min(max(proj.along, 0.0), length))
    stations.sort()

    anchors: list[float] = []
    for s in stations:
        if not anchors or s - anchors[-1] > tol:
            anchors.append(s)

    positions: list[Point2D] = []
    for a, b in zip(anchors, anchors[1:]):
        if b - a <= limit + tol:
            continue
        along = a + limit
        while along < b - tol:
            positions.append(point_along(beam.start, beam.end, along))
            along += limit
    return positions


def enforce_spans(
    plan: FramingPlan,
    config: LayoutConfig,
    beam_ids: Iterable[str] | None = None,
) -> SpanReport:
    """Insert/remove AUTO columns so no reviewed beam exceeds its limit.

    Args:
        plan: Plan to modify (mutated in place).
        config: Span limits and tolerances.
        beam_ids: Beams under review. Defaults to every beam.

    Returns:
        SpanReport with the ids of added and removed AUTO columns.
    """
    tol = config.structural_tolerance
    report = SpanReport()
    if beam_ids is None:
        review = list(plan.beams.values())
    else:
        review = [plan.beams[i] for i in beam_ids if i in plan.beams]
    if not review:
        return report

    # An AUTO column survives if any beam it lies on wants it, so desire
    # is computed for every beam, not just the reviewed ones.
    desired = {
        beam.global_id: desired_positions(plan, beam, config)
        for beam in plan.beams.values()
    }

    for beam in review:
        for pos in desired[beam.global_id]:
            if plan.find_near(pos, tol) is not None:
                continue
            column = plan.add_column(pos, kind=ColumnKind.AUTO, section=config.column)
            report.added.append(column.global_id)

    reviewed_ids = {b.global_id for b in review}
    for column in list(plan.columns.values()):
        if column.kind != ColumnKind.AUTO or not column.is_active:
            continue
        if column.global_id in report.added:
            continue
        hosts = [
            b for b in plan.beams.values()
            if point_on_segment(column.position, b.start, b.end, tol)
        ]
        if not any(b.global_id in reviewed_ids for b in hosts):
            continue
        wanted = any(
            points_close(column.position, pos, tol)
            for b in hosts
            for pos in desired[b.global_id]
        )
        if not wanted:
            plan.remove_column(column.global_id)
            report.removed.append(column.global_id)

    if report.changed:
        logger.debug(
            "Span enforcement over %d beams: +%d / -%d auto columns",
            len(review), len(report.added), len(report.removed),
        )
    return report


def prune_orphans(plan: FramingPlan, keep: Iterable[str] = ()) -> list[str]:
    """Delete AUTO/TRANSIENT columns that lie on no beam.

    Columns listed in keep are left alone. Returns the removed ids.
    """
    keep = set(keep)
    removed: list[str] = []
    for column in list(plan.columns.values()):
        if column.kind not in (ColumnKind.AUTO, ColumnKind.TRANSIENT):
            continue
        if column.global_id in keep:
            continue
        if not plan.lies_on_any_beam(column):
            plan.remove_column(column.global_id)
            removed.append(column.global_id)
    if removed:
        logger.debug("Pruned %d orphan columns", len(removed))
    return removed


def max_sub_span(plan: FramingPlan, beam: Beam, config: LayoutConfig) -> float:
    """Largest distance between consecutive active columns on a beam."""
    tol = config.structural_tolerance
    stations = [0.0, beam.length]
    for column in plan.columns_on_beam(beam, tol):
        proj = project_onto_segment(column.position, beam.start, beam.end)
        if proj is not None:
            stations.append(min(max(proj.along, 0.0), beam.length))
    stations.sort()
    return max((b - a for a, b in zip(stations, stations[1:])), default=0.0)
