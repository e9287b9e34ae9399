"""Beam-on-beam supports.

A dependent beam that ends near another beam is hung from it: the
support beam gets a node where the dependent beam meets it, is split
there, and the dependent end is re-pointed at that node.
"""

from __future__ import annotations

import logging

from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import AnchorRole, Column, ColumnKind
from framing_builder.models.geometry import (
    Point2D,
    distance,
    distance_to_segment,
    intersect_ray,
    point_on_segment,
    project_onto_segment,
    rotate,
)
from framing_builder.models.plan import FramingPlan
from framing_builder.topology.spans import enforce_spans, prune_orphans

logger = logging.getLogger(__name__)


def support_point(
    plan: FramingPlan,
    dependent_id: str,
    support_id: str,
    angle: float = 90.0,
    slack: float = 0.02,
) -> tuple[str, Point2D] | None:
    """Where a dependent beam meets its support.

    Casts rays from the dependent end closest to the support, at the
    support direction rotated by +angle and -angle, and keeps the nearer
    hit on the support segment.

    Returns:
        ("start" | "end", point) or None when nothing is hit.
    """
    dependent = plan.get_beam(dependent_id)
    support = plan.get_beam(support_id)
    if dependent is None or support is None or dependent_id == support_id:
        return None
    length = support.length
    if length <= 0:
        return None

    d_start = distance_to_segment(dependent.start, support.start, support.end)
    d_end = distance_to_segment(dependent.end, support.start, support.end)
    which = "start" if d_start <= d_end else "end"
    origin = dependent.start if which == "start" else dependent.end

    ux, uy = support.dx / length, support.dy / length
    hits: list[Point2D] = []
    for sign in (1.0, -1.0):
        direction = rotate(ux, uy, sign * angle)
        hit = intersect_ray(origin, direction, support.start, support.end, slack=slack)
        if hit is not None:
            hits.append(hit)
    if not hits:
        return None
    point = min(hits, key=lambda h: distance(origin, h))

    # Overshoot within slack lands on the nearest support end.
    proj = project_onto_segment(point, support.start, support.end)
    if proj is not None and proj.along <= 0:
        point = support.start.model_copy()
    elif proj is not None and proj.along >= proj.length:
        point = support.end.model_copy()
    return which, point


def link_support(
    plan: FramingPlan,
    dependent_id: str,
    support_id: str,
    config: LayoutConfig,
    angle: float = 90.0,
) -> Column | None:
    """Hang a dependent beam from a support beam.

    Args:
        plan: Plan to modify (mutated in place).
        dependent_id: Beam whose end is moved onto the support.
        support_id: Beam that receives the new node.
        config: Tolerances and span limits.
        angle: Angle between support and dependent beam, degrees.

    Returns:
        The node column on the support beam, or None if the beams do not
        meet (plan unchanged).
    """
    tol = config.structural_tolerance
    found = support_point(plan, dependent_id, support_id, angle, slack=tol)
    if found is None:
        return None
    which, point = found
    support = plan.beams[support_id]

    anchor = plan.find_near(
        point, tol,
        predicate=lambda c: point_on_segment(c.position, support.start, support.end, tol),
    )
    if anchor is None:
        anchor = plan.add_column(
            point,
            kind=ColumnKind.ANCHOR,
            section=config.column,
            anchor_role=AnchorRole.SUPPORT,
        )
        logger.debug("Support anchor %s at (%.3f, %.3f)", anchor.global_id, point.x, point.y)
    elif anchor.kind == ColumnKind.AUTO:
        # A real column already stands here; it now carries a beam end.
        anchor.kind = ColumnKind.USER
        anchor.home = anchor.position.model_copy()

    plan.split_beam(support_id, anchor.global_id, tol)

    dependent = plan.beams[dependent_id]
    if which == "start":
        dependent.start_id = anchor.global_id
        dependent.origin_start_id = anchor.global_id
    else:
        dependent.end_id = anchor.global_id
        dependent.origin_end_id = anchor.global_id

    plan.refresh_beam_geometry()
    enforce_spans(plan, config)
    prune_orphans(plan)
    return anchor


def split_beam_at(
    plan: FramingPlan,
    beam_id: str,
    point: Point2D,
    config: LayoutConfig,
) -> Column | None:
    """Split a beam at a point on it with a hidden FREE anchor.

    Reuses a column already at the point. Returns None if the point is
    off the beam.
    """
    tol = config.structural_tolerance
    beam = plan.get_beam(beam_id)
    if beam is None or not point_on_segment(point, beam.start, beam.end, tol):
        return None
    proj = project_onto_segment(point, beam.start, beam.end)
    if proj is not None:
        point = Point2D(
            x=beam.start.x + beam.dx * min(max(proj.t, 0.0), 1.0),
            y=beam.start.y + beam.dy * min(max(proj.t, 0.0), 1.0),
        )
    node = plan.find_near(point, tol)
    if node is None:
        node = plan.add_column(
            point, kind=ColumnKind.ANCHOR, section=config.column,
            anchor_role=AnchorRole.FREE,
        )
    elif node.kind == ColumnKind.AUTO:
        node.kind = ColumnKind.USER
        node.home = node.position.model_copy()
    plan.split_beam(beam_id, node.global_id, tol)
    plan.refresh_beam_geometry()
    enforce_spans(plan, config)
    prune_orphans(plan)
    return node
