"""Perimeter beam drawing.

Rectangle and polyline outlines: beams along the outline edges, and
the polygon grid inside them. When the outline is filled, the grid is
laid first and each edge is then drawn as a chain of beams through the
nodes standing on it, so edge beams never overlap grid beams.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from framing_builder.generators.grid import GridResult, generate_polygon_grid
from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import ColumnKind
from framing_builder.models.geometry import Point2D, distance, project_onto_segment
from framing_builder.models.plan import FramingPlan
from framing_builder.topology.spans import enforce_spans


@dataclass
class PerimeterResult:
    """Outline beams plus the grid generated inside them (if any)."""

    beam_ids: list[str] = field(default_factory=list)
    grid: GridResult | None = None


def _edge_nodes(plan: FramingPlan, a_id: str, b_id: str, tol: float) -> list[str]:
    """Non-automatic active columns on the edge a-b, ordered from a."""
    a = plan.columns[a_id].position
    b = plan.columns[b_id].position
    stops: list[tuple[float, str]] = []
    for column in plan.active_columns():
        if column.kind == ColumnKind.AUTO:
            continue
        proj = project_onto_segment(column.position, a, b)
        if proj is None:
            continue
        if proj.perp <= tol and -tol <= proj.along <= proj.length + tol:
            stops.append((proj.along, column.global_id))
    stops.sort()
    ids: list[str] = []
    for _, column_id in stops:
        if column_id not in ids:
            ids.append(column_id)
    return ids


def draw_polyline(
    plan: FramingPlan,
    points: list[Point2D],
    config: LayoutConfig,
    close: bool = True,
    fill: bool = True,
    snap: float | None = None,
) -> PerimeterResult:
    """Draw beams through a sequence of points.

    With close=True the last point is joined back to the first (unless
    they already coincide). A closed outline of three or more points is
    filled with the polygon grid when fill=True. Fewer than two points
    draw nothing.
    """
    result = PerimeterResult()
    if len(points) < 2:
        return result
    tol = config.structural_tolerance
    snap = tol if snap is None else snap

    outline = list(points)
    if close and len(outline) > 2 and distance(outline[0], outline[-1]) <= tol:
        outline = outline[:-1]

    node_ids = [
        plan.ensure_column(p, snap, section=config.column).global_id for p in outline
    ]
    edges = list(zip(node_ids, node_ids[1:]))
    if close and len(node_ids) > 2:
        edges.append((node_ids[-1], node_ids[0]))

    filled = close and fill and len(node_ids) >= 3
    if filled:
        vertices = [plan.columns[i].position for i in node_ids]
        result.grid = generate_polygon_grid(plan, vertices, config)

    for a, b in edges:
        chain = _edge_nodes(plan, a, b, tol) if filled else [a, b]
        for start_id, end_id in zip(chain, chain[1:]):
            beam = plan.add_beam(start_id, end_id, width=config.beam_width)
            if beam is not None and beam.global_id not in result.beam_ids:
                result.beam_ids.append(beam.global_id)

    enforce_spans(plan, config, result.beam_ids)
    return result


def draw_rectangle(
    plan: FramingPlan,
    corner: Point2D,
    opposite: Point2D,
    config: LayoutConfig,
    fill: bool = True,
    snap: float | None = None,
) -> PerimeterResult:
    """Draw the four perimeter beams of an axis-aligned rectangle.

    The corners may be given in any order. A rectangle with zero width
    or depth draws nothing.
    """
    tol = config.structural_tolerance
    x0, x1 = sorted((corner.x, opposite.x))
    y0, y1 = sorted((corner.y, opposite.y))
    if x1 - x0 <= tol or y1 - y0 <= tol:
        return PerimeterResult()
    outline = [
        Point2D(x=x0, y=y0),
        Point2D(x=x1, y=y0),
        Point2D(x=x1, y=y1),
        Point2D(x=x0, y=y1),
    ]
    return draw_polyline(plan, outline, config, close=True, fill=fill, snap=snap)
