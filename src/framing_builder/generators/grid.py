"""Polygon grid generator.

Given a closed outline, fills it with a column grid whose spacing stays
within the maximum spans, and joins neighbouring grid columns with
beams. Concave outlines are handled by only joining two grid points
when the midpoint of the connection is inside the outline.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from framing_builder.models.config import LayoutConfig
from framing_builder.models.geometry import DEGENERATE_EPS, Point2D, Polygon2D
from framing_builder.models.plan import FramingPlan
from framing_builder.topology.spans import enforce_spans

logger = logging.getLogger(__name__)


@dataclass
class GridResult:
    """Grid lines used and the columns/beams the grid consists of."""

    xs: list[float] = field(default_factory=list)
    ys: list[float] = field(default_factory=list)
    column_ids: list[str] = field(default_factory=list)
    beam_ids: list[str] = field(default_factory=list)


def grid_positions(lo: float, hi: float, max_span: float, tol: float = 1e-6) -> list[float]:
    """Evenly spaced positions from lo to hi with no gap above max_span.

    The last position is exactly hi.
    """
    extent = hi - lo
    if extent <= tol:
        return [lo]
    if max_span <= 0:
        return [lo, hi]
    n = max(1, math.ceil(extent / max_span - 1e-9))
    positions = np.linspace(lo, hi, n + 1).tolist()
    positions[-1] = hi
    return positions


def merge_lines(lines: list[float], extra: list[float], tol: float) -> list[float]:
    """Merge extra coordinates into grid lines.

    Extra coordinates win over grid lines within tol of them, so the
    grid snaps onto polygon corners.
    """
    merged: list[float] = []
    for value in sorted(extra):
        if not merged or value - merged[-1] > tol:
            merged.append(value)
    for value in lines:
        if all(abs(value - m) > tol for m in merged):
            merged.append(value)
    return sorted(merged)


def generate_polygon_grid(
    plan: FramingPlan,
    vertices: list[Point2D],
    config: LayoutConfig,
    contour: bool = True,
) -> GridResult:
    """Fill a polygon with a column/beam grid.

    Args:
        plan: Plan to modify (mutated in place).
        vertices: Ordered outline vertices (at least 3, not repeated at the end).
        config: Maximum spans, default section and beam width, tolerances.
        contour: Also put grid lines through every polygon vertex.

    Returns:
        GridResult; empty when the outline has fewer than 3 vertices or
        no area.
    """
    if len(vertices) < 3:
        return GridResult()
    outline = Polygon2D(vertices=list(vertices))
    if outline.area <= DEGENERATE_EPS:
        logger.debug("Polygon grid skipped: outline has no area")
        return GridResult()
    tol = config.structural_tolerance
    min_x, min_y, max_x, max_y = outline.bounds

    xs = grid_positions(min_x, max_x, config.max_span_x)
    ys = grid_positions(min_y, max_y, config.max_span_y)
    if contour:
        xs = merge_lines(xs, [v.x for v in vertices], tol)
        ys = merge_lines(ys, [v.y for v in vertices], tol)

    nodes: dict[tuple[int, int], str] = {}
    for i, x in enumerate(xs):
        for j, y in enumerate(ys):
            point = Point2D(x=x, y=y)
            if not outline.contains(point, tol):
                continue
            column = plan.ensure_column(point, tol, section=config.column)
            nodes[(i, j)] = column.global_id

    beam_ids: list[str] = []

    def connect(a: tuple[int, int], b: tuple[int, int]) -> None:
        if a not in nodes or b not in nodes:
            return
        mid = Point2D(x=(xs[a[0]] + xs[b[0]]) / 2, y=(ys[a[1]] + ys[b[1]]) / 2)
        if not outline.contains(mid, tol):
            return
        beam = plan.add_beam(nodes[a], nodes[b], width=config.beam_width)
        if beam is not None and beam.global_id not in beam_ids:
            beam_ids.append(beam.global_id)

    for j in range(len(ys)):
        for i in range(len(xs) - 1):
            connect((i, j), (i + 1, j))
    for i in range(len(xs)):
        for j in range(len(ys) - 1):
            connect((i, j), (i, j + 1))

    enforce_spans(plan, config, beam_ids)
    logger.debug(
        "Polygon grid %dx%d lines: %d columns, %d beams",
        len(xs), len(ys), len(nodes), len(beam_ids),
    )
    return GridResult(
        xs=xs,
        ys=ys,
        column_ids=list(dict.fromkeys(nodes.values())),
        beam_ids=beam_ids,
    )
