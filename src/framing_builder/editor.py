"""Interactive editing facade.

LayoutEditor owns the plan, the configuration, the selection and the
single open move session. Every edit runs on a deep copy of the plan and
replaces ``editor.plan`` only when it succeeds, so a failed edit leaves
the plan exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from framing_builder.generators.grid import GridResult, generate_polygon_grid
from framing_builder.generators.perimeter import PerimeterResult, draw_polyline, draw_rectangle
from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import Beam, Column
from framing_builder.models.geometry import Point2D
from framing_builder.models.plan import FramingPlan
from framing_builder.queries.segments import BeamSegment, segment_plan
from framing_builder.topology import supports
from framing_builder.topology.move import MoveSession
from framing_builder.topology.spans import enforce_spans, prune_orphans

logger = logging.getLogger(__name__)

T = TypeVar("T")

PointLike = Point2D | tuple[float, float]


class AlignMode(str, Enum):
    """How a newly inserted column lines up with the previous one."""

    FREE = "free"
    HORIZONTAL = "horizontal"  # keep the Y of the last inserted column
    VERTICAL = "vertical"  # keep the X of the last inserted column


def _point(p: PointLike) -> Point2D:
    if isinstance(p, Point2D):
        return p
    return Point2D(x=float(p[0]), y=float(p[1]))


class LayoutEditor:
    """Editing session over one framing plan."""

    def __init__(self, plan: FramingPlan | None = None, config: LayoutConfig | None = None):
        self.plan = plan or FramingPlan()
        self.config = config or LayoutConfig()
        self.selection: list[str] = []
        self.align_mode = AlignMode.FREE
        self.last_inserted_id: str | None = None
        self.session: MoveSession | None = None

    # ── Transactions ──────────────────────────────────────────────────

    def _edit(self, operation: Callable[[FramingPlan], T]) -> T:
        """Run operation on a copy; commit unless it reports no change.

        None, False and empty results count as no change. An open move
        session is finished first.
        """
        if self.session is not None:
            self.finish_move()
        working = self.plan.model_copy(deep=True)
        result = operation(working)
        if (
            result is None
            or result is False
            or (isinstance(result, (PerimeterResult, GridResult)) and not _changed(result))
        ):
            logger.debug("Edit made no change; plan kept")
            return result
        self.plan = working
        self._prune_selection()
        return result

    def _prune_selection(self) -> None:
        self.selection = [
            i for i in self.selection
            if i in self.plan.columns and self.plan.columns[i].is_active
        ]

    # ── Columns ───────────────────────────────────────────────────────

    def aligned_point(self, point: PointLike) -> Point2D:
        """Apply the align mode to a raw insertion point."""
        point = _point(point)
        last = self.plan.get_column(self.last_inserted_id)
        if last is None or self.align_mode == AlignMode.FREE:
            return point
        if self.align_mode == AlignMode.HORIZONTAL:
            return Point2D(x=point.x, y=last.position.y)
        return Point2D(x=last.position.x, y=point.y)

    def insert_column(self, point: PointLike) -> Column:
        """Insert a user column, or return the active column within snap distance."""
        target = self.aligned_point(point)

        def op(plan: FramingPlan) -> Column:
            column = plan.ensure_column(
                target, self.config.snap_tolerance, section=self.config.column
            )
            enforce_spans(plan, self.config)
            return column

        column = self._edit(op)
        self.last_inserted_id = column.global_id
        return self.plan.columns.get(column.global_id, column)

    def delete_column(self, column_id: str) -> bool:
        """Delete a column and its beams, then tidy up automatic columns."""

        def op(plan: FramingPlan) -> bool:
            if not plan.remove_column(column_id):
                return False
            prune_orphans(plan)
            enforce_spans(plan, self.config)
            return True

        deleted = self._edit(op)
        if deleted and self.last_inserted_id == column_id:
            self.last_inserted_id = None
        return deleted

    # ── Beams ─────────────────────────────────────────────────────────

    def draw_beam(self, p1: PointLike, p2: PointLike, width: float | None = None) -> Beam | None:
        """Draw a beam between two points, snapping ends onto nearby columns.

        Returns None when both ends land on the same column.
        """
        a, b = _point(p1), _point(p2)
        snap = self.config.snap_tolerance

        def op(plan: FramingPlan) -> Beam | None:
            start = plan.ensure_column(a, snap, section=self.config.column)
            end = plan.ensure_column(b, snap, section=self.config.column)
            beam = plan.add_beam(
                start.global_id, end.global_id, width=width or self.config.beam_width
            )
            if beam is None:
                return None
            enforce_spans(plan, self.config, [beam.global_id])
            return beam

        return self._edit(op)

    def draw_rectangle(self, corner: PointLike, opposite: PointLike, fill: bool = True) -> PerimeterResult:
        """Four perimeter beams from two opposite corners, grid inside when fill."""
        return self._edit(lambda plan: draw_rectangle(
            plan, _point(corner), _point(opposite), self.config,
            fill=fill, snap=self.config.snap_tolerance,
        ))

    def draw_polyline(
        self, points: list[PointLike], close: bool = True, fill: bool = True
    ) -> PerimeterResult:
        """Beams through consecutive points; closed outlines are filled with the grid."""
        return self._edit(lambda plan: draw_polyline(
            plan, [_point(p) for p in points], self.config,
            close=close, fill=fill, snap=self.config.snap_tolerance,
        ))

    def fill_polygon(self, vertices: list[PointLike], contour: bool = True) -> GridResult:
        """Polygon grid over an outline, without perimeter beams of its own."""
        return self._edit(lambda plan: generate_polygon_grid(
            plan, [_point(v) for v in vertices], self.config, contour=contour,
        ))

    def set_beam_width(self, beam_id: str, width: float) -> Beam | None:
        """Change a beam's width. Its height stays span / 10."""
        if width <= 0:
            raise ValueError(f"Beam width must be positive, got {width}")

        def op(plan: FramingPlan) -> Beam | None:
            beam = plan.get_beam(beam_id)
            if beam is None:
                return None
            beam.width = width
            return beam

        return self._edit(op)

    def link_support(self, dependent_id: str, support_id: str, angle: float = 90.0) -> Column | None:
        """Hang one beam from another. None if they do not meet."""
        return self._edit(lambda plan: supports.link_support(
            plan, dependent_id, support_id, self.config, angle
        ))

    def split_beam_at(self, beam_id: str, point: PointLike) -> Column | None:
        """Split a beam at a point on it with a hidden anchor."""
        return self._edit(lambda plan: supports.split_beam_at(
            plan, beam_id, _point(point), self.config
        ))

    # ── Selection ─────────────────────────────────────────────────────

    def select(self, column_ids: list[str], additive: bool = False) -> list[str]:
        """Select active columns. Unknown or suspended ids are ignored."""
        chosen = [] if not additive else list(self.selection)
        for column_id in column_ids:
            column = self.plan.get_column(column_id)
            if column is None or not column.is_active or column_id in chosen:
                continue
            chosen.append(column_id)
        self.selection = chosen
        return chosen

    def select_near(self, point: PointLike, additive: bool = False) -> Column | None:
        """Select the active column within snap distance of a point."""
        column = self.plan.find_near(_point(point), self.config.snap_tolerance)
        if column is not None:
            self.select([column.global_id], additive=additive)
        return column

    def clear_selection(self) -> None:
        self.selection = []

    # ── Move session ──────────────────────────────────────────────────

    def start_move(self, column_ids: list[str] | None = None) -> MoveSession | None:
        """Open a move session over the given columns (default: the selection).

        Only one session is open at a time; while one is, it is returned.
        """
        if self.session is not None:
            return self.session
        targets = list(column_ids) if column_ids is not None else list(self.selection)
        session = MoveSession.start(self.plan, targets, self.config)
        if session is None:
            return None
        self.session = session
        self.plan = session.apply(0.0, 0.0)
        return session

    def update_move(self, dx: float, dy: float) -> FramingPlan | None:
        """Show the plan for a total displacement since the session started."""
        if self.session is None:
            return None
        self.plan = self.session.apply(dx, dy)
        return self.plan

    def finish_move(self) -> FramingPlan | None:
        """Commit the open session. Clears the session and the selection."""
        if self.session is None:
            return None
        session, self.session = self.session, None
        self.plan = session.finalize(self.plan)
        self.selection = []
        return self.plan

    def move(self, column_ids: list[str], dx: float, dy: float) -> FramingPlan | None:
        """Start, displace and finish in one call."""
        if self.start_move(column_ids) is None:
            return None
        self.update_move(dx, dy)
        return self.finish_move()

    @property
    def moving(self) -> bool:
        return self.session is not None

    # ── Queries ───────────────────────────────────────────────────────

    def segments(self) -> list[BeamSegment]:
        return segment_plan(self.plan)

    def validate(self) -> list:
        return self.plan.validate(self.config)


def _changed(result: PerimeterResult | GridResult) -> bool:
    if isinstance(result, GridResult):
        return bool(result.column_ids or result.beam_ids)
    return bool(result.beam_ids or (result.grid is not None and _changed(result.grid)))
