"""Top-level framing model: the column/beam graph of one floor plan.

Columns and beams live in id-keyed tables. Beams reference columns by
id, so suspending, restoring or re-pointing an element is a table
update. Cached beam coordinates are refreshed from the columns after
any column moves.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, Field

from framing_builder.models.elements import (
    AnchorRole,
    Beam,
    Column,
    ColumnActivity,
    ColumnKind,
    ColumnSection,
)
from framing_builder.models.geometry import (
    DEGENERATE_EPS,
    STRUCTURAL_TOLERANCE,
    Point2D,
    distance,
    point_on_segment,
    points_close,
    project_onto_segment,
)
from framing_builder.models.ids import generate_id


class FramingPlan(BaseModel):
    """Columns and beams of a framing layout."""

    global_id: str = Field(default_factory=generate_id, description="IFC GlobalId")
    name: str = Field(default="Untitled Plan", description="Plan name")
    columns: dict[str, Column] = Field(default_factory=dict)
    beams: dict[str, Beam] = Field(default_factory=dict)

    # ── Lookups ───────────────────────────────────────────────────────

    def get_column(self, column_id: str | None) -> Column | None:
        """Find a column by id."""
        if column_id is None:
            return None
        return self.columns.get(column_id)

    def get_beam(self, beam_id: str | None) -> Beam | None:
        """Find a beam by id."""
        if beam_id is None:
            return None
        return self.beams.get(beam_id)

    def active_columns(self) -> list[Column]:
        """Columns taking part in the active graph (suspended ones excluded)."""
        return [c for c in self.columns.values() if c.is_active]

    def visible_columns(self) -> list[Column]:
        """Active columns that are drawn (hidden anchors excluded)."""
        return [c for c in self.columns.values() if c.is_active and not c.hidden]

    def beams_at(self, column_id: str) -> list[Beam]:
        """Beams with column_id as their current start or end."""
        return [
            b for b in self.beams.values()
            if b.start_id == column_id or b.end_id == column_id
        ]

    def find_beam_between(self, a_id: str, b_id: str) -> Beam | None:
        """The beam joining two columns, in either direction."""
        pair = {a_id, b_id}
        return next(
            (b for b in self.beams.values() if {b.start_id, b.end_id} == pair), None
        )

    def find_near(
        self,
        point: Point2D,
        tolerance: float = STRUCTURAL_TOLERANCE,
        predicate: Callable[[Column], bool] | None = None,
    ) -> Column | None:
        """Nearest active column within tolerance of point, optionally filtered."""
        best: Column | None = None
        best_dist = float("inf")
        for column in self.columns.values():
            if not column.is_active:
                continue
            if predicate is not None and not predicate(column):
                continue
            d = distance(column.position, point)
            if d <= tolerance and d < best_dist:
                best, best_dist = column, d
        return best

    def columns_on_beam(
        self,
        beam: Beam,
        tolerance: float = STRUCTURAL_TOLERANCE,
        predicate: Callable[[Column], bool] | None = None,
    ) -> list[Column]:
        """Active columns lying on a beam (endpoints included), ordered from its start."""
        found: list[tuple[float, Column]] = []
        for column in self.columns.values():
            if not column.is_active:
                continue
            if predicate is not None and not predicate(column):
                continue
            proj = project_onto_segment(column.position, beam.start, beam.end)
            if proj is None:
                continue
            if proj.perp <= tolerance and -tolerance <= proj.along <= proj.length + tolerance:
                found.append((proj.along, column))
        found.sort(key=lambda item: item[0])
        return [c for _, c in found]

    def lies_on_any_beam(self, column: Column, tolerance: float = STRUCTURAL_TOLERANCE) -> bool:
        """True if the column is an endpoint of, or lies on, at least one beam."""
        for beam in self.beams.values():
            if column.global_id in (beam.start_id, beam.end_id):
                return True
            if point_on_segment(column.position, beam.start, beam.end, tolerance):
                return True
        return False

    # ── Add elements ──────────────────────────────────────────────────

    def add_column(
        self,
        position: Point2D | tuple[float, float],
        kind: ColumnKind = ColumnKind.USER,
        section: ColumnSection | None = None,
        **fields,
    ) -> Column:
        """Add a column. User columns get their home set to the position."""
        if not isinstance(position, Point2D):
            position = Point2D(x=position[0], y=position[1])
        if kind == ColumnKind.USER and "home" not in fields:
            fields["home"] = Point2D(x=position.x, y=position.y)
        if kind == ColumnKind.ANCHOR:
            fields.setdefault("hidden", True)
            fields.setdefault("anchor_role", AnchorRole.FREE)
        column = Column(
            position=position,
            kind=kind,
            section=section.model_copy() if section is not None else ColumnSection(),
            **fields,
        )
        self.columns[column.global_id] = column
        return column

    def ensure_column(
        self,
        position: Point2D | tuple[float, float],
        tolerance: float = STRUCTURAL_TOLERANCE,
        section: ColumnSection | None = None,
    ) -> Column:
        """A user column at position: an existing one within tolerance, or a new one.

        An AUTO column found there is promoted to a user column, since it
        is now wanted for its own sake rather than by span enforcement.
        """
        if not isinstance(position, Point2D):
            position = Point2D(x=position[0], y=position[1])
        existing = self.find_near(position, tolerance)
        if existing is None:
            return self.add_column(position, section=section)
        if existing.kind == ColumnKind.AUTO:
            existing.kind = ColumnKind.USER
            existing.home = existing.position.model_copy()
        return existing

    def add_beam(self, start_id: str, end_id: str, width: float = 0.15) -> Beam | None:
        """Add a beam between two existing columns.

        Returns None for a degenerate beam (missing column, same column
        twice, zero length). If a beam already joins the two columns, or
        covers the same segment, that beam is returned instead.
        """
        start = self.get_column(start_id)
        end = self.get_column(end_id)
        if start is None or end is None or start_id == end_id:
            return None
        if distance(start.position, end.position) < DEGENERATE_EPS:
            return None
        existing = self.find_beam_between(start_id, end_id)
        if existing is not None:
            return existing
        for beam in self.beams.values():
            if _same_segment(beam, start.position, end.position):
                return beam
        beam = Beam(
            start_id=start_id,
            end_id=end_id,
            start=start.position.model_copy(),
            end=end.position.model_copy(),
            width=width,
        )
        self.beams[beam.global_id] = beam
        return beam

    # ── Remove elements ───────────────────────────────────────────────

    def remove_column(self, column_id: str) -> bool:
        """Remove a column and every beam bearing on it."""
        if column_id not in self.columns:
            return False
        del self.columns[column_id]
        for beam in self.beams_at(column_id):
            del self.beams[beam.global_id]
        return True

    def remove_beam(self, beam_id: str) -> bool:
        """Remove a beam. Its columns stay."""
        return self.beams.pop(beam_id, None) is not None

    # ── Modify elements ───────────────────────────────────────────────

    def refresh_beam_geometry(self) -> list[str]:
        """Recompute cached beam endpoints from the current column positions.

        Beams whose endpoints no longer resolve, or which collapsed onto a
        single node, are deleted. Returns the ids of deleted beams.
        """
        dropped: list[str] = []
        for beam_id, beam in list(self.beams.items()):
            start = self.columns.get(beam.start_id)
            end = self.columns.get(beam.end_id)
            if (
                start is None
                or end is None
                or beam.start_id == beam.end_id
                or distance(start.position, end.position) < DEGENERATE_EPS
            ):
                del self.beams[beam_id]
                dropped.append(beam_id)
                continue
            beam.start = start.position.model_copy()
            beam.end = end.position.model_copy()
        return dropped

    def split_beam(
        self, beam_id: str, column_id: str, tolerance: float = STRUCTURAL_TOLERANCE
    ) -> list[Beam]:
        """Split a beam in two at a column lying on it.

        A column at (or within tolerance of) an existing endpoint leaves
        the beam unchanged. Returns the resulting beam(s); empty if the
        beam or column does not exist or the column is off the beam.
        """
        beam = self.get_beam(beam_id)
        column = self.get_column(column_id)
        if beam is None or column is None:
            return []
        if column_id in (beam.start_id, beam.end_id):
            return [beam]
        if points_close(column.position, beam.start, tolerance) or points_close(
            column.position, beam.end, tolerance
        ):
            return [beam]
        if not point_on_segment(column.position, beam.start, beam.end, tolerance):
            return []
        del self.beams[beam_id]
        first = Beam(
            start_id=beam.start_id,
            end_id=column_id,
            origin_start_id=beam.origin_start_id,
            origin_end_id=column_id,
            start=beam.start.model_copy(),
            end=column.position.model_copy(),
            width=beam.width,
        )
        second = Beam(
            start_id=column_id,
            end_id=beam.end_id,
            origin_start_id=column_id,
            origin_end_id=beam.origin_end_id,
            start=column.position.model_copy(),
            end=beam.end.model_copy(),
            width=beam.width,
        )
        self.beams[first.global_id] = first
        self.beams[second.global_id] = second
        return [first, second]

    def suspend(self, column_id: str, by: str | None) -> None:
        """Take a column out of the active graph, attributed to a stand-in."""
        column = self.columns[column_id]
        column.activity = ColumnActivity.SUSPENDED
        column.suspended_by = by

    def resume(self, column_id: str) -> None:
        """Bring a suspended column back into the active graph."""
        column = self.columns[column_id]
        column.activity = ColumnActivity.ACTIVE
        column.suspended_by = None

    def ensure_tags(self) -> None:
        """Auto-generate tags for elements that don't have one.

        C1, C2... for user and transient columns, CA1... for automatic
        ones, N1... for anchors, B1... for beams.
        """
        prefixes = {
            ColumnKind.USER: "C",
            ColumnKind.TRANSIENT: "C",
            ColumnKind.AUTO: "CA",
            ColumnKind.ANCHOR: "N",
        }
        counters: dict[str, int] = {}
        for column in self.columns.values():
            prefix = prefixes[column.kind]
            counters[prefix] = counters.get(prefix, 0) + 1
            if not column.tag:
                column.tag = f"{prefix}{counters[prefix]}"
        for i, beam in enumerate(self.beams.values(), start=1):
            if not beam.tag:
                beam.tag = f"B{i}"

    # ── Delegating shortcuts ──────────────────────────────────────────

    def validate(self, config=None) -> list:
        """Run the integrity validators. Returns list of errors."""
        from framing_builder.models.config import LayoutConfig
        from framing_builder.validators.integrity import validate_plan

        return validate_plan(self, config or LayoutConfig())

    def segments(self) -> list:
        """Render segments for every beam."""
        from framing_builder.queries.segments import segment_plan

        return segment_plan(self)

    def render(self, path: str | Path, **kwargs) -> Path:
        """Render a 2D plan view to PNG. Returns the output path."""
        from framing_builder.export.planview import render_plan

        return render_plan(self, path, **kwargs)

    # ── Query helpers ─────────────────────────────────────────────────

    def count(self, kind: ColumnKind | None = None, active_only: bool = True) -> int:
        """Number of columns, optionally of one kind."""
        return sum(
            1 for c in self.columns.values()
            if (kind is None or c.kind == kind) and (c.is_active or not active_only)
        )

    def summary(self) -> str:
        """Human-readable summary of the plan."""
        lines = [f"{self.name}"]
        lines.append(
            f"   Columns: {self.count(ColumnKind.USER)} user, "
            f"{self.count(ColumnKind.AUTO)} auto, "
            f"{self.count(ColumnKind.ANCHOR)} anchors"
        )
        total = sum(b.length for b in self.beams.values())
        lines.append(f"   Beams: {len(self.beams)} ({total:.2f} m total)")
        return "\n".join(lines)


def _same_segment(beam: Beam, p1: Point2D, p2: Point2D, tol: float = 1e-4) -> bool:
    """True if the beam spans p1-p2 in either direction."""
    direct = points_close(beam.start, p1, tol) and points_close(beam.end, p2, tol)
    reverse = points_close(beam.start, p2, tol) and points_close(beam.end, p1, tol)
    return direct or reverse
