"""Move sessions: transactional column relocation.

Starting a session puts a TRANSIENT clone on top of every target column,
suspends the original and re-points its beams at the clone. The snapshot
taken right after that, together with each clone's origin, is frozen for
the whole session.

Every pointer move calls ``apply(dx, dy)`` with the *total* delta. The
working plan is rebuilt from the frozen snapshot each time, so the result
depends only on the snapshot and the delta, never on how many events
came before. Expansion, covering and automatic columns therefore undo
themselves when the pointer comes back.

Per delta:
- clones sit at origin + delta
- a clone that left the bounding box through an edge its original sat on
  expands the frame: the original is reactivated, an extension beam joins
  original and clone, and clones of originally connected targets are
  joined to each other (not for the full-border set, which translates
  rigidly)
- other columns on a clone's path are covered: suspended and attributed
  to that clone until the clone has passed them
- beams reattach to the active stand-in of their conceptual endpoints,
  then geometry refresh, span enforcement and orphan pruning

``finalize`` commits: originals that ended suspended (or belong to the
full-border set) are merged into their clones, which become user
columns at their new position. Expansion originals stay and the clone is
kept as an additional column. A covered column is merged into its clone
only when the clone came to rest within snap distance of it; otherwise it
is released and its beams come back.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from framing_builder.models.config import LayoutConfig
from framing_builder.models.elements import Column, ColumnKind
from framing_builder.models.geometry import Point2D, bounding_box, distance, points_close
from framing_builder.models.plan import FramingPlan
from framing_builder.topology.spans import enforce_spans, prune_orphans

logger = logging.getLogger(__name__)

Box = tuple[float, float, float, float]


@dataclass
class MoveSession:
    """An open move transaction.

    Attributes:
        base: Snapshot right after start (clones in place, originals suspended).
        config: Limits and tolerances in force for the session.
        pairs: Original column id -> clone id.
        origins: Clone id -> frozen origin position.
        bbox: Bounding box of the active non-automatic columns before the move.
        full_border: Originals that together span a whole bounding-box edge.
        delta: Last applied total delta.
        expanded: Originals reactivated by the last apply.
        covered: Column id -> covering clone id, from the last apply.
        extension_beams: Beams synthesized by the last apply.
    """

    base: FramingPlan
    config: LayoutConfig
    pairs: dict[str, str]
    origins: dict[str, Point2D]
    bbox: Box | None
    full_border: set[str] = field(default_factory=set)
    delta: tuple[float, float] = (0.0, 0.0)
    expanded: set[str] = field(default_factory=set)
    covered: dict[str, str] = field(default_factory=dict)
    extension_beams: list[str] = field(default_factory=list)

    # ── Start ─────────────────────────────────────────────────────────

    @classmethod
    def start(
        cls,
        plan: FramingPlan,
        target_ids: list[str],
        config: LayoutConfig,
    ) -> MoveSession | None:
        """Open a session over the eligible targets.

        Eligible targets are active, non-transient columns. Returns None
        (and leaves the plan alone) when there are none. The passed plan
        is not modified; call ``apply(0, 0)`` for the session's first frame.
        """
        tol = config.structural_tolerance
        targets: list[Column] = []
        for target_id in dict.fromkeys(target_ids):
            column = plan.get_column(target_id)
            if column is None or not column.is_active or column.kind == ColumnKind.TRANSIENT:
                continue
            targets.append(column)
        if not targets:
            logger.debug("Move session not started: no eligible targets in %s", target_ids)
            return None

        frame = [c for c in plan.visible_columns() if c.kind != ColumnKind.AUTO]
        bbox = bounding_box([c.position for c in frame])
        full_border = _full_border(targets, frame, bbox, tol) if bbox is not None else set()

        base = plan.model_copy(deep=True)
        pairs: dict[str, str] = {}
        origins: dict[str, Point2D] = {}
        for target in targets:
            original = base.columns[target.global_id]
            clone = base.add_column(
                original.position.model_copy(),
                kind=ColumnKind.TRANSIENT,
                section=original.section,
                clone_of=original.global_id,
                hidden=original.hidden,
            )
            base.suspend(original.global_id, by=clone.global_id)
            for beam in base.beams.values():
                if beam.start_id == original.global_id:
                    beam.start_id = clone.global_id
                if beam.end_id == original.global_id:
                    beam.end_id = clone.global_id
            pairs[original.global_id] = clone.global_id
            origins[clone.global_id] = original.position.model_copy()

        logger.debug(
            "Move session started: %d targets, %d full-border", len(pairs), len(full_border)
        )
        return cls(
            base=base,
            config=config,
            pairs=pairs,
            origins=origins,
            bbox=bbox,
            full_border=full_border,
        )

    def clone_for(self, original_id: str) -> str | None:
        return self.pairs.get(original_id)

    # ── Apply delta ───────────────────────────────────────────────────

    def apply(self, dx: float, dy: float) -> FramingPlan:
        """Rebuild the working plan for a total displacement (dx, dy)."""
        plan, expanded, covered, extension = self._frame(dx, dy)
        self.delta = (dx, dy)
        self.expanded = set(expanded)
        self.covered = covered
        self.extension_beams = extension
        return plan

    def _frame(
        self, dx: float, dy: float, covered: dict[str, str] | None = None
    ) -> tuple[FramingPlan, list[str], dict[str, str], list[str]]:
        """One frame from the frozen snapshot. Covering is computed unless given."""
        config = self.config
        plan = self.base.model_copy(deep=True)

        for clone_id, origin in self.origins.items():
            plan.columns[clone_id].position = origin.offset(dx, dy)

        expanded: list[str] = []
        for original_id, clone_id in self.pairs.items():
            if original_id in self.full_border:
                continue
            original = plan.columns[original_id]
            if self._moved_past_edge(original.position, plan.columns[clone_id].position):
                plan.resume(original_id)
                expanded.append(original_id)

        if covered is None:
            covered = self._covering(plan, dx, dy)
        for column_id, clone_id in covered.items():
            plan.suspend(column_id, by=clone_id)

        reattach_beams(plan)
        plan.refresh_beam_geometry()

        extension = self._synthesize_extensions(plan, expanded)
        plan.refresh_beam_geometry()
        drop_duplicate_beams(plan)

        # Covers the extension beams too: a long extension gets its own
        # automatic columns here.
        enforce_spans(plan, config)
        prune_orphans(plan, keep=set(self.origins) | set(self.pairs))
        return plan, expanded, covered, extension

    def _moved_past_edge(self, original: Point2D, clone: Point2D) -> bool:
        """True if the clone left the box through an edge the original sits on."""
        if self.bbox is None:
            return False
        tol = self.config.structural_tolerance
        min_x, min_y, max_x, max_y = self.bbox
        return (
            (abs(original.x - min_x) <= tol and clone.x < min_x - tol)
            or (abs(original.x - max_x) <= tol and clone.x > max_x + tol)
            or (abs(original.y - min_y) <= tol and clone.y < min_y - tol)
            or (abs(original.y - max_y) <= tol and clone.y > max_y + tol)
        )

    def _covering(self, plan: FramingPlan, dx: float, dy: float) -> dict[str, str]:
        """Columns on some clone's path, mapped to the first clone covering them."""
        tol = self.config.structural_tolerance
        if math.hypot(dx, dy) <= tol:
            return {}
        along_x = abs(dx) >= abs(dy)
        step = dx if along_x else dy
        sign = 1.0 if step > 0 else -1.0
        reach = self.config.max_span_x if along_x else self.config.max_span_y

        session_ids = set(self.pairs) | set(self.origins)
        covered: dict[str, str] = {}
        for column in plan.columns.values():
            if column.global_id in session_ids or not column.is_active:
                continue
            if column.kind in (ColumnKind.AUTO, ColumnKind.TRANSIENT) or column.hidden:
                continue
            home = column.reference_point
            for clone_id, origin in self.origins.items():
                current = plan.columns[clone_id].position
                if _covers(origin, current, home, along_x, sign, reach, tol,
                           self.config.snap_tolerance):
                    covered[column.global_id] = clone_id
                    break
        return covered

    def _synthesize_extensions(self, plan: FramingPlan, expanded: list[str]) -> list[str]:
        """Join expanded originals to their clones, and clones of linked originals."""
        width = self.config.beam_width
        created: list[str] = []
        for original_id in expanded:
            beam = plan.add_beam(original_id, self.pairs[original_id], width=width)
            if beam is not None:
                created.append(beam.global_id)
        for i, a in enumerate(expanded):
            for b in expanded[i + 1:]:
                if not _originally_linked(self.base, a, b):
                    continue
                beam = plan.add_beam(self.pairs[a], self.pairs[b], width=width)
                if beam is not None and beam.global_id not in created:
                    created.append(beam.global_id)
        return created

    # ── Finalize ──────────────────────────────────────────────────────

    def finalize(self, plan: FramingPlan) -> FramingPlan:
        """Commit the session's last frame. Returns the committed plan."""
        tol = self.config.structural_tolerance
        snap = self.config.snap_tolerance

        # A covered column is merged only when its clone came to rest on it;
        # the others are released with their beams.
        merged = {
            column_id: clone_id
            for column_id, clone_id in self.covered.items()
            if column_id in plan.columns
            and clone_id in plan.columns
            and distance(
                plan.columns[clone_id].position, plan.columns[column_id].reference_point
            ) <= snap
        }
        if merged != self.covered:
            plan = self._frame(*self.delta, covered=merged)[0]
        else:
            plan = plan.model_copy(deep=True)

        for original_id, clone_id in self.pairs.items():
            original = plan.get_column(original_id)
            clone = plan.get_column(clone_id)
            if clone is None:
                if original is not None:
                    plan.resume(original_id)
                continue
            if original is None:
                _promote(clone, None)
                continue
            if not original.is_active or original_id in self.full_border:
                retarget_origins(plan, original_id, clone_id)
                plan.remove_column(original_id)
                _promote(clone, original)
            elif points_close(original.position, clone.position, tol):
                # The original simply resumes.
                plan.remove_column(clone_id)
            else:
                _promote(clone, original)

        for column_id, clone_id in merged.items():
            if column_id in plan.columns and clone_id in plan.columns:
                retarget_origins(plan, column_id, clone_id)
                plan.remove_column(column_id)

        for beam in plan.beams.values():
            beam.origin_start_id = beam.start_id
            beam.origin_end_id = beam.end_id
        plan.refresh_beam_geometry()
        drop_duplicate_beams(plan)
        enforce_spans(plan, self.config)
        prune_orphans(plan)

        logger.debug(
            "Move session finalized at delta (%.3f, %.3f): %d moved, %d expanded, %d merged",
            self.delta[0], self.delta[1], len(self.pairs), len(self.expanded), len(merged),
        )
        return plan


# ── Helpers ──────────────────────────────────────────────────────────


def _full_border(
    targets: list[Column], frame: list[Column], bbox: Box, tol: float
) -> set[str]:
    """Targets that make up a whole bounding-box edge.

    An edge counts only when the targets reach both of its ends and every
    frame column standing on it is a target.
    """
    min_x, min_y, max_x, max_y = bbox
    edges = [
        (lambda p: abs(p.x - min_x) <= tol, lambda p: p.y, min_y, max_y),
        (lambda p: abs(p.x - max_x) <= tol, lambda p: p.y, min_y, max_y),
        (lambda p: abs(p.y - min_y) <= tol, lambda p: p.x, min_x, max_x),
        (lambda p: abs(p.y - max_y) <= tol, lambda p: p.x, min_x, max_x),
    ]
    result: set[str] = set()
    for on_edge, coord, lo, hi in edges:
        moved = [t for t in targets if on_edge(t.position)]
        if not moved:
            continue
        moved_ids = {t.global_id for t in moved}
        if any(on_edge(c.position) and c.global_id not in moved_ids for c in frame):
            continue
        values = [coord(t.position) for t in moved]
        if min(values) <= lo + tol and max(values) >= hi - tol:
            result.update(t.global_id for t in moved)
    return result


def _covers(
    origin: Point2D,
    current: Point2D,
    home: Point2D,
    along_x: bool,
    sign: float,
    reach: float,
    tol: float,
    snap: float,
) -> bool:
    """Whether a clone moving from origin to current covers a column at home.

    A column collinear with the move (on the dominant axis) is covered
    when it lies ahead of the origin within one span limit and the clone
    has not yet passed it by more than tol. Any other column is covered
    only while the clone is within snap distance of it.
    """
    a0, a1, h = (origin.x, current.x, home.x) if along_x else (origin.y, current.y, home.y)
    offset = abs(home.y - origin.y) if along_x else abs(home.x - origin.x)
    if offset <= tol:
        ahead = sign * (h - a0)
        return tol < ahead <= reach + tol and sign * (a1 - h) <= tol
    return distance(current, home) <= snap


def _originally_linked(base: FramingPlan, a: str, b: str) -> bool:
    pair = {a, b}
    return any(
        {beam.origin_start_id, beam.origin_end_id} == pair for beam in base.beams.values()
    )


def _promote(clone: Column, original: Column | None) -> None:
    """Turn a clone into a permanent column at its current position."""
    clone.clone_of = None
    if original is not None and original.kind == ColumnKind.ANCHOR:
        clone.kind = ColumnKind.ANCHOR
        clone.anchor_role = original.anchor_role
        clone.hidden = original.hidden
        clone.home = None
        return
    clone.kind = ColumnKind.USER
    clone.hidden = False
    clone.home = clone.position.model_copy()


def resolve_active(plan: FramingPlan, column_id: str) -> str | None:
    """Follow suspension links from a column to the active one standing in for it."""
    seen: set[str] = set()
    current: str | None = column_id
    while current is not None and current not in seen:
        seen.add(current)
        column = plan.columns.get(current)
        if column is None:
            return None
        if column.is_active:
            return current
        current = column.suspended_by
    return None


def reattach_beams(plan: FramingPlan) -> None:
    """Point every beam at the active stand-ins of its conceptual endpoints.

    Beams whose ends cannot be resolved, or resolve to the same column,
    are dropped.
    """
    for beam_id, beam in list(plan.beams.items()):
        start = resolve_active(plan, beam.origin_start_id) or resolve_active(plan, beam.start_id)
        end = resolve_active(plan, beam.origin_end_id) or resolve_active(plan, beam.end_id)
        if start is None or end is None or start == end:
            del plan.beams[beam_id]
            continue
        beam.start_id = start
        beam.end_id = end


def retarget_origins(plan: FramingPlan, old_id: str, new_id: str) -> None:
    """Rewrite conceptual endpoints from one column to another."""
    for beam in plan.beams.values():
        if beam.origin_start_id == old_id:
            beam.origin_start_id = new_id
        if beam.origin_end_id == old_id:
            beam.origin_end_id = new_id
        if beam.start_id == old_id:
            beam.start_id = new_id
        if beam.end_id == old_id:
            beam.end_id = new_id


def drop_duplicate_beams(plan: FramingPlan) -> list[str]:
    """Delete beams joining a column pair that an earlier beam already joins."""
    seen: set[frozenset[str]] = set()
    dropped: list[str] = []
    for beam_id, beam in list(plan.beams.items()):
        key = frozenset((beam.start_id, beam.end_id))
        if key in seen:
            del plan.beams[beam_id]
            dropped.append(beam_id)
            continue
        seen.add(key)
    return dropped
