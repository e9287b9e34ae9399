"""Beam segmentation for drawing.

Splits each beam into the sub-spans between the columns standing on it.
Read-only: nothing here mutates the plan.
"""

from __future__ import annotations

from dataclasses import dataclass

from framing_builder.models.elements import Beam, Column
from framing_builder.models.geometry import Point2D, project_onto_segment
from framing_builder.models.plan import FramingPlan

# Columns up to this far off the beam axis count as standing on it.
PERPENDICULAR_TOLERANCE = 0.05
# Columns up to this far past either beam end still count.
LONGITUDINAL_MARGIN = 0.05
MIN_SEGMENT = 1e-4


@dataclass
class BeamSegment:
    """A drawable piece of a beam between two consecutive columns."""

    segment_id: str
    beam_id: str
    start: Point2D
    end: Point2D
    width: float

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def height(self) -> float:
        """Section depth of the piece, span / 10."""
        return self.length / 10.0


def aligned_columns(plan: FramingPlan, beam: Beam) -> list[tuple[float, Column]]:
    """Active columns on a beam as (distance from start, column), sorted."""
    found: list[tuple[float, Column]] = []
    for column in plan.active_columns():
        proj = project_onto_segment(column.position, beam.start, beam.end)
        if proj is None:
            return []
        if proj.perp > PERPENDICULAR_TOLERANCE:
            continue
        if -LONGITUDINAL_MARGIN <= proj.along <= proj.length + LONGITUDINAL_MARGIN:
            found.append((proj.along, column))
    found.sort(key=lambda item: item[0])
    return found


def _whole(beam: Beam) -> BeamSegment:
    return BeamSegment(
        segment_id=f"{beam.global_id}-0",
        beam_id=beam.global_id,
        start=beam.start.model_copy(),
        end=beam.end.model_copy(),
        width=beam.width,
    )


def segment_beam(plan: FramingPlan, beam: Beam) -> list[BeamSegment]:
    """Split a beam at the columns standing on it.

    With fewer than two columns on the beam the whole beam comes back
    as a single segment.
    """
    columns = aligned_columns(plan, beam)
    if len(columns) < 2:
        return [_whole(beam)]

    length = beam.length
    segments: list[BeamSegment] = []
    for i, ((t1, _), (t2, _)) in enumerate(zip(columns, columns[1:])):
        t1 = max(t1, 0.0)
        t2 = min(t2, length)
        if t2 - t1 < MIN_SEGMENT:
            continue
        segments.append(BeamSegment(
            segment_id=f"{beam.global_id}-{i}",
            beam_id=beam.global_id,
            start=Point2D(
                x=beam.start.x + beam.dx * (t1 / length),
                y=beam.start.y + beam.dy * (t1 / length),
            ),
            end=Point2D(
                x=beam.start.x + beam.dx * (t2 / length),
                y=beam.start.y + beam.dy * (t2 / length),
            ),
            width=beam.width,
        ))
    return segments or [_whole(beam)]


def segment_plan(plan: FramingPlan) -> list[BeamSegment]:
    """Segments for every beam in the plan."""
    return [seg for beam in plan.beams.values() for seg in segment_beam(plan, beam)]


def column_span(plan: FramingPlan, beam: Beam) -> float | None:
    """Distance between the first and last column on a beam.

    None when fewer than two columns stand on it.
    """
    columns = aligned_columns(plan, beam)
    if len(columns) < 2:
        return None
    return columns[-1][0] - columns[0][0]
