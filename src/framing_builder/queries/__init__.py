"""Read-only plan queries.

- segments: beam segmentation at the columns standing on each beam
"""

from framing_builder.queries.segments import (
    BeamSegment,
    aligned_columns,
    column_span,
    segment_beam,
    segment_plan,
)

__all__ = [
    "BeamSegment",
    "aligned_columns",
    "column_span",
    "segment_beam",
    "segment_plan",
]
