"""Framing data models."""

from framing_builder.models.ids import generate_id
from framing_builder.models.geometry import (
    SNAP_TOLERANCE,
    STRUCTURAL_TOLERANCE,
    Point2D,
    Polygon2D,
)
from framing_builder.models.elements import (
    AnchorRole,
    Beam,
    Column,
    ColumnActivity,
    ColumnKind,
    ColumnSection,
    SectionShape,
)
from framing_builder.models.config import LayoutConfig
from framing_builder.models.plan import FramingPlan

__all__ = [
    "generate_id",
    "SNAP_TOLERANCE",
    "STRUCTURAL_TOLERANCE",
    "Point2D",
    "Polygon2D",
    "AnchorRole",
    "Beam",
    "Column",
    "ColumnActivity",
    "ColumnKind",
    "ColumnSection",
    "SectionShape",
    "LayoutConfig",
    "FramingPlan",
]
