"""Framing elements: columns and beams.

Element IDs use IFC-compatible GlobalIds (22-char compressed GUIDs).
Beams reference their end columns by id; all topology lives in those
references, the cached beam coordinates are derived from the columns.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from framing_builder.models.geometry import Point2D
from framing_builder.models.ids import generate_id


class SectionShape(str, Enum):
    """Column cross-section shape."""

    RECTANGULAR = "rectangular"
    CIRCULAR = "circular"


class ColumnKind(str, Enum):
    """Who owns a column's existence.

    USER: placed explicitly (click, beam endpoint, grid node); persists until deleted
    AUTO: intermediate support inserted by span enforcement
    TRANSIENT: stand-in clone that exists only while a move session is open
    ANCHOR: hidden node at a beam-on-beam intersection or beam split
    """

    USER = "user"
    AUTO = "auto"
    TRANSIENT = "transient"
    ANCHOR = "anchor"


class ColumnActivity(str, Enum):
    """Whether a column takes part in the active graph."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class AnchorRole(str, Enum):
    """FREE: plain beam split point. SUPPORT: carries a dependent beam."""

    FREE = "free"
    SUPPORT = "support"


class ColumnSection(BaseModel):
    """Column cross-section and height.

    Rectangular sections use width x length, circular ones use diameter.
    """

    shape: SectionShape = SectionShape.RECTANGULAR
    width: float = Field(default=0.3, gt=0, description="Section width in meters")
    length: float = Field(default=0.4, gt=0, description="Section length in meters")
    diameter: float = Field(default=0.4, gt=0, description="Circular section diameter in meters")
    height: float = Field(default=3.0, gt=0, description="Column height in meters")

    @property
    def footprint(self) -> tuple[float, float]:
        """Plan extent (dx, dy) of the section."""
        if self.shape == SectionShape.CIRCULAR:
            return (self.diameter, self.diameter)
        return (self.width, self.length)


class Column(BaseModel):
    """A vertical support at a plan position."""

    global_id: str = Field(default_factory=generate_id, description="IFC GlobalId")
    tag: str = Field(default="", description="Short label for drawings, e.g. 'C1'")
    position: Point2D
    section: ColumnSection = Field(default_factory=ColumnSection)
    kind: ColumnKind = ColumnKind.USER
    activity: ColumnActivity = ColumnActivity.ACTIVE
    home: Point2D | None = Field(
        default=None, description="Position a user column returns to after a move session"
    )
    suspended_by: str | None = Field(
        default=None, description="Id of the transient column standing in for this one"
    )
    clone_of: str | None = Field(
        default=None, description="Id of the column a transient clone replaces"
    )
    hidden: bool = False
    anchor_role: AnchorRole | None = None

    @property
    def is_active(self) -> bool:
        return self.activity == ColumnActivity.ACTIVE

    @property
    def reference_point(self) -> Point2D:
        """Home position for user columns, current position otherwise."""
        return self.home if self.home is not None else self.position

    @model_validator(mode="after")
    def kind_specific_fields(self) -> Column:
        if self.home is not None and self.kind != ColumnKind.USER:
            raise ValueError(f"Only user columns carry a home position (kind={self.kind.value})")
        if self.anchor_role is not None and self.kind != ColumnKind.ANCHOR:
            raise ValueError("anchor_role is only valid on anchor columns")
        if self.clone_of is not None and self.kind != ColumnKind.TRANSIENT:
            raise ValueError("clone_of is only valid on transient columns")
        return self


class Beam(BaseModel):
    """A beam between two columns.

    start_id/end_id are the columns the beam currently bears on. The
    origin ids are the conceptual endpoints: during a move session a
    beam is re-pointed at stand-in clones, and the origin ids are what
    it reattaches to once the original is active again.
    """

    global_id: str = Field(default_factory=generate_id, description="IFC GlobalId")
    tag: str = Field(default="", description="Short label for drawings, e.g. 'B1'")
    start_id: str
    end_id: str
    origin_start_id: str = ""
    origin_end_id: str = ""
    start: Point2D
    end: Point2D
    width: float = Field(default=0.15, gt=0, description="Beam width in meters")

    @property
    def length(self) -> float:
        """Beam span (centerline)."""
        return self.start.distance_to(self.end)

    @property
    def height(self) -> float:
        """Section depth, always span / 10."""
        return self.length / 10.0

    @property
    def dx(self) -> float:
        return self.end.x - self.start.x

    @property
    def dy(self) -> float:
        return self.end.y - self.start.y

    def other_end(self, column_id: str) -> str | None:
        """The column at the opposite end, None if column_id is not an end."""
        if self.start_id == column_id:
            return self.end_id
        if self.end_id == column_id:
            return self.start_id
        return None

    @model_validator(mode="after")
    def endpoints_valid(self) -> Beam:
        if self.start_id == self.end_id:
            raise ValueError("Beam must connect two different columns")
        if self.start == self.end:
            raise ValueError("Beam start and end points must be different")
        if not self.origin_start_id:
            self.origin_start_id = self.start_id
        if not self.origin_end_id:
            self.origin_end_id = self.end_id
        return self
