"""Geometric primitives and plan-space math for the framing graph.

All coordinates are plan-space meters. None of the functions here raise on
degenerate input: a zero-length segment, parallel lines or a ray that misses
simply produce ``None`` (or ``False``), and callers check for it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from pydantic import BaseModel, field_validator

# Two structural nodes closer than this are the same node.
STRUCTURAL_TOLERANCE = 0.02
# Pointer picks within this radius land on an existing column.
SNAP_TOLERANCE = 0.4
# Below this a length or determinant is treated as zero.
DEGENERATE_EPS = 1e-6


class Point2D(BaseModel):
    """2D point in the XY plane (meters)."""

    x: float
    y: float

    def distance_to(self, other: Point2D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)

    def offset(self, dx: float, dy: float) -> Point2D:
        """A new point translated by (dx, dy)."""
        return Point2D(x=self.x + dx, y=self.y + dy)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return math.isclose(self.x, other.x, abs_tol=1e-6) and math.isclose(
            self.y, other.y, abs_tol=1e-6
        )

    def __hash__(self) -> int:
        return hash((round(self.x, 6), round(self.y, 6)))


class Polygon2D(BaseModel):
    """Closed outline in plan. The last vertex joins back to the first."""

    vertices: list[Point2D]

    @field_validator("vertices")
    @classmethod
    def at_least_3_vertices(cls, v: list[Point2D]) -> list[Point2D]:
        if len(v) < 3:
            raise ValueError(f"Outline needs at least 3 vertices, got {len(v)}")
        return v

    @property
    def area(self) -> float:
        """Unsigned shoelace area. Zero for a collinear outline."""
        pts = self.vertices
        twice = sum(
            a.x * b.y - b.x * a.y for a, b in zip(pts, pts[1:] + pts[:1])
        )
        return abs(twice) / 2.0

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y)."""
        xs = [v.x for v in self.vertices]
        ys = [v.y for v in self.vertices]
        return (min(xs), min(ys), max(xs), max(ys))

    def contains(self, point: Point2D, tol: float = DEGENERATE_EPS) -> bool:
        """Inside, or within tol of an edge."""
        return point_in_polygon(self.vertices, point, boundary_tol=tol)


@dataclass(frozen=True)
class Projection:
    """A point projected onto a segment's axis.

    t is the normalized position (0 at the segment start, 1 at the end),
    along is the same position in meters, perp the unsigned perpendicular
    offset in meters.
    """

    t: float
    along: float
    perp: float
    length: float


def distance(p: Point2D, q: Point2D) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p.x - q.x, p.y - q.y)


def points_close(p: Point2D, q: Point2D, tol: float = STRUCTURAL_TOLERANCE) -> bool:
    """True if two points are within tol of each other."""
    return distance(p, q) <= tol


def project_onto_segment(p: Point2D, a: Point2D, b: Point2D) -> Projection | None:
    """Project p onto the axis of segment a-b (unclamped).

    Returns None for a zero-length segment.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length = math.hypot(dx, dy)
    if length < DEGENERATE_EPS:
        return None
    ux, uy = dx / length, dy / length
    vx, vy = p.x - a.x, p.y - a.y
    along = vx * ux + vy * uy
    perp = abs(vx * -uy + vy * ux)
    return Projection(t=along / length, along=along, perp=perp, length=length)


def point_on_segment(
    p: Point2D, a: Point2D, b: Point2D, tol: float = STRUCTURAL_TOLERANCE
) -> bool:
    """Check if p lies on segment a-b within tol (endpoints included)."""
    proj = project_onto_segment(p, a, b)
    if proj is None:
        return points_close(p, a, tol)
    return proj.perp <= tol and -tol <= proj.along <= proj.length + tol


def distance_to_segment(p: Point2D, a: Point2D, b: Point2D) -> float:
    """Distance from p to the closest point of segment a-b."""
    proj = project_onto_segment(p, a, b)
    if proj is None:
        return distance(p, a)
    if proj.t <= 0.0:
        return distance(p, a)
    if proj.t >= 1.0:
        return distance(p, b)
    return proj.perp


def point_along(a: Point2D, b: Point2D, along: float) -> Point2D:
    """The point `along` meters from a toward b."""
    length = distance(a, b)
    if length < DEGENERATE_EPS:
        return Point2D(x=a.x, y=a.y)
    ratio = along / length
    return Point2D(x=a.x + (b.x - a.x) * ratio, y=a.y + (b.y - a.y) * ratio)


def point_in_polygon(
    vertices: list[Point2D], p: Point2D, boundary_tol: float = DEGENERATE_EPS
) -> bool:
    """Crossing-number point-in-polygon test.

    Points on an edge (within boundary_tol) count as inside.
    """
    n = len(vertices)
    if n < 3:
        return False
    inside = False
    j = n - 1
    for i in range(n):
        vi, vj = vertices[i], vertices[j]
        if point_on_segment(p, vj, vi, boundary_tol):
            return True
        if (vi.y > p.y) != (vj.y > p.y):
            x_cross = (vj.x - vi.x) * (p.y - vi.y) / (vj.y - vi.y) + vi.x
            if p.x < x_cross:
                inside = not inside
        j = i
    return inside


def rotate(vx: float, vy: float, degrees: float) -> tuple[float, float]:
    """Rotate a vector counter-clockwise."""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return (vx * c - vy * s, vx * s + vy * c)


def intersect_ray(
    origin: Point2D,
    direction: tuple[float, float],
    a: Point2D,
    b: Point2D,
    slack: float = STRUCTURAL_TOLERANCE,
) -> Point2D | None:
    """Intersect a ray with segment a-b.

    The hit must lie on the segment, allowing `slack` meters of overshoot
    past either end, and in front of the origin. Parallel or degenerate
    input returns None.
    """
    dx, dy = direction
    ex, ey = b.x - a.x, b.y - a.y
    seg_len = math.hypot(ex, ey)
    if seg_len < DEGENERATE_EPS or math.hypot(dx, dy) < DEGENERATE_EPS:
        return None
    denom = dx * ey - dy * ex
    if abs(denom) < 1e-9:
        return None
    wx, wy = a.x - origin.x, a.y - origin.y
    s = (wx * ey - wy * ex) / denom
    u = (wx * dy - wy * dx) / denom
    if s < -DEGENERATE_EPS:
        return None
    margin = slack / seg_len
    if u < -margin or u > 1.0 + margin:
        return None
    return Point2D(x=a.x + ex * u, y=a.y + ey * u)


def bounding_box(points: list[Point2D]) -> tuple[float, float, float, float] | None:
    """(min_x, min_y, max_x, max_y) of a point set, None when empty."""
    if not points:
        return None
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (min(xs), min(ys), max(xs), max(ys))
