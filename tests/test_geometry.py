"""Tests for geometric primitives and plan-space math."""

import math

import pytest

from framing_builder.models.geometry import (
    Point2D,
    Polygon2D,
    bounding_box,
    distance_to_segment,
    intersect_ray,
    point_along,
    point_in_polygon,
    point_on_segment,
    points_close,
    project_onto_segment,
    rotate,
)


def P(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


class TestPoint2D:
    def test_distance(self):
        assert math.isclose(P(0, 0).distance_to(P(3, 4)), 5.0)

    def test_equality_tolerance(self):
        assert P(1.0, 2.0) == P(1.0000001, 2.0000001)
        assert P(1.0, 2.0) != P(1.0, 2.1)

    def test_hash_equal_points(self):
        assert len({P(1.0, 2.0), P(1.0, 2.0)}) == 1

    def test_offset(self):
        moved = P(1, 1).offset(2, -3)
        assert moved == P(3, -2)


class TestPolygon2D:
    def test_too_few_vertices(self):
        with pytest.raises(ValueError, match="at least 3"):
            Polygon2D(vertices=[P(0, 0), P(1, 0)])

    def test_area_and_bounds(self):
        square = Polygon2D(vertices=[P(0, 0), P(4, 0), P(4, 4), P(0, 4)])
        assert math.isclose(square.area, 16.0)
        assert square.bounds == (0, 0, 4, 4)

    def test_collinear_outline_has_no_area(self):
        assert Polygon2D(vertices=[P(0, 0), P(2, 0), P(5, 0)]).area == 0.0

    def test_contains(self):
        square = Polygon2D(vertices=[P(0, 0), P(4, 0), P(4, 4), P(0, 4)])
        assert square.contains(P(2, 2))
        assert square.contains(P(4, 2))  # on edge
        assert not square.contains(P(5, 2))
        assert not square.contains(P(4.01, 2))
        assert square.contains(P(4.01, 2), tol=0.02)


class TestProjection:
    def test_project_inside(self):
        proj = project_onto_segment(P(3, 2), P(0, 0), P(10, 0))
        assert math.isclose(proj.along, 3.0)
        assert math.isclose(proj.perp, 2.0)
        assert math.isclose(proj.t, 0.3)

    def test_project_degenerate_segment(self):
        assert project_onto_segment(P(1, 1), P(0, 0), P(0, 0)) is None

    def test_point_on_segment(self):
        assert point_on_segment(P(5, 0.01), P(0, 0), P(10, 0), 0.02)
        assert not point_on_segment(P(5, 0.1), P(0, 0), P(10, 0), 0.02)
        assert not point_on_segment(P(10.5, 0), P(0, 0), P(10, 0), 0.02)

    def test_distance_to_segment_beyond_end(self):
        assert math.isclose(distance_to_segment(P(13, 4), P(0, 0), P(10, 0)), 5.0)

    def test_point_along(self):
        assert point_along(P(0, 0), P(0, 10), 4.0) == P(0, 4)

    def test_points_close(self):
        assert points_close(P(0, 0), P(0.01, 0.01))
        assert not points_close(P(0, 0), P(0.1, 0))


class TestPointInPolygon:
    L_SHAPE = [P(0, 0), P(10, 0), P(10, 5), P(5, 5), P(5, 10), P(0, 10)]

    def test_concave_notch_is_outside(self):
        assert not point_in_polygon(self.L_SHAPE, P(7.5, 7.5))

    def test_inside_leg(self):
        assert point_in_polygon(self.L_SHAPE, P(2.5, 7.5))

    def test_boundary_counts_as_inside(self):
        assert point_in_polygon(self.L_SHAPE, P(7.5, 5.0))

    def test_fewer_than_three_vertices(self):
        assert not point_in_polygon([P(0, 0), P(1, 1)], P(0.5, 0.5))


class TestRays:
    def test_rotate_quarter_turn(self):
        x, y = rotate(1.0, 0.0, 90.0)
        assert math.isclose(x, 0.0, abs_tol=1e-12)
        assert math.isclose(y, 1.0)

    def test_ray_hits_segment(self):
        hit = intersect_ray(P(4, 3), (0.0, -1.0), P(0, 0), P(10, 0))
        assert hit == P(4, 0)

    def test_ray_pointing_away_misses(self):
        assert intersect_ray(P(4, 3), (0.0, 1.0), P(0, 0), P(10, 0)) is None

    def test_ray_parallel_misses(self):
        assert intersect_ray(P(0, 3), (1.0, 0.0), P(0, 0), P(10, 0)) is None

    def test_overshoot_within_slack(self):
        assert intersect_ray(P(10.01, 3), (0.0, -1.0), P(0, 0), P(10, 0), slack=0.02) is not None
        assert intersect_ray(P(10.5, 3), (0.0, -1.0), P(0, 0), P(10, 0), slack=0.02) is None


class TestBoundingBox:
    def test_empty(self):
        assert bounding_box([]) is None

    def test_points(self):
        assert bounding_box([P(1, 5), P(-2, 3), P(4, 0)]) == (-2, 0, 4, 5)
