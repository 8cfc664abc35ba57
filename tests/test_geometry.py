import math

import pytest

from floorplan.models.geometry import (
    Point2D, Vector2D, angle_of, distance_to_segment, is_point_on_line, line_intersection,
    normalize_angle, perpendicular_distance, point_at, project_onto_segment,
    projection_parameter, snap_angle, snap_to_grid,
)
from helpers import pt


class TestPointsAndVectors:
    """Basic point/vector arithmetic"""

    def test_distance(self):
        assert pt(0, 0).distance_to(pt(3, 4)) == 5.0

    def test_lerp_midpoint(self):
        mid = pt(0, 0).lerp(pt(10, 20), 0.5)
        assert (mid.x, mid.y) == (5.0, 10.0)

    def test_vector_normalized_and_perpendicular(self):
        v = Vector2D(x=3, y=4).normalized()
        assert v.length() == pytest.approx(1.0)
        perp = Vector2D(x=1, y=0).perpendicular()
        assert (perp.x, perp.y) == (0.0, 1.0)

    def test_zero_vector_normalizes_to_zero(self):
        v = Vector2D(x=0, y=0).normalized()
        assert (v.x, v.y) == (0.0, 0.0)

    def test_angle_of_and_point_at(self):
        angle = angle_of(pt(0, 0), pt(0, 10))
        assert angle == pytest.approx(math.pi / 2)
        p = point_at(pt(1, 1), angle, 5)
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(6.0)

    def test_normalize_angle(self):
        assert normalize_angle(-math.pi / 2) == pytest.approx(3 * math.pi / 2)
        assert normalize_angle(2 * math.pi) == pytest.approx(0.0)


class TestProjection:
    """Projection and distance against segments"""

    def test_projection_parameter_is_unclamped(self):
        assert projection_parameter(pt(150, 3), pt(0, 0), pt(100, 0)) == pytest.approx(1.5)
        assert projection_parameter(pt(-50, 0), pt(0, 0), pt(100, 0)) == pytest.approx(-0.5)

    def test_degenerate_segment_projects_to_zero(self):
        assert projection_parameter(pt(5, 5), pt(1, 1), pt(1, 1)) == 0.0

    def test_project_onto_segment_clamps(self):
        p = project_onto_segment(pt(150, 20), pt(0, 0), pt(100, 0))
        assert (p.x, p.y) == (100.0, 0.0)

    def test_distance_to_segment_measures_to_nearest_endpoint_off_segment(self):
        assert distance_to_segment(pt(103, 4), pt(0, 0), pt(100, 0)) == pytest.approx(5.0)

    def test_perpendicular_distance_uses_infinite_line(self):
        assert perpendicular_distance(pt(500, 7), pt(0, 0), pt(100, 0)) == pytest.approx(7.0)

    def test_point_on_line_tolerance(self):
        assert is_point_on_line(pt(50, 0), pt(0, 0), pt(100, 0))
        assert not is_point_on_line(pt(50, 10), pt(0, 0), pt(100, 0))


class TestIntersectionsAndSnapping:
    """Segment intersection, snapping and area"""

    def test_crossing_segments_intersect(self):
        hit = line_intersection(pt(0, 0), pt(10, 10), pt(0, 10), pt(10, 0))
        assert hit is not None
        assert (hit.x, hit.y) == (pytest.approx(5.0), pytest.approx(5.0))

    def test_parallel_segments_do_not_intersect(self):
        assert line_intersection(pt(0, 0), pt(10, 0), pt(0, 5), pt(10, 5)) is None

    def test_disjoint_segments_do_not_intersect(self):
        assert line_intersection(pt(0, 0), pt(1, 1), pt(5, 0), pt(6, -1)) is None

    def test_snap_angle(self):
        assert snap_angle(math.radians(50), math.pi / 2) == pytest.approx(math.pi / 2)
        assert snap_angle(math.radians(17), math.pi / 12) == pytest.approx(math.radians(15))

    def test_snap_to_grid(self):
        p = snap_to_grid(pt(96, 3), 10)
        assert (p.x, p.y) == (100, 0)

    def test_collinear_overlap_is_not_a_crossing(self):
        assert line_intersection(pt(0, 0), pt(10, 0), pt(5, 0), pt(20, 0)) is None

    def test_touching_at_an_end(self):
        hit = line_intersection(pt(0, 0), pt(10, 0), pt(10, 0), pt(10, 10))
        assert (hit.x, hit.y) == (10, 0)
