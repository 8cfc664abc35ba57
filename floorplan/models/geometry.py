"""Geometric primitives and pure helpers used throughout the editor."""

from __future__ import annotations
import math
from pydantic import BaseModel
from shapely.geometry import LineString, Point as ShapelyPoint


EPSILON = 1e-10


class Point2D(BaseModel):
    """Point on the canvas plane (1 unit = 1 cm)."""
    x: float
    y: float

    def distance_to(self, other: Point2D) -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)

    def lerp(self, other: Point2D, t: float) -> Point2D:
        return Point2D(
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
        )

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(x=self.x + other.x, y=self.y + other.y)

    def __sub__(self, other: Point2D) -> Point2D:
        return Point2D(x=self.x - other.x, y=self.y - other.y)

    def __mul__(self, scalar: float) -> Point2D:
        return Point2D(x=self.x * scalar, y=self.y * scalar)


class Vector2D(BaseModel):
    """2D vector for direction calculations on the canvas plane."""
    x: float
    y: float

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalized(self) -> Vector2D:
        ln = self.length()
        if ln < EPSILON:
            return Vector2D(x=0.0, y=0.0)
        return Vector2D(x=self.x / ln, y=self.y / ln)

    def perpendicular(self) -> Vector2D:
        """90-degree counterclockwise rotation."""
        return Vector2D(x=-self.y, y=self.x)

    def dot(self, other: Vector2D) -> float:
        return self.x * other.x + self.y * other.y

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def angle_to(self, other: Vector2D) -> float:
        """Angle between two vectors in radians."""
        d = self.dot(other) / (self.length() * other.length() + EPSILON)
        d = max(-1.0, min(1.0, d))
        return math.acos(d)

    def __mul__(self, scalar: float) -> Vector2D:
        return Vector2D(x=self.x * scalar, y=self.y * scalar)


def direction_from_points(start: Point2D, end: Point2D) -> Vector2D:
    """Get direction vector from start to end."""
    return Vector2D(x=end.x - start.x, y=end.y - start.y)


def distance(p1: Point2D, p2: Point2D) -> float:
    return p1.distance_to(p2)


def angle_of(start: Point2D, end: Point2D) -> float:
    """Direction angle of the segment start->end, in radians (atan2)."""
    return math.atan2(end.y - start.y, end.x - start.x)


def normalize_angle(angle: float) -> float:
    """Wrap an angle into [0, 2*pi)."""
    full = 2 * math.pi
    angle = math.fmod(angle, full)
    if angle < 0:
        angle += full
    if angle >= full:
        angle -= full
    return angle


def point_at(start: Point2D, angle: float, dist: float) -> Point2D:
    return Point2D(
        x=start.x + math.cos(angle) * dist,
        y=start.y + math.sin(angle) * dist,
    )


def projection_parameter(point: Point2D, a: Point2D, b: Point2D) -> float:
    """Unclamped parameter t of the projection of point onto the line a->b.

    t == 0 at a, t == 1 at b. A degenerate segment yields 0.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq < EPSILON:
        return 0.0
    return ((point.x - a.x) * dx + (point.y - a.y) * dy) / length_sq


def project_onto_segment(point: Point2D, a: Point2D, b: Point2D) -> Point2D:
    """Closest point to `point` on the segment a-b (t clamped to [0, 1])."""
    t = max(0.0, min(1.0, projection_parameter(point, a, b)))
    return a.lerp(b, t)


def distance_to_segment(point: Point2D, a: Point2D, b: Point2D) -> float:
    return point.distance_to(project_onto_segment(point, a, b))


def perpendicular_distance(point: Point2D, a: Point2D, b: Point2D) -> float:
    """Distance from point to the infinite line through a and b."""
    dx = b.x - a.x
    dy = b.y - a.y
    ln = math.sqrt(dx * dx + dy * dy)
    if ln < EPSILON:
        return point.distance_to(a)
    return abs(dy * (point.x - a.x) - dx * (point.y - a.y)) / ln


def is_point_on_line(
    point: Point2D, a: Point2D, b: Point2D, tolerance: float = 0.1,
) -> bool:
    """Triangle-inequality test: |d(p,a) + d(p,b) - d(a,b)| <= tolerance."""
    return abs(point.distance_to(a) + point.distance_to(b) - a.distance_to(b)) <= tolerance


def line_intersection(
    p1: Point2D, p2: Point2D, p3: Point2D, p4: Point2D,
) -> Point2D | None:
    """Single crossing point of segments p1-p2 and p3-p4, or None.

    Collinear overlaps are not a crossing and also give None.
    """
    hit = LineString([(p1.x, p1.y), (p2.x, p2.y)]).intersection(
        LineString([(p3.x, p3.y), (p4.x, p4.y)])
    )
    if hit.is_empty or not isinstance(hit, ShapelyPoint):
        return None
    return Point2D(x=hit.x, y=hit.y)


def snap_angle(angle: float, step: float) -> float:
    return round(angle / step) * step


def snap_to_grid(point: Point2D, pitch: float) -> Point2D:
    return Point2D(
        x=round(point.x / pitch) * pitch,
        y=round(point.y / pitch) * pitch,
    )
