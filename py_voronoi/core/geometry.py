"""
Line and point primitives for the divide-and-conquer Voronoi builder.

All functions here are pure. Lines are oriented: the half-plane to the
left of the direction vector is the "inside" of a line when it is used as
a boundary. Coordinates follow the usual mathematical convention (y grows
upward), so "clockwise" means the negative rotation sense.
"""

import math
from typing import NamedTuple

from .exceptions import GeometryError

EPS = 1e-9


class Point(NamedTuple):
    """Immutable 2D coordinate."""
    x: float
    y: float

    def __repr__(self):
        return f"P({self.x:.3f}, {self.y:.3f})"


class Line(NamedTuple):
    """Oriented infinite line: anchor point plus unit direction."""
    anchor: Point
    direction: Point

    def reverse(self) -> "Line":
        return reverse_line(self)

    def __repr__(self):
        return (f"L({self.anchor.x:.3f}, {self.anchor.y:.3f} -> "
                f"{self.direction.x:+.3f}, {self.direction.y:+.3f})")


def cross(u, v) -> float:
    """z component of the 3D cross product of two planar vectors."""
    return u[0] * v[1] - u[1] * v[0]


def nearly_equal(a: float, b: float, scale: float, tolerance: float = EPS) -> bool:
    """Compare two lengths with a tolerance relative to the length scale of the data."""
    return abs(a - b) <= tolerance * scale


def line_through(start, end) -> Line:
    """
    Line from one point towards another.

    Args:
        start: Anchor of the line
        end: Point the direction vector aims at

    Returns:
        Line anchored at start with unit direction start -> end
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0.0:
        raise GeometryError(f"Cannot build a line through coincident points {start!r}")
    return Line(Point(float(start[0]), float(start[1])), Point(dx / length, dy / length))


def point_at(line: Line, t: float) -> Point:
    """Point at signed distance t along the line's direction."""
    return Point(line.anchor.x + t * line.direction.x,
                 line.anchor.y + t * line.direction.y)


def reverse_line(line: Line) -> Line:
    """Same anchor, negated direction; swaps the half-plane the line bounds."""
    return Line(line.anchor, Point(-line.direction.x, -line.direction.y))


def intersection_distance_with(line_a: Line, line_b: Line) -> float:
    """
    Signed distance along line_b from its anchor to where line_a crosses it.

    Returns math.inf for parallel lines; callers treat that as "no bounded
    intersection".
    """
    denom = cross(line_a.direction, line_b.direction)
    if abs(denom) < EPS:
        return math.inf
    offset = (line_a.anchor.x - line_b.anchor.x, line_a.anchor.y - line_b.anchor.y)
    return cross(line_a.direction, offset) / denom


def intersection_with(line_a: Line, line_b: Line) -> Point:
    """Unique intersection point of two non-parallel lines."""
    t = intersection_distance_with(line_a, line_b)
    if math.isinf(t):
        raise GeometryError(f"Lines {line_a!r} and {line_b!r} are parallel")
    return point_at(line_b, t)


def create_perp_from_segment(a, b) -> Line:
    """
    Perpendicular bisector of segment a-b.

    The line is anchored at the midpoint and oriented so that ``a`` lies to
    its left. Used as a face boundary it therefore belongs to ``b``'s face;
    the reversed line bounds ``a``'s face.

    Args:
        a: Site on the left of the returned line
        b: Site on the right of the returned line

    Returns:
        Bisector line
    """
    dx = a[1] - b[1]
    dy = b[0] - a[0]
    length = math.hypot(dx, dy)
    if length == 0.0:
        raise GeometryError(f"Zero-length segment at {a!r}: sites must be distinct")
    mid = Point((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)
    return Line(mid, Point(dx / length, dy / length))


def to_the_left(line: Line, point) -> bool:
    """True when point lies strictly left of the line's direction."""
    rel = (point[0] - line.anchor.x, point[1] - line.anchor.y)
    return cross(line.direction, rel) > 0
