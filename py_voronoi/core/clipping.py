"""
Bounded view of Voronoi faces.

Unbounded faces cannot be drawn or measured directly, so renderers and
relaxation work on each face clipped to a rectangle. A face is the
intersection of the right half-planes of its edges; intersecting the
rectangle with each of those half-planes in turn yields the bounded cell.
Polygon work is done with shapely.
"""

import math
from typing import List, Tuple

import numpy as np
from shapely.geometry import Polygon, box
from shapely.geometry.polygon import orient

from .geometry import Line, cross, point_at

Bounds = Tuple[float, float, float, float]


def _check_bounds(bounds: Bounds) -> Bounds:
    xmin, ymin, xmax, ymax = (float(v) for v in bounds)
    if not (xmin < xmax and ymin < ymax):
        raise ValueError(f"Invalid bounds {bounds}: expected (xmin, ymin, xmax, ymax)")
    return xmin, ymin, xmax, ymax


def _side(line: Line, point) -> float:
    return cross(line.direction, (point[0] - line.anchor.x, point[1] - line.anchor.y))


def half_plane(line: Line, bounds: Bounds) -> Polygon:
    """
    Right half-plane of a line, cut down to a rectangle covering the bounds.

    Args:
        line: Oriented line; the kept side is the one its face's site is on
        bounds: (xmin, ymin, xmax, ymax) the result must cover

    Returns:
        Polygon equal to the half-plane inside the bounds. The plain box
        when the line passes left of it, an empty polygon when it passes
        right of it.
    """
    xmin, ymin, xmax, ymax = _check_bounds(bounds)
    center = ((xmin + xmax) / 2.0, (ymin + ymax) / 2.0)
    reach = math.hypot(xmax - xmin, ymax - ymin)

    side = _side(line, center)
    if side <= -reach:
        return box(xmin, ymin, xmax, ymax)
    if side >= reach:
        return Polygon()

    d = line.direction
    right = (d.y, -d.x)
    # foot of the box centre on the line
    foot = point_at(line, (center[0] - line.anchor.x) * d.x + (center[1] - line.anchor.y) * d.y)
    back = (foot.x - 2.0 * reach * d.x, foot.y - 2.0 * reach * d.y)
    ahead = (foot.x + 2.0 * reach * d.x, foot.y + 2.0 * reach * d.y)
    return Polygon([
        back,
        ahead,
        (ahead[0] + 4.0 * reach * right[0], ahead[1] + 4.0 * reach * right[1]),
        (back[0] + 4.0 * reach * right[0], back[1] + 4.0 * reach * right[1]),
    ])


def face_shape(face, bounds: Bounds) -> Polygon:
    """Shapely polygon of a face clipped to a rectangle; empty if it misses."""
    xmin, ymin, xmax, ymax = _check_bounds(bounds)
    cell = box(xmin, ymin, xmax, ymax)
    for edge in face.edges():
        cell = cell.intersection(half_plane(edge.line, bounds))
        if cell.is_empty:
            return Polygon()
    if not isinstance(cell, Polygon) or cell.area <= 0:
        return Polygon()
    return orient(cell, sign=-1.0)


def face_polygon(face, bounds: Bounds) -> np.ndarray:
    """
    Vertices of a face clipped to a rectangle.

    Args:
        face: Face of a finished diagram
        bounds: (xmin, ymin, xmax, ymax)

    Returns:
        (k, 2) array of clockwise vertices; empty if the face misses the box
    """
    shape = face_shape(face, bounds)
    if shape.is_empty:
        return np.empty((0, 2))
    return np.array(shape.exterior.coords[:-1], dtype=float)


def diagram_polygons(diagram, bounds: Bounds) -> List[np.ndarray]:
    """Clipped polygon of every face, in face order."""
    return [face_polygon(face, bounds) for face in diagram.faces]


def polygon_area(vertices: np.ndarray) -> float:
    if len(vertices) < 3:
        return 0.0
    return float(Polygon(vertices).area)


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates; the vertex mean when the polygon
        has no area
    """
    if len(vertices) >= 3:
        shape = Polygon(vertices)
        if shape.area > 0:
            centroid = shape.centroid
            return np.array([centroid.x, centroid.y])

    return np.mean(vertices, axis=0)
