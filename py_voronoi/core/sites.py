"""
Site collection for Voronoi diagrams.

The builder requires that no two sites share an x or a y coordinate.
SiteSet keeps that precondition while points are added interactively or
imported, nudging colliding points by a small PRNG jitter, and caches
the diagram of its current points.
"""

import json
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..config import settings
from ..utils import random as shared_random
from .alea_prng import AleaPRNG
from .clipping import Bounds, compute_polygon_centroid, face_polygon
from .exceptions import DegenerateInputError
from .geometry import Point
from .voronoi import Voronoi, build

logger = structlog.get_logger()

MAX_JITTER_ATTEMPTS = 1000


def validate_sites(sites) -> np.ndarray:
    """
    Check a site array against the construction precondition.

    Args:
        sites: (n, 2) array-like of coordinates

    Returns:
        Sites as a float array

    Raises:
        DegenerateInputError: wrong shape, non-finite values, or a shared
            x or y coordinate
    """
    try:
        points = np.asarray(sites, dtype=float)
    except (TypeError, ValueError) as e:
        raise DegenerateInputError(f"Sites are not numeric coordinates: {e}") from e

    if points.size == 0:
        return np.empty((0, 2), dtype=float)
    if points.ndim != 2 or points.shape[1] != 2:
        raise DegenerateInputError(f"Sites must be an (n, 2) array, got shape {points.shape}")
    if not np.all(np.isfinite(points)):
        raise DegenerateInputError("Sites contain non-finite coordinates")

    for axis, name in ((0, "x"), (1, "y")):
        values, counts = np.unique(points[:, axis], return_counts=True)
        if np.any(counts > 1):
            raise DegenerateInputError(
                f"Sites share {name} coordinate {values[counts > 1][0]!r}")
    return points


class SiteSet:
    """
    Ordered collection of sites with no shared x or y coordinate.

    Args:
        points: Initial points, added one by one through add_point
        jitter: Scale of the random offset applied to colliding points
        prng: Generator for jitter and random points; defaults to the
            shared generator from py_voronoi.utils.random
    """

    def __init__(self, points: Optional[Sequence[Sequence[float]]] = None,
                 jitter: float = 1.0, prng: Optional[AleaPRNG] = None):
        if jitter <= 0:
            raise ValueError(f"jitter must be positive, got {jitter}")
        self.jitter = jitter
        self._prng = prng
        self._points: List[Point] = []
        self._xs = set()
        self._ys = set()
        self._diagram: Optional[Voronoi] = None
        for x, y in points if points is not None else ():
            self.add_point(x, y)

    @property
    def prng(self) -> AleaPRNG:
        return self._prng if self._prng is not None else shared_random.get_prng()

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> np.ndarray:
        """Copy of the sites as an (n, 2) array, in insertion order."""
        if not self._points:
            return np.empty((0, 2), dtype=float)
        return np.array(self._points, dtype=float)

    @property
    def diagram(self) -> Optional[Voronoi]:
        """Diagram from the last calculate(), or None."""
        return self._diagram

    def reset(self):
        """Remove all points and the cached diagram."""
        self._points = []
        self._xs = set()
        self._ys = set()
        self._diagram = None

    def _place(self, x: float, y: float) -> Point:
        x, y = float(x), float(y)
        if not (np.isfinite(x) and np.isfinite(y)):
            raise DegenerateInputError(f"Non-finite site ({x}, {y})")

        candidate = Point(x, y)
        attempts = 0
        while candidate.x in self._xs or candidate.y in self._ys:
            attempts += 1
            if attempts > MAX_JITTER_ATTEMPTS:
                raise DegenerateInputError(f"Could not find a free position near ({x}, {y})")
            candidate = Point(x + self.jitter * self.prng.random(),
                              y + self.jitter * self.prng.random())
        if attempts:
            logger.debug("Jittered colliding site", requested=(x, y),
                         placed=(candidate.x, candidate.y), attempts=attempts)
        return candidate

    def _store(self, point: Point):
        self._points.append(point)
        self._xs.add(point.x)
        self._ys.add(point.y)

    def add_point(self, x: float, y: float) -> Point:
        """
        Add a site, moving it by jitter until neither coordinate collides.

        Returns:
            The point actually stored
        """
        point = self._place(x, y)
        self._store(point)
        self._diagram = None
        return point

    def update_point(self, x: float, y: float) -> Voronoi:
        """Move the most recently added site (or add one) and recalculate."""
        if self._points:
            last = self._points.pop()
            self._xs.discard(last.x)
            self._ys.discard(last.y)
        self._store(self._place(x, y))
        return self.calculate()

    def calculate(self) -> Voronoi:
        """Build and cache the diagram of the current sites."""
        self._diagram = build(self.points)
        return self._diagram

    def add_random(self, count: int, width: Optional[float] = None,
                   height: Optional[float] = None,
                   margin: Optional[float] = None) -> np.ndarray:
        """
        Add uniformly distributed sites inside a margin-padded canvas.

        Args:
            count: Number of sites to add
            width: Canvas width (defaults to settings.default_width)
            height: Canvas height (defaults to settings.default_height)
            margin: Fraction of each side left empty (defaults to
                settings.random_margin)

        Returns:
            The added points
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        width = settings.default_width if width is None else width
        height = settings.default_height if height is None else height
        margin = settings.random_margin if margin is None else margin
        if not 0 <= margin < 0.5:
            raise ValueError(f"margin must be in [0, 0.5), got {margin}")

        span = 1.0 - 2.0 * margin
        prng = self.prng
        added = [self.add_point((prng.random() * span + margin) * width,
                                (prng.random() * span + margin) * height)
                 for _ in range(count)]
        logger.info("Added random sites", count=count, width=width, height=height, total=len(self))
        return np.array(added, dtype=float).reshape(-1, 2)

    def export_json(self) -> str:
        """Sites as a JSON list of [x, y] pairs."""
        return json.dumps([[p.x, p.y] for p in self._points])

    def import_json(self, text: str) -> int:
        """
        Add sites from a JSON list of [x, y] pairs.

        Returns:
            Number of sites added

        Raises:
            DegenerateInputError: text is not a list of coordinate pairs
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DegenerateInputError(f"Invalid site JSON: {e}") from e
        if not isinstance(data, list):
            raise DegenerateInputError("Site JSON must be a list of [x, y] pairs")
        for item in data:
            if not (isinstance(item, (list, tuple)) and len(item) == 2
                    and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in item)):
                raise DegenerateInputError(f"Invalid site entry {item!r}")

        for x, y in data:
            self.add_point(x, y)
        logger.info("Imported sites", count=len(data), total=len(self))
        return len(data)


def relax_sites(sites, bounds: Bounds, iterations: int = 1) -> np.ndarray:
    """Apply Lloyd's relaxation to improve site distribution.

    Moves each site to the centroid of its Voronoi cell clipped to bounds.
    Sites whose clipped cell is empty stay where they are.

    Args:
        sites: (n, 2) sites with no shared x or y coordinate
        bounds: (xmin, ymin, xmax, ymax)
        iterations: Number of relaxation passes

    Returns:
        Relaxed site coordinates, in input order
    """
    logger.info("Starting Lloyd's relaxation", iterations=iterations)

    points = validate_sites(sites).copy()
    xmin, ymin, xmax, ymax = bounds
    # collisions after a move are rare; nudge them by a tiny fraction of the box
    jitter = 1e-9 * max(xmax - xmin, ymax - ymin)

    for iteration in range(iterations):
        diagram = build(points)
        moved = points.copy()
        for face in diagram.faces:
            polygon = face_polygon(face, bounds)
            if len(polygon) < 3:
                continue
            centroid = compute_polygon_centroid(polygon)
            i = diagram.input_indices[face.index]
            moved[i][0] = np.clip(centroid[0], xmin, xmax)
            moved[i][1] = np.clip(centroid[1], ymin, ymax)

        points = SiteSet(moved, jitter=jitter).points
        logger.debug("Relaxation pass complete", iteration=iteration + 1, sites=len(points))

    return points


def site_bounds(sites, pad: float = 0.0) -> Tuple[float, float, float, float]:
    """Bounding box of a site array, grown by pad on every side."""
    points = np.asarray(sites, dtype=float)
    if points.size == 0:
        raise ValueError("Cannot bound an empty site set")
    xmin, ymin = points.min(axis=0)
    xmax, ymax = points.max(axis=0)
    return (float(xmin - pad), float(ymin - pad), float(xmax + pad), float(ymax + pad))
