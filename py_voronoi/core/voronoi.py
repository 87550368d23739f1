"""Divide-and-conquer Voronoi diagram construction."""

from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

import numpy as np
import structlog

from .clipping import face_polygon
from .exceptions import GeometryError
from .face import EdgeArena, Face
from .geometry import (
    EPS, Line, Point, create_perp_from_segment, cross, line_through,
    nearly_equal, point_at, to_the_left,
)

logger = structlog.get_logger()


class Bridge(NamedTuple):
    """Tangent of a merged hull, as positions in the left and right hull rings."""
    left: int
    right: int


def _as_site_array(sites) -> np.ndarray:
    points = np.asarray(sites, dtype=float)
    if points.size == 0:
        return np.empty((0, 2), dtype=float)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Sites must be an (n, 2) array, got shape {points.shape}")
    return points


def _walk_ring(ring: List[int], start: int, stop: int, wrap: bool = False) -> List[int]:
    """Entries of a cyclic ring from start to stop inclusive, walking forward.

    With wrap set and start == stop the whole ring is walked back to start.
    """
    walked = [ring[start]]
    k = start
    if wrap and len(ring) > 1:
        k = (k + 1) % len(ring)
        walked.append(ring[k])
    while k != stop:
        k = (k + 1) % len(ring)
        walked.append(ring[k])
    return walked


class Voronoi:
    """
    Voronoi diagram of a planar site set, built by divide and conquer.

    Faces are indexed in the x-sorted site order used for construction;
    ``input_indices[i]`` gives the position of face i's site in the input.
    The convex hull is a cyclic ring of face indices in clockwise order.

    Precondition: no two sites share an x or a y coordinate. The builder
    does not check it; SiteSet and validate_sites do.
    """

    def __init__(self, sites, presorted: bool = False):
        points = _as_site_array(sites)
        if presorted:
            order = np.arange(len(points))
        else:
            order = np.argsort(points[:, 0], kind="stable")

        self._input_indices = order
        self._sites = [Point(float(x), float(y)) for x, y in points[order]]
        self._arena = EdgeArena()
        for site in self._sites:
            self._arena.add_face(site)

        logger.debug("Building Voronoi diagram", sites=len(self._sites), presorted=presorted)
        self._hull = self._build(0, len(self._sites))
        self._arena.seal()

        logger.info("Voronoi diagram built",
                    sites=len(self._sites),
                    edges=self._arena.linked_edge_count(),
                    hull=len(self._hull))

    # ------------------------------------------------------------------
    # construction

    def _build(self, lo: int, hi: int) -> List[int]:
        """Build the sub-diagram of faces lo..hi-1 and return its hull ring."""
        n = hi - lo
        if n <= 1:
            return list(range(lo, hi))

        faces = self._arena.faces
        if n == 2:
            left, right = faces[lo], faces[lo + 1]
            left.insert_edge(create_perp_from_segment(right.site, left.site), right)
            return [lo, lo + 1]

        split = lo + n // 2
        left_hull = self._build(lo, split)
        right_hull = self._build(split, hi)

        top = self._hull_find_cap(left_hull, right_hull, do_top=True)
        bottom = self._hull_find_cap(left_hull, right_hull, do_top=False)

        chain = self._merge(
            (left_hull[top.left], right_hull[top.right]),
            (left_hull[bottom.left], right_hull[bottom.right]),
            budget=3 * n,
        )
        hull = self._construct_hull(left_hull, right_hull, top, bottom)

        logger.debug("Merged sub-diagrams", lo=lo, hi=hi, chain_edges=chain, hull=len(hull))
        return hull

    def _hull_find_cap(self, left_hull: List[int], right_hull: List[int],
                       do_top: bool) -> Bridge:
        """
        Find the top or bottom bridge between two x-separated hulls.

        Starts from the rightmost point of the left hull and the leftmost
        point of the right hull and walks each pointer around its ring
        until the segment between them is tangent to both hulls: the next
        point on either ring must not lie strictly above (top) or below
        (bottom) the segment.

        Args:
            left_hull: Clockwise ring of face indices left of the seam
            right_hull: Clockwise ring of face indices right of the seam
            do_top: Search the upper tangent if True, the lower one otherwise

        Returns:
            Bridge with positions into both rings
        """
        sites = self._sites
        left_points = [sites[i] for i in left_hull]
        right_points = [sites[i] for i in right_hull]
        n_left, n_right = len(left_points), len(right_points)

        left = max(range(n_left), key=lambda k: left_points[k].x)
        right = min(range(n_right), key=lambda k: right_points[k].x)

        # clockwise rings: upward is backward on the left hull, forward on the right
        step = -1 if do_top else 1

        def next_left(k):
            return (k + step) % n_left

        def next_right(k):
            return (k - step) % n_right

        def segment(l, r):
            line = line_through(left_points[l], right_points[r])
            return line if do_top else line.reverse()

        budget = 2 * (n_left + n_right)
        bridge = segment(left, right)
        while True:
            remaining = budget
            while n_left > 1 and budget >= 0 and to_the_left(bridge, left_points[next_left(left)]):
                left = next_left(left)
                bridge = segment(left, right)
                budget -= 1
            while n_right > 1 and budget >= 0 and to_the_left(bridge, right_points[next_right(right)]):
                right = next_right(right)
                bridge = segment(left, right)
                budget -= 1
            if budget == remaining:
                return Bridge(left, right)
            if budget < 0:
                raise GeometryError("Hull bridge search did not converge")

    def _merge(self, top: Tuple[int, int], bottom: Tuple[int, int], budget: int) -> int:
        """
        Stitch the dividing chain between two sub-diagrams.

        Walks down the seam from the top bridge pair to the bottom bridge
        pair. Each step inserts the bisector of the current pair, anchored
        at the previous chain vertex and directed downward, into both
        faces, then crosses into the next face on whichever side the
        bisector leaves first (both sides on a tie).

        Args:
            top: (left face, right face) of the top bridge
            bottom: (left face, right face) of the bottom bridge
            budget: Upper bound on chain length; a planar Voronoi diagram of
                n sites has at most 3n - 6 edges

        Returns:
            Number of bisector edges inserted
        """
        faces = self._arena.faces
        scale = self._arena.extent
        left, right = top
        anchor: Optional[Point] = None
        inserted = 0

        while True:
            left_face, right_face = faces[left], faces[right]
            line = create_perp_from_segment(right_face.site, left_face.site)
            if anchor is not None:
                line = Line(anchor, line.direction)
            reverse = line.reverse()

            left_span = left_face.find_intersect_range(line)
            right_span = right_face.find_intersect_range(reverse)
            left_face.insert_edge(line, right_face, span=left_span, neighbor_span=right_span)
            inserted += 1

            if (left, right) == bottom:
                return inserted
            if inserted > budget:
                raise GeometryError(
                    f"Dividing chain between faces {top} and {bottom} did not terminate")

            # distances down the seam; the higher crossing comes first
            left_next = left_span.exit if left_span.end.is_valid() else None
            right_next = -right_span.entry if right_span.start.is_valid() else None
            if left_next is None and right_next is None:
                raise GeometryError(
                    f"Dividing chain left faces {left} and {right} before reaching {bottom}")

            if left_next is not None and right_next is not None and \
                    nearly_equal(left_next, right_next, scale):
                advance_left = advance_right = True
            else:
                advance_left = right_next is None or (left_next is not None and left_next < right_next)
                advance_right = not advance_left

            anchor = point_at(line, left_next if advance_left else right_next)
            if advance_left:
                left = self._across(left_span.end, left)
            if advance_right:
                right = self._across(right_span.start, right)

    def _across(self, edge, current: int) -> int:
        neighbor = edge.neighbor_face()
        if neighbor is None:
            raise GeometryError(f"Face {current} has an unpaired edge on the dividing chain")
        return neighbor.index

    def _construct_hull(self, left_hull: List[int], right_hull: List[int],
                        top: Bridge, bottom: Bridge) -> List[int]:
        """Splice two clockwise hull rings along their bridges."""
        wrap_left = wrap_right = False
        if (top.left == bottom.left and len(left_hull) > 1) or \
                (top.right == bottom.right and len(right_hull) > 1):
            collinear = self._is_collinear(left_hull + right_hull)
            wrap_left = collinear and top.left == bottom.left
            wrap_right = collinear and top.right == bottom.right

        hull = _walk_ring(left_hull, bottom.left, top.left, wrap_left)
        hull.extend(_walk_ring(right_hull, top.right, bottom.right, wrap_right))
        return hull

    def _is_collinear(self, indices: Sequence[int]) -> bool:
        points = [self._sites[i] for i in indices]
        origin = points[0]
        far = max(points, key=lambda p: (p.x - origin.x) ** 2 + (p.y - origin.y) ** 2)
        axis = (far.x - origin.x, far.y - origin.y)
        axis_length = np.hypot(*axis)
        for p in points:
            rel = (p.x - origin.x, p.y - origin.y)
            if abs(cross(axis, rel)) > EPS * axis_length * np.hypot(*rel):
                return False
        return True

    # ------------------------------------------------------------------
    # queries

    def face_count(self) -> int:
        return len(self._arena.faces)

    def face(self, index: int) -> Face:
        if not 0 <= index < len(self._arena.faces):
            raise IndexError(f"Face index {index} out of range")
        return self._arena.faces[index]

    @property
    def faces(self) -> List[Face]:
        return list(self._arena.faces)

    @property
    def sites(self) -> List[Point]:
        """Sites in face order (sorted by x unless built presorted)."""
        return list(self._sites)

    @property
    def input_indices(self) -> np.ndarray:
        return self._input_indices.copy()

    def hull(self) -> List[int]:
        """Convex hull as face indices, clockwise, cyclic."""
        return list(self._hull)

    def hull_points(self) -> List[Point]:
        return [self._sites[i] for i in self._hull]

    def neighbors(self, index: int) -> List[int]:
        return self.face(index).neighbor_indices()

    def adjacency(self) -> Set[Tuple[int, int]]:
        """Unordered face pairs sharing an edge, as (low, high) tuples."""
        pairs = set()
        for face in self._arena.faces:
            for other in face.neighbor_indices():
                pairs.add((min(face.index, other), max(face.index, other)))
        return pairs

    def edge_count(self) -> int:
        """Number of face boundary edges (each bisector counts once per side)."""
        return sum(face.edge_count for face in self._arena.faces)

    def to_dict(self, bounds: Optional[Tuple[float, float, float, float]] = None) -> Dict:
        """
        JSON-ready description of the diagram.

        Args:
            bounds: Optional (xmin, ymin, xmax, ymax); adds each face's
                polygon clipped to that box

        Returns:
            Dictionary with sites, hull and per-face edges
        """
        faces = []
        for face in self._arena.faces:
            edges = []
            for edge in face.edges():
                start, end = edge.start_point(), edge.end_point()
                neighbor = edge.neighbor_face()
                edges.append({
                    "anchor": [edge.line.anchor.x, edge.line.anchor.y],
                    "direction": [edge.line.direction.x, edge.line.direction.y],
                    "neighbor": neighbor.index if neighbor is not None else None,
                    "start": [start.x, start.y] if start is not None else None,
                    "end": [end.x, end.y] if end is not None else None,
                })
            entry = {
                "index": face.index,
                "input_index": int(self._input_indices[face.index]),
                "site": [face.site.x, face.site.y],
                "bounded": face.is_bounded(),
                "neighbors": face.neighbor_indices(),
                "edges": edges,
            }
            if bounds is not None:
                entry["polygon"] = face_polygon(face, bounds).tolist()
            faces.append(entry)

        return {
            "sites": [[p.x, p.y] for p in self._sites],
            "input_indices": [int(i) for i in self._input_indices],
            "hull": list(self._hull),
            "faces": faces,
        }


def build(sites, presorted: bool = False) -> Voronoi:
    """
    Build the Voronoi diagram of a site list.

    Args:
        sites: (n, 2) array-like of coordinates, no shared x or y values
        presorted: Skip the x-sort when sites are already ordered by x

    Returns:
        Finished, sealed Voronoi diagram
    """
    return Voronoi(sites, presorted=presorted)
