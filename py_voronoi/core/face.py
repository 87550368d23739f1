"""
Region boundaries for the divide-and-conquer Voronoi builder.

Every site owns a Face. A Face keeps its boundary as a circular,
doubly-linked ring of edges stored in an EdgeArena shared by the whole
diagram; links are integer indices into that arena, so the cyclic
neighbour references between faces never form Python reference cycles.

Orientation convention: each edge's line keeps the owning site on its
right, so walking an edge along its direction and then following ``next``
traces the boundary clockwise. A link between two consecutive edges is
either a real vertex (the lines intersect there) or a gap, meaning the
region runs off to infinity between them.
"""

import math
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Tuple

from .exceptions import DiagramSealedError, GeometryError, InvalidEdgeError
from .geometry import (
    EPS, Line, Point, cross, intersection_distance_with, intersection_with,
    to_the_left,
)

INVALID = -1


@dataclass
class _Edge:
    """Arena record for one boundary edge. Never handed out directly."""
    line: Line
    face: int
    prev: int = INVALID
    next: int = INVALID
    neighbor: int = INVALID
    prev_intersects: bool = False
    next_intersects: bool = False
    linked: bool = True


class EdgeArena:
    """Shared storage for all faces and edges of one diagram."""

    def __init__(self):
        self.edges: List[_Edge] = []
        self.faces: List["Face"] = []
        self.sealed = False
        self._box: Optional[Tuple[float, float, float, float]] = None

    def add_face(self, site) -> "Face":
        face = Face(self, len(self.faces), site)
        self.faces.append(face)
        x, y = float(site[0]), float(site[1])
        if self._box is None:
            self._box = (x, y, x, y)
        else:
            xmin, ymin, xmax, ymax = self._box
            self._box = (min(xmin, x), min(ymin, y), max(xmax, x), max(ymax, y))
        return face

    @property
    def extent(self) -> float:
        """
        Length scale of the sites: the longer side of their bounding box.

        Distance tolerances are taken relative to this, so scaling every
        site by a constant does not change any comparison. A single site
        (or none) falls back to its coordinate magnitude, then to 1.0.
        """
        if self._box is None:
            return 1.0
        xmin, ymin, xmax, ymax = self._box
        span = max(xmax - xmin, ymax - ymin)
        if span > 0:
            return span
        return max(abs(xmin), abs(ymin)) or 1.0

    def new_edge(self, line: Line, face: int) -> int:
        self.edges.append(_Edge(line=line, face=face))
        return len(self.edges) - 1

    def linked_edge_count(self) -> int:
        return sum(1 for edge in self.edges if edge.linked)

    def seal(self):
        """Freeze the diagram; later insertions raise DiagramSealedError."""
        self.sealed = True


class EdgeIterator:
    """
    Read-only cursor over one face's boundary edges.

    This is the only view of the edge records outside this module. An
    iterator built from INVALID stands for "no edge" (an empty face, or the
    open end of an unbounded one); dereferencing it raises InvalidEdgeError.
    """

    __slots__ = ("_arena", "_index")

    def __init__(self, arena: EdgeArena, index: int = INVALID):
        self._arena = arena
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    def is_valid(self) -> bool:
        return self._index != INVALID

    def _edge(self) -> _Edge:
        if self._index == INVALID:
            raise InvalidEdgeError("Dereferenced an invalid edge iterator")
        return self._arena.edges[self._index]

    @property
    def line(self) -> Line:
        """Bounding line of the edge (an immutable value)."""
        return self._edge().line

    @property
    def face(self) -> "Face":
        return self._arena.faces[self._edge().face]

    def next_edge(self) -> "EdgeIterator":
        return EdgeIterator(self._arena, self._edge().next)

    def prev_edge(self) -> "EdgeIterator":
        return EdgeIterator(self._arena, self._edge().prev)

    def is_first(self) -> bool:
        return self.face._first == self._index

    def is_last(self) -> bool:
        """True when the next edge wraps around to the face's first edge."""
        return self._edge().next == self.face._first

    def prev_intersects(self) -> bool:
        return self._edge().prev_intersects

    def next_intersects(self) -> bool:
        return self._edge().next_intersects

    def neighbor_edge(self) -> "EdgeIterator":
        """Mirror edge owned by the face across the same bisector."""
        return EdgeIterator(self._arena, self._edge().neighbor)

    def neighbor_face(self) -> Optional["Face"]:
        neighbor = self._edge().neighbor
        if neighbor == INVALID:
            return None
        return self._arena.faces[self._arena.edges[neighbor].face]

    def start_point(self) -> Optional[Point]:
        """Vertex shared with the previous edge, None across a gap."""
        edge = self._edge()
        if not edge.prev_intersects:
            return None
        return intersection_with(self._arena.edges[edge.prev].line, edge.line)

    def end_point(self) -> Optional[Point]:
        """Vertex shared with the next edge, None across a gap."""
        edge = self._edge()
        if not edge.next_intersects:
            return None
        return intersection_with(self._arena.edges[edge.next].line, edge.line)

    def __eq__(self, other):
        if not isinstance(other, EdgeIterator):
            return NotImplemented
        return self._arena is other._arena and self._index == other._index

    def __hash__(self):
        return hash((id(self._arena), self._index))

    def __repr__(self):
        if self._index == INVALID:
            return "EdgeIterator(invalid)"
        edge = self._arena.edges[self._index]
        return f"EdgeIterator({self._index}, face={edge.face}, {edge.line!r})"


class EdgeRange(NamedTuple):
    """
    Where a line crosses a face.

    ``start`` is the edge through which the line enters the face and
    ``end`` the edge through which it leaves, walking along the line's
    direction. ``entry``/``exit`` are the matching signed distances along
    the line (-inf/+inf when that side is open).
    """
    start: EdgeIterator
    end: EdgeIterator
    entry: float
    exit: float


class Face:
    """Voronoi region of one site and its boundary ring."""

    def __init__(self, arena: EdgeArena, index: int, site):
        self._arena = arena
        self.index = index
        self.site = Point(float(site[0]), float(site[1]))
        self._first = INVALID
        self._count = 0

    def __repr__(self):
        return f"Face({self.index}, site={self.site!r}, edges={self._count})"

    @property
    def edge_count(self) -> int:
        return self._count

    def first_edge(self) -> EdgeIterator:
        return EdgeIterator(self._arena, self._first)

    def _ring(self) -> Iterator[int]:
        if self._first == INVALID:
            return
        edges = self._arena.edges
        idx = self._first
        while True:
            yield idx
            idx = edges[idx].next
            if idx == self._first:
                return

    def edges(self) -> Iterator[EdgeIterator]:
        """Boundary edges in clockwise order, starting at first_edge()."""
        for idx in self._ring():
            yield EdgeIterator(self._arena, idx)

    def is_bounded(self) -> bool:
        edges = self._arena.edges
        return self._count > 0 and all(edges[idx].next_intersects for idx in self._ring())

    def neighbor_indices(self) -> List[int]:
        """Indices of the faces sharing an edge with this one, ring order."""
        edges = self._arena.edges
        result = []
        for idx in self._ring():
            neighbor = edges[idx].neighbor
            if neighbor != INVALID:
                result.append(edges[neighbor].face)
        return result

    def vertices(self) -> List[Point]:
        """Finite boundary vertices in clockwise order."""
        return [edge.end_point() for edge in self.edges() if edge.next_intersects()]

    def find_intersect_range(self, line: Line) -> EdgeRange:
        """
        Locate the arc of this face that a cutting line crosses.

        An edge whose direction crossed with the line's direction is
        positive is one the line leaves through; a non-positive one is
        one it enters through. The face is the intersection of its edges'
        half-planes, so the line is inside between the last entry and the
        first exit. Edges parallel to the line do not bound it.

        Args:
            line: Cutting line, oriented so this face's site is on its right

        Returns:
            EdgeRange framing the crossed arc; either end is invalid when
            the line runs to infinity inside the face on that side
        """
        edges = self._arena.edges
        start, end = INVALID, INVALID
        entry, exit_ = -math.inf, math.inf
        for idx in self._ring():
            edge_line = edges[idx].line
            turn = cross(edge_line.direction, line.direction)
            if abs(turn) < EPS:
                continue
            t = intersection_distance_with(edge_line, line)
            if turn > 0:
                if t < exit_:
                    end, exit_ = idx, t
            elif t > entry:
                start, entry = idx, t
        return EdgeRange(EdgeIterator(self._arena, start), EdgeIterator(self._arena, end),
                         entry, exit_)

    def insert_edge(self, line: Line, neighbor_face: "Face",
                    span: Optional[EdgeRange] = None,
                    neighbor_edge: Optional[EdgeIterator] = None,
                    neighbor_span: Optional[EdgeRange] = None) -> EdgeIterator:
        """
        Splice a new bisector edge into this face and its neighbour.

        The insertion is reciprocal. Without ``neighbor_edge`` the reversed
        line is inserted into ``neighbor_face`` as well and the two new
        edges become mutual neighbours. The nested call passes the edge it
        came from as ``neighbor_edge``, which only wires the references and
        stops the recursion.

        Args:
            line: Bisector, oriented so this face's site is on its right
            neighbor_face: Face on the other side of the bisector
            span: Precomputed crossing range; located automatically if None
            neighbor_edge: Already-inserted mirror edge in neighbor_face
            neighbor_span: Precomputed range for the neighbour's insertion

        Returns:
            Iterator on the new edge, which is also the new first edge
        """
        if self._arena.sealed:
            raise DiagramSealedError(f"Face {self.index} belongs to a finished diagram")
        if neighbor_face._arena is not self._arena:
            raise ValueError("Neighbouring faces must share an edge arena")
        if span is None:
            span = self.find_intersect_range(line)

        new = self._splice(line, span)
        edges = self._arena.edges
        if neighbor_edge is None:
            mirror = neighbor_face.insert_edge(
                line.reverse(), self, span=neighbor_span,
                neighbor_edge=EdgeIterator(self._arena, new),
            )
            edges[new].neighbor = mirror.index
        else:
            edges[new].neighbor = neighbor_edge.index
            edges[neighbor_edge.index].neighbor = new
        return EdgeIterator(self._arena, new)

    def _splice(self, line: Line, span: EdgeRange) -> int:
        edges = self._arena.edges
        before = span.start.index
        after = span.end.index
        if before != INVALID and after != INVALID:
            if span.entry > span.exit + 1e-7 * self._arena.extent:
                raise GeometryError(f"{line!r} does not cross face {self.index}")

        new = self._arena.new_edge(line, self.index)

        if self._count == 0:
            self._link(new, new, False)
        elif before != INVALID and after != INVALID:
            victim = edges[before].next
            while victim != after:
                if victim == before:
                    raise GeometryError(f"Edge range is not part of face {self.index}")
                following = edges[victim].next
                self._unlink(victim)
                victim = following
            self._link(before, new, True)
            self._link(new, after, True)
        elif before != INVALID:
            # line leaves to infinity: everything up to the old gap is cut off
            cur = before
            while edges[cur].next_intersects:
                victim = edges[cur].next
                if victim == before:
                    raise GeometryError(f"Bounded face {self.index} has no exit for {line!r}")
                self._unlink(victim)
                cur = victim
            gap = edges[cur].next
            self._link(before, new, True)
            self._link(new, gap, False)
        elif after != INVALID:
            cur = after
            while edges[cur].prev_intersects:
                victim = edges[cur].prev
                if victim == after:
                    raise GeometryError(f"Bounded face {self.index} has no entry for {line!r}")
                self._unlink(victim)
                cur = victim
            gap = edges[cur].prev
            self._link(gap, new, False)
            self._link(new, after, True)
        else:
            # only parallel edges: keep the ones on the site's side of the line
            kept = []
            for idx in list(self._ring()):
                if to_the_left(line, edges[idx].line.anchor):
                    self._unlink(idx)
                else:
                    kept.append(idx)
            if not kept:
                self._link(new, new, False)
            elif len(kept) == 1:
                self._link(kept[0], new, False)
                self._link(new, kept[0], False)
            else:
                raise GeometryError(f"{line!r} does not cross face {self.index}")

        self._first = new
        self._count += 1
        return new

    def _link(self, a: int, b: int, intersects: bool):
        edges = self._arena.edges
        edges[a].next = b
        edges[a].next_intersects = intersects
        edges[b].prev = a
        edges[b].prev_intersects = intersects

    def _unlink(self, idx: int):
        self._arena.edges[idx].linked = False
        self._count -= 1
