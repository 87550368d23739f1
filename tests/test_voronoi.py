"""Tests for the divide-and-conquer Voronoi builder."""

import json
import math

import numpy as np
import pytest
from scipy.spatial import ConvexHull
from scipy.spatial import Voronoi as ScipyVoronoi

from py_voronoi.core.exceptions import DiagramSealedError
from py_voronoi.core.geometry import create_perp_from_segment
from py_voronoi.core.voronoi import Voronoi, build


def random_sites(n, seed=0, size=1000.0):
    rng = np.random.default_rng(seed)
    return rng.uniform(0, size, (n, 2))


def rotate_to_min(sequence):
    i = sequence.index(min(sequence))
    return list(sequence[i:]) + list(sequence[:i])


def gift_wrap(points):
    """Clockwise hull indices by Jarvis march, starting at the leftmost point."""
    n = len(points)
    start = int(np.argmin(points[:, 0]))
    hull = [start]
    current = start
    while True:
        candidate = (current + 1) % n
        for i in range(n):
            u = points[candidate] - points[current]
            v = points[i] - points[current]
            # a point left of current->candidate means candidate is not the clockwise turn
            if u[0] * v[1] - u[1] * v[0] > 0:
                candidate = i
        current = candidate
        if current == start:
            return hull
        hull.append(current)


def input_hull(diagram):
    return [int(diagram.input_indices[i]) for i in diagram.hull()]


def input_adjacency(diagram):
    order = diagram.input_indices
    return {tuple(sorted((int(order[a]), int(order[b])))) for a, b in diagram.adjacency()}


def scipy_adjacency(sites):
    return {tuple(sorted(map(int, pair))) for pair in ScipyVoronoi(sites).ridge_points}


class TestSmallInputs:
    """Test the base cases of the recursion."""

    def test_empty(self):
        diagram = build([])
        assert diagram.face_count() == 0
        assert diagram.hull() == []
        assert diagram.adjacency() == set()

    def test_single_site(self):
        diagram = build([[3.0, 4.0]])
        assert diagram.face_count() == 1
        assert diagram.face(0).edge_count == 0
        assert diagram.hull() == [0]
        assert not diagram.face(0).is_bounded()

    def test_two_sites(self):
        diagram = build([[5.0, 1.0], [1.0, 3.0]])
        assert diagram.sites[0].x == 1.0
        assert list(diagram.input_indices) == [1, 0]
        assert diagram.hull() == [0, 1]
        assert diagram.neighbors(0) == [1]
        assert diagram.neighbors(1) == [0]

        edge = diagram.face(0).first_edge()
        p = edge.line.anchor
        assert p.x == pytest.approx(3.0)
        assert p.y == pytest.approx(2.0)

    def test_triangle(self):
        diagram = build([[0.0, 0.0], [4.0, 1.0], [1.0, 3.0]])
        assert rotate_to_min(diagram.hull()) == [0, 1, 2]
        assert diagram.adjacency() == {(0, 1), (0, 2), (1, 2)}

        for face in diagram.faces:
            assert face.edge_count == 2
            assert not face.is_bounded()
            vertices = face.vertices()
            assert len(vertices) == 1
            assert vertices[0].x == pytest.approx(41 / 22)
            assert vertices[0].y == pytest.approx(23 / 22)

    def test_cocircular_quad(self):
        angles = 0.3 + np.arange(4) * math.pi / 2
        sites = np.column_stack([np.cos(angles), np.sin(angles)])
        diagram = build(sites)

        # consecutive sites around the circle share an edge, opposite ones do not
        adjacency = input_adjacency(diagram)
        assert adjacency == {(0, 1), (1, 2), (2, 3), (0, 3)}
        for face in diagram.faces:
            assert face.edge_count == 2
            for vertex in face.vertices():
                assert math.hypot(*vertex) == pytest.approx(0.0, abs=1e-9)


class TestWorkedExamples:
    """Test small hand-checked layouts, including axis-aligned ones."""

    def test_horizontal_pair(self):
        diagram = build([[0.0, 0.0], [10.0, 0.0]])
        assert diagram.face_count() == 2
        for face in diagram.faces:
            assert face.edge_count == 1
        line = diagram.face(0).first_edge().line
        assert line.anchor == (5.0, 0.0)
        assert line.direction.x == pytest.approx(0.0)
        assert abs(line.direction.y) == pytest.approx(1.0)
        assert diagram.hull_points() == [(0.0, 0.0), (10.0, 0.0)]

    def test_isosceles_triangle(self):
        diagram = build([[0.0, 0.0], [10.0, 0.0], [5.0, 10.0]])
        assert diagram.hull_points() == [(0.0, 0.0), (5.0, 10.0), (10.0, 0.0)]
        for face in diagram.faces:
            assert face.edge_count == 2
            assert not face.is_bounded()
            (vertex,) = face.vertices()
            assert vertex.x == pytest.approx(5.0)
            assert vertex.y == pytest.approx(3.75)

    def test_square(self):
        diagram = build([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
        assert rotate_to_min(input_hull(diagram)) == [0, 3, 2, 1]
        assert input_adjacency(diagram) == {(0, 1), (1, 2), (2, 3), (0, 3)}
        for face in diagram.faces:
            assert face.edge_count == 2
            assert face.vertices() == [(pytest.approx(5.0), pytest.approx(5.0))]


class TestCollinear:
    """Test sites on a common line."""

    @pytest.mark.parametrize("n", [3, 4, 5, 8])
    def test_strips(self, n):
        sites = np.array([[i, 2.0 * i] for i in range(n)], dtype=float)
        diagram = build(sites)

        assert diagram.adjacency() == {(i, i + 1) for i in range(n - 1)}
        assert diagram.face(0).edge_count == 1
        assert diagram.face(n - 1).edge_count == 1
        for i in range(1, n - 1):
            assert diagram.face(i).edge_count == 2
        assert not any(face.is_bounded() for face in diagram.faces)

    @pytest.mark.parametrize("n", [3, 4, 5, 8])
    def test_out_and_back_hull(self, n):
        sites = np.array([[i, 2.0 * i] for i in range(n)], dtype=float)
        hull = build(sites).hull()

        assert len(hull) == 2 * n - 2
        assert set(hull) == set(range(n))
        start = hull.index(0)
        walk = hull[start:] + hull[:start]
        assert walk == list(range(n)) + list(range(n - 2, 0, -1))


class TestAgainstReference:
    """Compare random diagrams with scipy and a brute-force hull."""

    @pytest.mark.parametrize("n,seed", [(5, 1), (20, 2), (100, 3), (500, 4)])
    def test_adjacency_matches_scipy(self, n, seed):
        sites = random_sites(n, seed)
        assert input_adjacency(build(sites)) == scipy_adjacency(sites)

    @pytest.mark.parametrize("n,seed", [(n, seed) for n in (300, 500, 1000) for seed in range(20)])
    def test_many_seeds_match_scipy(self, n, seed):
        sites = random_sites(n, seed)
        diagram = build(sites)
        assert input_adjacency(diagram) == scipy_adjacency(sites)
        assert diagram.edge_count() == 2 * len(diagram.adjacency())

    @pytest.mark.parametrize("n,seed", [(4, 5), (30, 6), (300, 7)])
    def test_hull_matches_scipy(self, n, seed):
        sites = random_sites(n, seed)
        diagram = build(sites)
        # scipy returns counter-clockwise vertices
        expected = [int(i) for i in ConvexHull(sites).vertices[::-1]]
        assert rotate_to_min(input_hull(diagram)) == rotate_to_min(expected)

    @pytest.mark.parametrize("n,seed", [(6, 8), (50, 9)])
    def test_hull_matches_gift_wrapping(self, n, seed):
        sites = random_sites(n, seed)
        diagram = build(sites)
        assert rotate_to_min(input_hull(diagram)) == rotate_to_min(gift_wrap(sites))

    def test_bounded_iff_interior(self):
        sites = random_sites(200, 10)
        diagram = build(sites)
        hull = set(diagram.hull())
        for face in diagram.faces:
            assert face.is_bounded() == (face.index not in hull)


class TestScaleInvariance:
    """Test that the units of the coordinates do not change the diagram."""

    @pytest.mark.parametrize("scale", [1e-9, 1e-6, 1e6])
    @pytest.mark.parametrize("seed", range(10))
    def test_adjacency_unchanged(self, scale, seed):
        sites = random_sites(200, seed + 40)
        reference = scipy_adjacency(sites)
        assert input_adjacency(build(sites)) == reference
        assert input_adjacency(build(sites * scale)) == reference

    @pytest.mark.parametrize("scale", [1e-9, 1e6])
    def test_hull_unchanged(self, scale):
        sites = random_sites(300, 50)
        assert input_hull(build(sites * scale)) == input_hull(build(sites))

    def test_translated_far_from_origin(self):
        sites = random_sites(200, 51)
        assert input_adjacency(build(sites + 1e6)) == scipy_adjacency(sites)


class TestDiagramProperties:
    """Test structural properties of a finished diagram."""

    @pytest.fixture(scope="class")
    def diagram(self):
        return build(random_sites(150, 11))

    def test_neighbor_symmetry(self, diagram):
        for face in diagram.faces:
            for edge in face.edges():
                mirror = edge.neighbor_edge()
                assert mirror.is_valid()
                assert mirror.neighbor_edge() == edge
                assert mirror.face is edge.neighbor_face()
                assert face.index in mirror.face.neighbor_indices()

    def test_ring_closure(self, diagram):
        for face in diagram.faces:
            edge = face.first_edge()
            for _ in range(face.edge_count):
                edge = edge.next_edge()
            assert edge == face.first_edge()
            assert sum(1 for _ in face.edges()) == face.edge_count

    def test_sites_right_of_edges(self, diagram):
        for face in diagram.faces:
            for edge in face.edges():
                d, a = edge.line.direction, edge.line.anchor
                assert d.x * (face.site.y - a.y) - d.y * (face.site.x - a.x) < 0

    def test_edges_are_bisectors(self, diagram):
        for face in diagram.faces:
            for edge in face.edges():
                other = edge.neighbor_face().site
                a = edge.line.anchor
                assert math.dist(a, face.site) == pytest.approx(math.dist(a, other), rel=1e-6)

    def test_vertices_are_empty_circle_centers(self, diagram):
        sites = np.array(diagram.sites)
        for face in diagram.faces:
            for vertex in face.vertices():
                distances = np.hypot(sites[:, 0] - vertex.x, sites[:, 1] - vertex.y)
                own = math.dist(vertex, face.site)
                assert distances.min() == pytest.approx(own, rel=1e-6)
                assert np.sum(np.isclose(distances, own, rtol=1e-6)) >= 3

    def test_clockwise_rings(self, diagram):
        for face in diagram.faces:
            if not face.is_bounded():
                continue
            vertices = np.array(face.vertices())
            x, y = vertices[:, 0], vertices[:, 1]
            assert np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)) < 0

    def test_edge_count_matches_adjacency(self, diagram):
        assert diagram.edge_count() == 2 * len(diagram.adjacency())

    def test_sealed(self, diagram):
        a, b = diagram.face(0), diagram.face(1)
        with pytest.raises(DiagramSealedError):
            a.insert_edge(create_perp_from_segment(b.site, a.site), b)

    def test_face_index_out_of_range(self, diagram):
        with pytest.raises(IndexError):
            diagram.face(diagram.face_count())


class TestOrdering:
    """Test input order handling."""

    def test_permutation_invariance(self):
        sites = random_sites(60, 12)
        shuffled = sites[np.random.default_rng(13).permutation(len(sites))]

        def coordinate_adjacency(diagram):
            points = diagram.sites
            return {frozenset((points[a], points[b])) for a, b in diagram.adjacency()}

        assert coordinate_adjacency(build(sites)) == coordinate_adjacency(build(shuffled))

    def test_presorted(self):
        sites = random_sites(40, 14)
        sites = sites[np.argsort(sites[:, 0])]
        sorted_build = build(sites, presorted=True)
        assert list(sorted_build.input_indices) == list(range(40))
        assert sorted_build.adjacency() == build(sites).adjacency()

    def test_input_indices_map_back(self):
        sites = random_sites(25, 15)
        diagram = build(sites)
        for face in diagram.faces:
            np.testing.assert_array_equal(sites[diagram.input_indices[face.index]],
                                          np.array(face.site))

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Voronoi(np.zeros((4, 3)))


class TestExport:
    """Test dictionary export."""

    def test_to_dict(self):
        sites = random_sites(12, 16, size=100.0)
        diagram = build(sites)
        data = diagram.to_dict()

        assert set(data) == {"sites", "input_indices", "hull", "faces"}
        assert len(data["faces"]) == 12
        face = data["faces"][0]
        assert set(face) == {"index", "input_index", "site", "bounded", "neighbors", "edges"}
        assert all(edge["neighbor"] is not None for edge in face["edges"])
        json.dumps(data)

    def test_to_dict_with_polygons(self):
        sites = random_sites(12, 17, size=100.0)
        data = build(sites).to_dict(bounds=(0.0, 0.0, 100.0, 100.0))
        for face in data["faces"]:
            assert len(face["polygon"]) >= 3
        json.dumps(data)
