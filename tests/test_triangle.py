"""Tests for triangle nodes and the mesh arena."""

import pytest
import numpy as np
from py_tin.core.delaunay import DelaunayTriangulation
from py_tin.core.geometry import Point
from py_tin.core.predicates import orient2d
from py_tin.core.triangle import NO_NEIGHBOR, MeshTopologyError, Triangle, TriangleMesh


class TestTriangle:
    """Test single triangle behaviour."""

    def test_add_triangle_winds_counter_clockwise(self):
        mesh = TriangleMesh()
        t = mesh.add_triangle(Point(0, 0), Point(0, 1), Point(1, 0))
        assert orient2d(t.a, t.b, t.c) > 0
        assert t.index == 0
        assert t.neighbors() == (NO_NEIGHBOR, NO_NEIGHBOR, NO_NEIGHBOR)
        assert t.circumcircle is not None

    def test_halfplane(self):
        mesh = TriangleMesh()
        h = mesh.add_halfplane(Point(0, 0), Point(1, 0))
        assert h.halfplane
        assert h.c is None
        assert h.corners() == (Point(0, 0), Point(1, 0))
        assert h.contains(Point(0.5, 1))
        assert not h.contains(Point(0.5, -1))
        assert not h.circumcircle_contains(Point(0.5, 1))

    def test_contains_is_closed(self):
        t = TriangleMesh().add_triangle(Point(0, 0), Point(2, 0), Point(0, 2))
        assert t.contains(Point(0.5, 0.5))
        assert t.contains(Point(1, 0))
        assert t.contains(Point(0, 0))
        assert not t.contains(Point(2, 2))

    def test_circumcircle_contains(self):
        t = TriangleMesh().add_triangle(Point(0, 0), Point(2, 0), Point(0, 2))
        assert t.circumcircle_contains(Point(1, 1))
        assert not t.circumcircle_contains(Point(2, 2))  # on the circle
        assert not t.circumcircle_contains(Point(5, 5))

    def test_z_value_on_plane(self):
        """Test linear height interpolation."""
        def plane(x, y):
            return 2.0 * x - 3.0 * y + 1.0

        corners = [Point(x, y, plane(x, y)) for x, y in [(0, 0), (4, 0), (0, 4)]]
        t = TriangleMesh().add_triangle(*corners)
        assert t.z_value(Point(1, 1)) == pytest.approx(plane(1, 1))
        assert t.z_value(Point(4, 0)) == corners[1].z

    def test_z_value_of_halfplane_raises(self):
        h = TriangleMesh().add_halfplane(Point(0, 0), Point(1, 0))
        with pytest.raises(ValueError):
            h.z_value(Point(0.5, 1))

    def test_switch_neighbors(self):
        t = Triangle(0, Point(0, 0), Point(1, 0), Point(0, 1), ab_next=3, bc_next=4, ca_next=5)
        t.switch_neighbors(4, 9)
        assert t.neighbors() == (3, 9, 5)
        with pytest.raises(MeshTopologyError):
            t.switch_neighbors(42, 1)

    def test_is_corner_ignores_z(self):
        t = Triangle(0, Point(0, 0, 1), Point(1, 0), Point(0, 1))
        assert t.is_corner(Point(0, 0, 99))
        assert not t.is_corner(Point(1, 1))


class TestTriangleMesh:
    """Test the mesh arena and its diagnostics."""

    @pytest.fixture
    def triangulation(self):
        rng = np.random.default_rng(11)
        dt = DelaunayTriangulation()
        dt.triangulate(rng.uniform(0, 100, size=(60, 2)))
        return dt

    def test_dangling_index(self):
        mesh = TriangleMesh()
        with pytest.raises(MeshTopologyError):
            mesh[0]
        with pytest.raises(MeshTopologyError):
            mesh[NO_NEIGHBOR]

    def test_validate_fresh_mesh(self, triangulation):
        report = triangulation.validate()
        assert report["valid"]
        assert report["bad_neighbors"] == []
        assert report["hull_length"] == report["halfplanes"]
        assert report["triangles"] == len(triangulation.mesh.filled)

    def test_validate_detects_broken_link(self, triangulation):
        t = triangulation.mesh.filled[0]
        t.ab_next = t.bc_next
        report = triangulation.validate()
        assert not report["valid"]
        assert any(entry[0] == t.index for entry in report["bad_neighbors"])

    def test_validate_detects_bad_orientation(self, triangulation):
        t = triangulation.mesh.filled[0]
        t.b, t.c = t.c, t.b
        report = triangulation.validate()
        assert t.index in report["bad_orientation"]
        assert not report["valid"]

    def test_hull_cycle_closes(self, triangulation):
        mesh = triangulation.mesh
        cycle = list(mesh.hull_cycle(triangulation.start_triangle_hull))
        assert len(cycle) == len(mesh.halfplanes)
        for h in cycle:
            assert mesh[h.bc_next].a == h.b

    def test_open_hull_cycle_raises(self):
        mesh = TriangleMesh()
        first = mesh.add_halfplane(Point(0, 0), Point(1, 0))
        second = mesh.add_halfplane(Point(1, 0), Point(2, 0))
        first.bc_next = second.index
        second.bc_next = second.index
        with pytest.raises(MeshTopologyError):
            list(mesh.hull_cycle(first))
