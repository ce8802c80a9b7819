"""Tests for point location."""

import pytest
import numpy as np
from py_tin.core.delaunay import DelaunayTriangulation
from py_tin.core.geometry import Point
from py_tin.core.locator import find, find_next2
from py_tin.core.predicates import PointLinePosition, point_line_test
from py_tin.core.triangle import MeshTopologyError


class TestFind:
    """Test walking the mesh toward a query point."""

    @pytest.fixture
    def triangulation(self):
        rng = np.random.default_rng(3)
        dt = DelaunayTriangulation()
        dt.triangulate(rng.uniform(0, 100, size=(300, 2)))
        return dt

    def test_inside_points(self, triangulation):
        """Test that interior queries end in a containing triangle."""
        rng = np.random.default_rng(4)
        for x, y in rng.uniform(20, 80, size=(100, 2)):
            p = Point(x, y)
            t = find(triangulation.mesh, triangulation.start_triangle, p)
            assert not t.halfplane
            assert t.contains(p)

    def test_outside_points(self, triangulation):
        """Test that queries beyond the hull end in a halfplane facing them."""
        for p in [Point(-50, 50), Point(150, 50), Point(50, -50), Point(50, 150), Point(-10, -10)]:
            t = find(triangulation.mesh, triangulation.start_triangle, p)
            assert t.halfplane
            assert point_line_test(t.a, t.b, p) == PointLinePosition.LEFT

    def test_any_start_node(self, triangulation):
        p = Point(50, 50)
        for start in list(triangulation.mesh)[::25]:
            t = find(triangulation.mesh, start, p)
            assert not t.halfplane
            assert t.contains(p)

    def test_vertex_query(self, triangulation):
        vertex = triangulation.vertices[10]
        t = find(triangulation.mesh, triangulation.start_triangle, vertex)
        assert not t.halfplane
        assert t.is_corner(vertex)

    def test_none(self, triangulation):
        assert find(triangulation.mesh, triangulation.start_triangle, None) is None
        assert find(triangulation.mesh, None, Point(1, 1)) is None

    def test_find_next2_leaves_halfplane(self, triangulation):
        h = triangulation.mesh.halfplanes[0]
        t = find_next2(triangulation.mesh, h)
        assert not t.halfplane
        assert t.index == h.ab_next

    def test_corrupt_mesh_does_not_loop_forever(self, triangulation):
        mesh = triangulation.mesh
        t = triangulation.start_triangle
        # every edge of t now leads back to t
        t.ab_next = t.bc_next = t.ca_next = t.index
        with pytest.raises(MeshTopologyError):
            find(mesh, t, Point(1e6, 1e6))
