"""Tests for walks around mesh vertices."""

import math

import pytest
from py_tin import DelaunayTriangulation, Point
from py_tin.core.neighborhood import triangle_neighborhood, vertex_fan
from py_tin.core.predicates import orient2d


@pytest.fixture
def hexagon():
    """A center point surrounded by six points on the unit circle."""
    ring = [(math.cos(k * math.pi / 3), math.sin(k * math.pi / 3)) for k in range(6)]
    dt = DelaunayTriangulation()
    dt.triangulate([(0.0, 0.0)] + ring)
    return dt


class TestNeighborhood:
    """Test the closed triangle fan around a vertex."""

    def test_interior_vertex(self, hexagon):
        center = Point(0.0, 0.0)
        t = hexagon.find(center)
        fan = hexagon.neighborhood(t, center)
        assert len(fan) == 6
        assert fan[0] is t
        assert len({tri.index for tri in fan}) == 6
        assert all(tri.is_corner(center) for tri in fan)

    def test_fan_is_counter_clockwise(self, hexagon):
        center = Point(0.0, 0.0)
        fan = hexagon.neighborhood(hexagon.find(center), center)
        for current, following in zip(fan, fan[1:] + fan[:1]):
            assert current.circumcircle.center != following.circumcircle.center
            assert orient2d(center, current.circumcircle.center, following.circumcircle.center) > 0

    def test_hull_vertex_has_no_closed_neighborhood(self, hexagon):
        corner = Point(1.0, 0.0)
        t = hexagon.find(corner)
        assert hexagon.neighborhood(t, corner) is None

    def test_vertex_not_a_corner(self, hexagon):
        t = hexagon.find(Point(0.0, 0.0))
        assert triangle_neighborhood(hexagon.mesh, t, Point(5.0, 5.0)) is None

    def test_halfplane_start(self, hexagon):
        h = hexagon.mesh.halfplanes[0]
        assert triangle_neighborhood(hexagon.mesh, h, h.a) is None


class TestVertexFan:
    """Test fans that may be open at the hull."""

    def test_hull_vertex_fan(self, hexagon):
        corner = Point(1.0, 0.0)
        fan, closed = vertex_fan(hexagon.mesh, hexagon.find(corner), corner)
        assert not closed
        assert len(fan) == 2

    def test_fan_from_halfplane(self, hexagon):
        h = hexagon.mesh.halfplanes[0]
        fan, closed = vertex_fan(hexagon.mesh, h, h.b)
        assert not closed
        assert len(fan) == 2


class TestConnectedVertices:
    """Test vertices joined by an edge."""

    def test_center(self, hexagon):
        center = Point(0.0, 0.0)
        connected = hexagon.connected_vertices(center)
        assert len(connected) == 6
        assert {p.key for p in connected} == {p.key for p in hexagon.vertices[1:]}
        for current, following in zip(connected, connected[1:] + connected[:1]):
            assert orient2d(center, current, following) > 0

    def test_hull_vertex(self, hexagon):
        corner = Point(1.0, 0.0)
        connected = hexagon.connected_vertices(corner)
        assert len(connected) == 3
        assert (0.0, 0.0) in {p.key for p in connected}

    def test_not_a_vertex(self, hexagon):
        assert hexagon.connected_vertices(Point(0.1, 0.1)) is None
        assert hexagon.connected_vertices(None) is None

    def test_collinear_chain(self):
        dt = DelaunayTriangulation()
        dt.triangulate([(0, 0), (1, 0), (2, 0)])
        assert dt.connected_vertices((1, 0)) is None
