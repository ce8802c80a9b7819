"""
Voronoi cells derived from the Delaunay mesh.

The Voronoi cell of a vertex is the polygon through the circumcenters of the
triangles around it. Hull vertices have unbounded cells; their open sides
are represented by a far point along the perpendicular bisector of the hull
edge.
"""

import math
from typing import List, Optional

from .geometry import Point
from .neighborhood import ccw_neighbor, cw_neighbor, triangle_neighborhood, vertex_fan
from .triangle import NO_NEIGHBOR, Triangle, TriangleMesh

DEFAULT_RAY_LENGTH = 500.0


def _third_corner(t: Triangle, p: Point, q: Point) -> Point:
    skip = {p.key, q.key}
    for corner in t.corners():
        if corner.key not in skip:
            return corner
    raise ValueError(f"{t!r} has no corner besides {p} and {q}")


def _ray_end(edge_a: Point, edge_b: Point, inner: Triangle, ray_length: float) -> Point:
    """Far point on the bisector of a hull edge, pointing away from ``inner``."""
    dx, dy = edge_b.x - edge_a.x, edge_b.y - edge_a.y
    length = math.hypot(dx, dy)
    nx, ny = -dy / length, dx / length

    third = _third_corner(inner, edge_a, edge_b)
    if (third.x - edge_a.x) * nx + (third.y - edge_a.y) * ny > 0:
        nx, ny = -nx, -ny

    center = inner.circumcircle.center
    return Point(center.x + nx * ray_length, center.y + ny * ray_length, 0.0)


def voronoi_cell(mesh: TriangleMesh, triangle: Optional[Triangle], vertex: Point,
                 ray_length: float = DEFAULT_RAY_LENGTH) -> List[Point]:
    """
    Voronoi cell for the neighborhood given by ``triangle`` and ``vertex``.

    For a filled triangle the result is the closed polygon of circumcenters
    around ``vertex`` (empty when the vertex lies on the hull). For a
    halfplane the result is a two-point segment: the circumcenter of the
    adjacent triangle and a far point along the bisector of the hull edge.
    """
    if triangle is None:
        return []

    if not triangle.halfplane:
        neighbors = triangle_neighborhood(mesh, triangle, vertex)
        if neighbors is None:
            return []
        return [t.circumcircle.center for t in neighbors]

    neighbor = None
    for index in triangle.neighbors():
        if index != NO_NEIGHBOR and not mesh[index].halfplane:
            neighbor = mesh[index]
            break
    if neighbor is None:
        return []

    center = neighbor.circumcircle.center
    return [center, _ray_end(triangle.a, triangle.b, neighbor, ray_length)]


def voronoi_cell_at(mesh: TriangleMesh, triangle: Optional[Triangle], vertex: Point,
                    ray_length: float = DEFAULT_RAY_LENGTH) -> Optional[List[Point]]:
    """
    Voronoi cell of the mesh vertex ``vertex``.

    Interior vertices give a closed polygon. Hull vertices give an open
    polyline that starts and ends with far points on the bisectors of the
    two hull edges meeting at the vertex. ``None`` if ``vertex`` is not a
    corner of ``triangle``.
    """
    if triangle is None or triangle.halfplane or not triangle.is_corner(vertex):
        return None

    fan, closed = vertex_fan(mesh, triangle, vertex)
    centers = [t.circumcircle.center for t in fan]
    if closed:
        return centers

    first, last = fan[0], fan[-1]
    entry = mesh[cw_neighbor(first, vertex)]
    exit_ = mesh[ccw_neighbor(last, vertex)]
    return ([_ray_end(entry.a, entry.b, first, ray_length)]
            + centers
            + [_ray_end(exit_.a, exit_.b, last, ray_length)])
