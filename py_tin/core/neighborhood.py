"""Walks around a vertex of the mesh."""

from typing import List, Optional, Tuple

import structlog

from .geometry import Point
from .triangle import MeshTopologyError, Triangle, TriangleMesh

logger = structlog.get_logger()


def _corner_position(t: Triangle, vertex: Point) -> int:
    for position, corner in enumerate(t.corners()):
        if corner.x == vertex.x and corner.y == vertex.y:
            return position
    raise MeshTopologyError(f"{vertex} is not a corner of {t!r}")


def ccw_neighbor(t: Triangle, vertex: Point) -> int:
    # across the edge that ends at the vertex
    position = _corner_position(t, vertex)
    return (t.ca_next, t.ab_next, t.bc_next)[position]


def cw_neighbor(t: Triangle, vertex: Point) -> int:
    # across the edge that starts at the vertex
    position = _corner_position(t, vertex)
    return (t.ab_next, t.bc_next, t.ca_next)[position]


def next_corner(t: Triangle, vertex: Point) -> Point:
    """Corner following ``vertex`` in the triangle's winding."""
    corners = t.corners()
    return corners[(_corner_position(t, vertex) + 1) % 3]


def previous_corner(t: Triangle, vertex: Point) -> Point:
    corners = t.corners()
    return corners[(_corner_position(t, vertex) + 2) % 3]


def triangle_neighborhood(mesh: TriangleMesh, first: Triangle, vertex: Point) -> Optional[List[Triangle]]:
    """
    Triangles sharing ``vertex``, in counter-clockwise order from ``first``.

    Returns ``None`` when the walk reaches a halfplane, which means the
    vertex is on the convex hull and has no closed neighborhood.
    """
    if first is None or first.halfplane or not first.is_corner(vertex):
        return None

    triangles = [first]
    current = first
    for _ in range(len(mesh)):
        following = mesh[ccw_neighbor(current, vertex)]
        if following is first:
            return triangles
        if following.halfplane:
            return None
        triangles.append(following)
        current = following

    logger.error("Neighborhood walk did not close", triangle=first.index, x=vertex.x, y=vertex.y)
    raise MeshTopologyError(f"Neighborhood of {vertex} around {first!r} does not close")


def vertex_fan(mesh: TriangleMesh, triangle: Triangle, vertex: Point) -> Tuple[List[Triangle], bool]:
    """
    Every filled triangle around ``vertex``, counter-clockwise.

    Works for hull vertices too: the fan then starts right after one hull
    edge and ends right before the other. The flag tells whether the fan is
    closed.
    """
    if triangle.halfplane:
        triangle = mesh[triangle.ab_next]

    closed = triangle_neighborhood(mesh, triangle, vertex)
    if closed is not None:
        return closed, True

    current = triangle
    for _ in range(len(mesh)):
        previous = mesh[cw_neighbor(current, vertex)]
        if previous.halfplane:
            break
        current = previous
    else:
        raise MeshTopologyError(f"Fan of {vertex} never reaches the hull")

    fan = [current]
    for _ in range(len(mesh)):
        following = mesh[ccw_neighbor(current, vertex)]
        if following.halfplane:
            return fan, False
        fan.append(following)
        current = following
    raise MeshTopologyError(f"Fan of {vertex} never reaches the hull")


def connected_vertices(mesh: TriangleMesh, triangle: Optional[Triangle], vertex: Point) -> Optional[List[Point]]:
    """
    Vertices joined to ``vertex`` by a mesh edge, counter-clockwise.

    ``triangle`` must have ``vertex`` as a corner, otherwise ``None`` is
    returned.
    """
    if triangle is None or not triangle.is_corner(vertex):
        return None
    if triangle.halfplane and mesh[triangle.ab_next].halfplane:
        # still a collinear chain
        return None

    fan, closed = vertex_fan(mesh, triangle, vertex)
    result = [next_corner(t, vertex) for t in fan]
    if not closed:
        result.append(previous_corner(fan[-1], vertex))
    return result
