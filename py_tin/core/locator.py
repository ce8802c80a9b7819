"""Point location by walking the mesh from a start node toward the query."""

from typing import Optional

import structlog

from .geometry import Point
from .predicates import PointLinePosition, point_line_test
from .triangle import NO_NEIGHBOR, MeshTopologyError, Triangle, TriangleMesh

logger = structlog.get_logger()

_RIGHT = PointLinePosition.RIGHT


def find_next1(mesh: TriangleMesh, p: Point, t: Triangle) -> Optional[Triangle]:
    """
    Next node of the walk from the filled triangle ``t``.

    Steps across an edge that has ``p`` on its right, preferring filled
    neighbors over halfplanes. ``None`` means ``p`` is inside ``t``.
    """
    ab, bc, ca = mesh[t.ab_next], mesh[t.bc_next], mesh[t.ca_next]
    ab_right = point_line_test(t.a, t.b, p) == _RIGHT
    bc_right = point_line_test(t.b, t.c, p) == _RIGHT
    ca_right = point_line_test(t.c, t.a, p) == _RIGHT

    if ab_right and not ab.halfplane:
        return ab
    if bc_right and not bc.halfplane:
        return bc
    if ca_right and not ca.halfplane:
        return ca
    if ab_right:
        return ab
    if bc_right:
        return bc
    if ca_right:
        return ca
    return None


def find_next2(mesh: TriangleMesh, t: Triangle) -> Optional[Triangle]:
    """Any filled triangle adjacent to the halfplane ``t``."""
    for index in t.neighbors():
        if index == NO_NEIGHBOR:
            continue
        neighbor = mesh[index]
        if not neighbor.halfplane:
            return neighbor
    return None


def find(mesh: TriangleMesh, start: Optional[Triangle], p: Optional[Point]) -> Optional[Triangle]:
    """
    Locate ``p`` starting the walk at ``start``.

    Returns the filled triangle containing ``p`` or, when ``p`` is outside
    the convex hull, the halfplane whose edge the walk crossed. Expected
    O(sqrt(n)) steps on a well-shaped Delaunay mesh.
    """
    if p is None or start is None:
        return None

    current = start
    if current.halfplane:
        following = find_next2(mesh, current)
        if following is None:
            return current
        current = following

    # a visibility walk on a Delaunay mesh never revisits a triangle
    for _ in range(len(mesh) + 1):
        following = find_next1(mesh, p, current)
        if following is None:
            return current
        if following.halfplane:
            return following
        current = following

    logger.error("Point location walk did not terminate", x=p.x, y=p.y, start=start.index)
    raise MeshTopologyError(f"Point location for {p} did not terminate")
