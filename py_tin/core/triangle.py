"""
Triangle nodes and the index-addressed mesh that stores them.

Neighbor links are integer indices into :class:`TriangleMesh`, so rewiring
is an index swap and a dangling link shows up as an out-of-range index
instead of a stale object.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import structlog

from .geometry import Circle, Point
from .predicates import PointLinePosition, in_circle, orient2d, point_line_test
from .predicates import circumcircle as compute_circumcircle

logger = structlog.get_logger()

NO_NEIGHBOR = -1


class MeshTopologyError(RuntimeError):
    """The neighbor structure of the mesh is inconsistent."""


@dataclass(eq=False)
class Triangle:
    """
    A filled triangle or a halfplane node of the mesh.

    Filled triangles wind counter-clockwise: ``c`` lies left of ``a -> b``.
    ``ab_next``, ``bc_next`` and ``ca_next`` index the node across the
    corresponding edge.

    A halfplane node stands for the exterior beyond one convex-hull edge.
    Its ``a -> b`` runs clockwise around the hull, ``c`` is ``None``,
    ``ab_next`` is the filled triangle across the edge, ``bc_next`` the next
    halfplane (sharing ``b``) and ``ca_next`` the previous one (sharing
    ``a``).
    """
    index: int
    a: Point
    b: Point
    c: Optional[Point] = None
    ab_next: int = NO_NEIGHBOR
    bc_next: int = NO_NEIGHBOR
    ca_next: int = NO_NEIGHBOR
    halfplane: bool = False
    circumcircle: Optional[Circle] = None
    mark: bool = False
    mod_counter: int = 0

    def __repr__(self) -> str:
        kind = "Halfplane" if self.halfplane else "Triangle"
        corners = ", ".join(f"({p.x:g}, {p.y:g})" for p in self.corners())
        return f"{kind}#{self.index}[{corners}]"

    def corners(self) -> Tuple[Point, ...]:
        if self.halfplane or self.c is None:
            return (self.a, self.b)
        return (self.a, self.b, self.c)

    def neighbors(self) -> Tuple[int, int, int]:
        return (self.ab_next, self.bc_next, self.ca_next)

    def is_corner(self, p: Point) -> bool:
        """True if ``p`` coincides (in x, y) with one of the corners."""
        return any(q.x == p.x and q.y == p.y for q in self.corners())

    def update_circumcircle(self) -> Optional[Circle]:
        if self.halfplane or self.c is None:
            self.circumcircle = None
        else:
            self.circumcircle = compute_circumcircle(self.a, self.b, self.c)
        return self.circumcircle

    def circumcircle_contains(self, p: Point) -> bool:
        """Strict in-circle test; halfplanes contain nothing."""
        if self.halfplane:
            return False
        if self.circumcircle is None:
            self.update_circumcircle()
        if self.circumcircle.is_unbounded:
            return True
        return in_circle(self.a, self.b, self.c, p) > 0

    def contains(self, p: Point) -> bool:
        """
        Closed point-in-triangle test.

        For a halfplane, true when ``p`` lies strictly on the exterior side
        of its hull edge.
        """
        if self.halfplane:
            return point_line_test(self.a, self.b, p) == PointLinePosition.LEFT
        right = PointLinePosition.RIGHT
        return (point_line_test(self.a, self.b, p) != right
                and point_line_test(self.b, self.c, p) != right
                and point_line_test(self.c, self.a, p) != right)

    def z_value(self, q: Point) -> float:
        """Height of the triangle's plane above ``q``."""
        if self.halfplane:
            raise ValueError(f"Cannot interpolate height outside the convex hull: {q}")
        a, b, c = self.a, self.b, self.c
        for corner in (a, b, c):
            if corner.x == q.x and corner.y == q.y:
                return corner.z

        # normal of the plane through a, b, c
        ux, uy, uz = b.x - a.x, b.y - a.y, b.z - a.z
        vx, vy, vz = c.x - a.x, c.y - a.y, c.z - a.z
        nx = uy * vz - uz * vy
        ny = uz * vx - ux * vz
        nz = ux * vy - uy * vx
        if nz == 0.0:
            raise ValueError(f"Degenerate triangle, cannot interpolate height: {self!r}")
        return a.z - (nx * (q.x - a.x) + ny * (q.y - a.y)) / nz

    def switch_neighbors(self, old: int, new: int) -> None:
        """Replace the link to ``old`` with a link to ``new``."""
        if self.ab_next == old:
            self.ab_next = new
        elif self.bc_next == old:
            self.bc_next = new
        elif self.ca_next == old:
            self.ca_next = new
        else:
            logger.error("Neighbor link not found", triangle=self.index, old=old, new=new)
            raise MeshTopologyError(
                f"{self!r} has no link to #{old} (links: {self.neighbors()})"
            )

    def edges(self) -> List[Tuple[str, Point, Point]]:
        """(link attribute, start, end) for each edge that has a neighbor slot."""
        if self.halfplane:
            return [("ab_next", self.a, self.b)]
        return [("ab_next", self.a, self.b),
                ("bc_next", self.b, self.c),
                ("ca_next", self.c, self.a)]


class TriangleMesh:
    """Arena of triangle and halfplane nodes addressed by index."""

    def __init__(self):
        self._nodes: List[Triangle] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Triangle]:
        return iter(self._nodes)

    def __getitem__(self, index: int) -> Triangle:
        if index < 0 or index >= len(self._nodes):
            logger.error("Dangling neighbor index", index=index, size=len(self._nodes))
            raise MeshTopologyError(f"No mesh node at index {index}")
        return self._nodes[index]

    def add_triangle(self, a: Point, b: Point, c: Point) -> Triangle:
        """Create a filled triangle, reordering b and c to wind counter-clockwise."""
        if point_line_test(a, b, c) == PointLinePosition.RIGHT:
            b, c = c, b
        node = Triangle(len(self._nodes), a, b, c)
        node.update_circumcircle()
        self._nodes.append(node)
        return node

    def add_halfplane(self, a: Point, b: Point) -> Triangle:
        node = Triangle(len(self._nodes), a, b, halfplane=True)
        self._nodes.append(node)
        return node

    @property
    def filled(self) -> List[Triangle]:
        return [t for t in self._nodes if not t.halfplane]

    @property
    def halfplanes(self) -> List[Triangle]:
        return [t for t in self._nodes if t.halfplane]

    def hull_cycle(self, start: Triangle) -> Iterator[Triangle]:
        """Halfplane nodes in ``bc_next`` order, starting at ``start``."""
        current = start
        for _ in range(len(self._nodes)):
            yield current
            current = self[current.bc_next]
            if current is start:
                return
        logger.error("Hull cycle does not close", start=start.index)
        raise MeshTopologyError(f"Hull cycle starting at {start!r} does not close")

    def validate(self, hull_start: Optional[Triangle] = None) -> Dict:
        """
        Check the structural invariants of the mesh.

        - every filled triangle winds counter-clockwise;
        - every link points at a node that links back across the same edge;
        - the halfplanes form one closed cycle.

        Returns a dictionary of diagnostics; ``valid`` summarises them.
        """
        bad_orientation: List[int] = []
        degenerate: List[int] = []
        bad_neighbors: List[Tuple[int, str, str]] = []
        size = len(self._nodes)

        for node in self._nodes:
            if not node.halfplane:
                side = orient2d(node.a, node.b, node.c)
                if side < 0:
                    bad_orientation.append(node.index)
                elif side == 0:
                    degenerate.append(node.index)

            for attr, p, q in node.edges():
                other_index = getattr(node, attr)
                if not (0 <= other_index < size):
                    bad_neighbors.append((node.index, attr, "dangling"))
                    continue
                other = self._nodes[other_index]
                shared = [
                    other_attr for other_attr, op, oq in other.edges()
                    if getattr(other, other_attr) == node.index and {op.key, oq.key} == {p.key, q.key}
                ]
                if not shared:
                    bad_neighbors.append((node.index, attr, f"no_backlink_from_{other_index}"))

            if node.halfplane:
                for attr, expected in (("bc_next", "ca_next"), ("ca_next", "bc_next")):
                    other_index = getattr(node, attr)
                    if not (0 <= other_index < size) or not self._nodes[other_index].halfplane:
                        bad_neighbors.append((node.index, attr, "hull_link_not_halfplane"))
                    elif getattr(self._nodes[other_index], expected) != node.index:
                        bad_neighbors.append((node.index, attr, f"no_hull_backlink_from_{other_index}"))

        halfplane_count = sum(1 for t in self._nodes if t.halfplane)
        hull_ok = halfplane_count == 0
        hull_length = 0
        if hull_start is not None and not bad_neighbors:
            try:
                cycle = list(self.hull_cycle(hull_start))
            except MeshTopologyError:
                cycle = []
            hull_length = len(cycle)
            hull_ok = (hull_length == halfplane_count
                       and all(t.halfplane for t in cycle)
                       and all(self._nodes[t.bc_next].a == t.b for t in cycle))

        return {
            "triangles": size - halfplane_count,
            "halfplanes": halfplane_count,
            "hull_length": hull_length,
            "bad_orientation": bad_orientation,
            "degenerate": degenerate,
            "bad_neighbors": bad_neighbors,
            "hull_ok": hull_ok,
            "valid": not bad_orientation and not degenerate and not bad_neighbors and hull_ok,
        }
