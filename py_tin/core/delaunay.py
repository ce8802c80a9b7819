"""
Incremental Delaunay triangulation.

Points are inserted one at a time. Each insertion locates the point, splits
the containing triangle (or extends the convex hull) and then restores the
Delaunay property by flipping edges. The exterior of the hull is represented
by halfplane nodes, so locating a point outside the hull still returns a
node of the mesh.

Degenerate input is expected for terrain data: duplicate points are ignored,
all-collinear prefixes of the input are kept in a chain of halfplane pairs
until the first point off the line arrives, and points falling exactly on a
hull edge split that edge.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Set, Tuple, Union

import numpy as np
import structlog

from ..config import Settings, settings
from . import locator, neighborhood, voronoi
from .geometry import BoundingBox, Point, PointLike, as_point, distance_xy
from .predicates import PointLinePosition, point_line_test
from .triangle import MeshTopologyError, Triangle, TriangleMesh

logger = structlog.get_logger()

# positions that end a hull-extension walk: the new point cannot see the edge
_HULL_WALK_STOP = frozenset({
    PointLinePosition.RIGHT,
    PointLinePosition.BEHIND_B,
    PointLinePosition.INFRONT_OF_A,
    PointLinePosition.ERROR,
})


@dataclass
class TriangulationOptions:
    """Per-instance triangulation options."""
    voronoi_ray_length: float = voronoi.DEFAULT_RAY_LENGTH
    validate_topology: bool = False

    @classmethod
    def from_settings(cls, config: Settings) -> "TriangulationOptions":
        return cls(
            voronoi_ray_length=config.voronoi_ray_length,
            validate_topology=config.validate_topology,
        )


class DelaunayTriangulation:
    """
    Delaunay triangulation built by incremental insertion.

    Intended for large terrain-like point sets (thousands to hundreds of
    thousands of points). Point location walks the mesh from the most
    recently created triangle and takes O(sqrt(n)) expected steps.

    Not thread safe: a single caller must own the instance.
    """

    def __init__(self, options: Optional[TriangulationOptions] = None):
        self.options = options or TriangulationOptions.from_settings(settings)
        self._reset()

    def _reset(self) -> None:
        self.mesh = TriangleMesh()
        self.start_triangle: Optional[Triangle] = None
        self.start_triangle_hull: Optional[Triangle] = None
        self.all_collinear = True
        self.mod_count = 0
        self.topology_mod_count = 0

        self._vertices: List[Point] = []
        self._vertex_keys: Set[Tuple[float, float]] = set()
        self._bounding_box: Optional[BoundingBox] = None
        self._last_generation = 0

        # ends of the collinear chain, only used before the first real triangle
        self._first_point: Optional[Point] = None
        self._last_point: Optional[Point] = None
        self._first_t: Optional[Triangle] = None
        self._last_t: Optional[Triangle] = None

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    def triangulate(self, points: Union[Iterable[PointLike], np.ndarray, None]) -> List[Triangle]:
        """
        Build a fresh triangulation of ``points``.

        Duplicate points (same x and y) are ignored. Returns every filled
        triangle, or an empty list when fewer than three distinct points
        were given or all of them are collinear.

        Args:
            points: Points, coordinate sequences or an (N, 2) / (N, 3) array

        Returns:
            Filled triangles in breadth-first order from the start triangle
        """
        self._reset()
        if points is None:
            return []

        if isinstance(points, np.ndarray):
            points = np.asarray(points, dtype=float)
            if points.size == 0:
                points = points.reshape(0, 2)
            else:
                points = points.reshape(-1, points.shape[-1])
        else:
            points = list(points)
        logger.info("Starting triangulation", points=len(points))

        for point in points:
            self.insert_point(point)

        triangles: List[Triangle] = []
        if len(self._vertices) > 2 and not self.all_collinear:
            triangles = self.triangles()

        if self.options.validate_topology:
            report = self.validate()
            if not report["valid"]:
                logger.error("Triangulation failed validation", **report)
                raise MeshTopologyError(f"Mesh invariants violated: {report}")

        logger.info("Triangulation complete",
                    vertices=len(self._vertices),
                    duplicates=self.mod_count - self.topology_mod_count,
                    triangles=len(triangles),
                    all_collinear=self.all_collinear)
        return triangles

    def insert_point(self, point: Optional[PointLike]) -> None:
        """
        Insert one point.

        ``None`` and points already present (same x and y) are ignored.
        """
        p = as_point(point)
        if p is None:
            return

        self.mod_count += 1
        if p.key in self._vertex_keys:
            return

        self._vertex_keys.add(p.key)
        self._vertices.append(p)
        self._update_bounding_box(p)
        self.topology_mod_count += 1
        self._last_generation = self.mod_count

        if self.all_collinear:
            t = self._insert_collinear(p)
        else:
            t = self._insert_non_collinear(p)

        if t is not None:
            self._restore_delaunay(t)

    def _update_bounding_box(self, p: Point) -> None:
        if self._bounding_box is None:
            self._bounding_box = BoundingBox.from_point(p)
        else:
            self._bounding_box.include(p)

    def _insert_non_collinear(self, p: Point) -> Triangle:
        t = locator.find(self.mesh, self.start_triangle, p)
        if t.halfplane:
            self.start_triangle = self._extend_outside(t, p)
        else:
            self.start_triangle = self._extend_inside(t, p)
        return self.start_triangle

    def _insert_collinear(self, p: Point) -> Optional[Triangle]:
        count = len(self._vertices)
        if count == 1:
            self._first_point = p
            return None
        if count == 2:
            self._start_triangulation(self._first_point, p)
            return None

        position = point_line_test(self._first_point, self._last_point, p)
        if position == PointLinePosition.LEFT:
            start = self.mesh[self._first_t.ab_next]
        elif position == PointLinePosition.RIGHT:
            start = self._first_t
        else:
            self._insert_collinear_point(p, position)
            return None

        self.start_triangle = self._extend_outside(start, p)
        self.all_collinear = False
        logger.debug("Collinear chain promoted to a mesh", vertices=count)
        return self.start_triangle

    def _start_triangulation(self, p1: Point, p2: Point) -> None:
        """Two halfplanes back to back on the segment p1-p2."""
        ps, pb = (p1, p2) if p1.is_less(p2) else (p2, p1)
        first = self.mesh.add_halfplane(pb, ps)
        other = self.mesh.add_halfplane(ps, pb)
        first.ab_next = first.bc_next = first.ca_next = other.index
        other.ab_next = other.bc_next = other.ca_next = first.index

        self._first_t = first
        self._last_t = first
        self._first_point = first.b
        self._last_point = first.a
        self.start_triangle_hull = first

    def _insert_collinear_point(self, p: Point, position: PointLinePosition) -> None:
        """
        Splice ``p`` into the collinear chain.

        The chain runs from ``_first_point`` (smallest in x, y order) to
        ``_last_point``. ``_first_t`` and ``_last_t`` are the halfplanes on
        the decreasing side of the chain at each end.
        """
        mesh = self.mesh

        if position == PointLinePosition.INFRONT_OF_A:
            first = self._first_t
            t = mesh.add_halfplane(self._first_point, p)
            tp = mesh.add_halfplane(p, self._first_point)
            twin = mesh[first.ab_next]
            t.ab_next, tp.ab_next = tp.index, t.index
            t.bc_next, tp.ca_next = tp.index, t.index
            t.ca_next, first.bc_next = first.index, t.index
            tp.bc_next, twin.ca_next = twin.index, tp.index
            self._first_t = t
            self._first_point = p

        elif position == PointLinePosition.BEHIND_B:
            last = self._last_t
            t = mesh.add_halfplane(p, self._last_point)
            tp = mesh.add_halfplane(self._last_point, p)
            twin = mesh[last.ab_next]
            t.ab_next, tp.ab_next = tp.index, t.index
            t.bc_next, last.ca_next = last.index, t.index
            t.ca_next, tp.bc_next = tp.index, t.index
            tp.ca_next, twin.bc_next = twin.index, tp.index
            self._last_t = t
            self._last_point = p

        elif position == PointLinePosition.ON_SEGMENT:
            u = self._first_t
            while p.is_greater(u.a):
                u = mesh[u.ca_next]
            twin = mesh[u.ab_next]
            t = mesh.add_halfplane(p, u.b)
            tp = mesh.add_halfplane(u.b, p)
            u.b = p
            twin.a = p

            t.ab_next, tp.ab_next = tp.index, t.index
            t.bc_next = u.bc_next
            mesh[u.bc_next].ca_next = t.index
            t.ca_next, u.bc_next = u.index, t.index
            tp.ca_next = twin.ca_next
            mesh[twin.ca_next].bc_next = tp.index
            tp.bc_next, twin.ca_next = twin.index, tp.index
            if self._first_t is u:
                self._first_t = t

    def _extend_inside(self, t: Triangle, p: Point) -> Triangle:
        """Split ``t`` into three triangles around ``p``; returns one of them."""
        h = self._treat_degeneracy_inside(t, p)
        if h is not None:
            return h

        mesh = self.mesh
        h1 = mesh.add_triangle(t.c, t.a, p)
        h2 = mesh.add_triangle(t.b, t.c, p)
        t.c = p
        t.update_circumcircle()

        h1.ab_next, h1.bc_next, h1.ca_next = t.ca_next, t.index, h2.index
        h2.ab_next, h2.bc_next, h2.ca_next = t.bc_next, h1.index, t.index
        mesh[h1.ab_next].switch_neighbors(t.index, h1.index)
        mesh[h2.ab_next].switch_neighbors(t.index, h2.index)
        t.bc_next = h2.index
        t.ca_next = h1.index
        return t

    def _treat_degeneracy_inside(self, t: Triangle, p: Point) -> Optional[Triangle]:
        """A point on a hull edge extends the hull from that edge instead."""
        on_segment = PointLinePosition.ON_SEGMENT
        mesh = self.mesh
        if mesh[t.ab_next].halfplane and point_line_test(t.b, t.a, p) == on_segment:
            return self._extend_outside(mesh[t.ab_next], p)
        if mesh[t.bc_next].halfplane and point_line_test(t.c, t.b, p) == on_segment:
            return self._extend_outside(mesh[t.bc_next], p)
        if mesh[t.ca_next].halfplane and point_line_test(t.a, t.c, p) == on_segment:
            return self._extend_outside(mesh[t.ca_next], p)
        return None

    def _extend_outside(self, t: Triangle, p: Point) -> Triangle:
        """
        Add ``p`` outside the hull, starting from the halfplane ``t``.

        Returns a filled triangle having ``p`` as its ``c`` corner.
        """
        mesh = self.mesh
        if point_line_test(t.a, t.b, p) == PointLinePosition.ON_SEGMENT:
            # p splits the hull edge: a flat triangle on the edge plus a new
            # halfplane; the flip pass turns the flat triangle into two
            dg = mesh.add_triangle(t.a, t.b, p)
            hp = mesh.add_halfplane(p, t.b)
            t.b = p
            dg.ab_next = t.ab_next
            mesh[dg.ab_next].switch_neighbors(t.index, dg.index)
            dg.bc_next, hp.ab_next = hp.index, dg.index
            dg.ca_next, t.ab_next = t.index, dg.index
            hp.bc_next = t.bc_next
            mesh[hp.bc_next].ca_next = hp.index
            hp.ca_next, t.bc_next = t.index, hp.index
            return dg

        ccw_end = self._extend_counterclock(t, p)
        cw_end = self._extend_clock(t, p)
        ccw_end.bc_next = cw_end.index
        cw_end.ca_next = ccw_end.index
        self.start_triangle_hull = cw_end
        return mesh[cw_end.ab_next]

    def _extend_counterclock(self, t: Triangle, p: Point) -> Triangle:
        """Fan ``p`` over the visible halfplanes from ``t`` along ``ca_next``."""
        mesh = self.mesh
        while True:
            t.halfplane = False
            t.c = p
            t.update_circumcircle()

            tca = mesh[t.ca_next]
            if point_line_test(tca.a, tca.b, p) in _HULL_WALK_STOP:
                nt = mesh.add_halfplane(t.a, p)
                nt.ab_next, t.ca_next = t.index, nt.index
                nt.ca_next, tca.bc_next = tca.index, nt.index
                return nt
            t = tca

    def _extend_clock(self, t: Triangle, p: Point) -> Triangle:
        """Fan ``p`` over the visible halfplanes from ``t`` along ``bc_next``."""
        mesh = self.mesh
        while True:
            t.halfplane = False
            t.c = p
            t.update_circumcircle()

            tbc = mesh[t.bc_next]
            if point_line_test(tbc.a, tbc.b, p) in _HULL_WALK_STOP:
                nt = mesh.add_halfplane(p, t.b)
                nt.ab_next, t.bc_next = t.index, nt.index
                nt.bc_next, tbc.ca_next = tbc.index, nt.index
                return nt
            t = tbc

    def _restore_delaunay(self, t: Triangle) -> None:
        """Flip-test every triangle of the fan around the new point ``t.c``."""
        generation = self.mod_count
        flips = 0
        tt = t
        while True:
            flips += self._flip(tt, generation, flips)
            tt = self.mesh[tt.ca_next]
            if tt is t or tt.halfplane:
                break

    def _flip(self, t: Triangle, generation: int, flips_so_far: int) -> int:
        """
        Legalise the ``a-b`` edge of ``t`` and of every triangle a flip creates.

        All triangles handled here have the new point as their ``c`` corner,
        so every flip adds an edge at the new point and never removes one.
        The number of flips in a generation is therefore below the vertex
        count; exceeding it means the mesh is corrupt.
        """
        mesh = self.mesh
        limit = len(self._vertices)
        flips = 0
        pending = [t]
        while pending:
            t = pending.pop()
            t.mod_counter = generation
            u = mesh[t.ab_next]
            if u.halfplane or not u.circumcircle_contains(t.c):
                continue

            if t.a == u.a:
                opposite, v_ab, t_ab = u.b, u.bc_next, u.ab_next
            elif t.a == u.b:
                opposite, v_ab, t_ab = u.c, u.ca_next, u.bc_next
            elif t.a == u.c:
                opposite, v_ab, t_ab = u.a, u.ab_next, u.ca_next
            else:
                logger.error("Flip found no shared vertex", triangle=t.index, neighbor=u.index)
                raise MeshTopologyError(f"Error in flip: {t!r} and {u!r} share no vertex")

            flips += 1
            if flips + flips_so_far > limit:
                logger.error("Flip pass did not converge", generation=generation, flips=flips)
                raise MeshTopologyError(f"Flip pass for generation {generation} did not converge")

            # u's slot is reused for the second triangle of the flipped pair
            v = u
            t_bc = t.bc_next
            v.a, v.b, v.c = opposite, t.b, t.c
            v.ab_next, v.bc_next, v.ca_next = v_ab, t_bc, t.index
            v.mod_counter = generation
            v.update_circumcircle()
            mesh[t_bc].switch_neighbors(t.index, v.index)

            t.b = opposite
            t.ab_next = t_ab
            t.bc_next = v.index
            mesh[t_ab].switch_neighbors(v.index, t.index)
            t.update_circumcircle()

            pending.append(v)
            pending.append(t)
        return flips

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> List[Point]:
        return list(self._vertices)

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles())

    def triangles(self) -> List[Triangle]:
        """All filled triangles, breadth-first from the start triangle."""
        if self.start_triangle is None or self.all_collinear:
            return []

        mesh = self.mesh
        result: List[Triangle] = []
        front = deque([self.start_triangle])
        while front:
            t = front.popleft()
            if t.mark:
                continue
            t.mark = True
            result.append(t)
            for index in t.neighbors():
                neighbor = mesh[index]
                if not neighbor.mark and not neighbor.halfplane:
                    front.append(neighbor)

        for t in result:
            t.mark = False
        return result

    def last_updated_triangles(self) -> List[Triangle]:
        """Filled triangles created or changed by the latest insertion."""
        generation = self._last_generation
        if not generation:
            return []
        return [t for t in self.mesh if not t.halfplane and t.mod_counter == generation]

    def find(self, point: Optional[PointLike], start: Optional[Triangle] = None) -> Optional[Triangle]:
        """
        Triangle containing ``point``, or the halfplane crossed when leaving the hull.

        The walk starts at ``start`` or, by default, at the start triangle.
        """
        p = as_point(point)
        if start is None:
            start = self.start_triangle
        return locator.find(self.mesh, start, p)

    def contains(self, point: Optional[PointLike]) -> bool:
        """True iff ``point`` falls inside the convex hull."""
        t = self.find(point)
        return t is not None and not t.halfplane

    def height_at(self, point: Optional[PointLike]) -> Optional[float]:
        """
        Height interpolated linearly over the triangle containing ``point``.

        Raises:
            ValueError: if the point is outside the convex hull
        """
        p = as_point(point)
        if p is None:
            return None
        t = self.find(p)
        if t is None or t.halfplane:
            raise ValueError(f"Point ({p.x}, {p.y}) is outside the triangulation")
        return t.z_value(p)

    def interpolate(self, point: Optional[PointLike]) -> Optional[Point]:
        """``point`` with its z replaced by the interpolated height."""
        p = as_point(point)
        if p is None:
            return None
        return Point(p.x, p.y, self.height_at(p))

    def heights_at(self, points: Union[Iterable[PointLike], np.ndarray]) -> np.ndarray:
        """
        Interpolated heights for many query points.

        Each walk starts where the previous one ended, so queries ordered
        along a grid or a profile stay cheap. Points outside the hull get NaN.
        """
        queries = np.atleast_2d(np.asarray(points, dtype=float))
        heights = np.full(len(queries), np.nan)
        if self.start_triangle is None:
            return heights

        last = self.start_triangle
        for i, row in enumerate(queries):
            p = Point(row[0], row[1])
            t = locator.find(self.mesh, last, p)
            last = t
            if not t.halfplane:
                heights[i] = t.z_value(p)
        return heights

    def bounding_box(self) -> Optional[BoundingBox]:
        """Bounds over every inserted point, or ``None`` before the first insert."""
        if self._bounding_box is None:
            return None
        return BoundingBox(self._bounding_box.min_point, self._bounding_box.max_point)

    def nearest_existing_point(self, target: Optional[PointLike]) -> Optional[Point]:
        """
        The corner of the triangle located at ``target`` closest to it in XY.

        Before a mesh exists (fewer than three points or all collinear) every
        vertex is considered.
        """
        p = as_point(target)
        if p is None or not self._vertices:
            return None

        t = self.find(p)
        candidates = t.corners() if t is not None else self._vertices
        return min(candidates, key=lambda corner: distance_xy(corner, p))

    def convex_hull_vertices(self) -> Iterator[Point]:
        """
        Hull corners in hull-cycle order.

        Each call returns a new generator. Points lying on the straight line
        through their two hull neighbors are not corners and are skipped.
        """
        if self.start_triangle_hull is None:
            return
        mesh = self.mesh
        for h in mesh.hull_cycle(self.start_triangle_hull):
            previous = mesh[h.ca_next]
            if point_line_test(previous.a, h.b, h.a) != PointLinePosition.ON_SEGMENT:
                yield h.a

    def convex_hull_size(self) -> int:
        return sum(1 for _ in self.convex_hull_vertices())

    def neighborhood(self, triangle: Triangle, vertex: PointLike) -> Optional[List[Triangle]]:
        """Closed fan of triangles around ``vertex``; ``None`` for hull vertices."""
        return neighborhood.triangle_neighborhood(self.mesh, triangle, as_point(vertex))

    def connected_vertices(self, point: Optional[PointLike]) -> Optional[List[Point]]:
        """Vertices sharing an edge with ``point``; ``None`` if it is not a vertex."""
        p = as_point(point)
        if p is None:
            return None
        return neighborhood.connected_vertices(self.mesh, self.find(p), p)

    def voronoi_cell(self, triangle: Triangle, vertex: PointLike) -> List[Point]:
        """Voronoi cell polygon (or hull ray) for ``triangle`` and its corner ``vertex``."""
        return voronoi.voronoi_cell(self.mesh, triangle, as_point(vertex),
                                    self.options.voronoi_ray_length)

    def voronoi_cell_at(self, point: Optional[PointLike]) -> Optional[List[Point]]:
        """Voronoi cell of the vertex at ``point``; ``None`` if it is not a vertex."""
        p = as_point(point)
        if p is None:
            return None
        return voronoi.voronoi_cell_at(self.mesh, self.find(p), p,
                                       self.options.voronoi_ray_length)

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Index form of the mesh.

        Returns:
            (vertices, triangles): an (N, 3) float array of x, y, z in
            insertion order and an (M, 3) int array of counter-clockwise
            vertex indices
        """
        vertices = np.array([[p.x, p.y, p.z] for p in self._vertices], dtype=float).reshape(-1, 3)
        index_of = {p.key: i for i, p in enumerate(self._vertices)}
        triangles = np.array(
            [[index_of[t.a.key], index_of[t.b.key], index_of[t.c.key]] for t in self.triangles()],
            dtype=np.int64,
        ).reshape(-1, 3)
        return vertices, triangles

    def validate(self) -> dict:
        """Structural diagnostics of the mesh, see :meth:`TriangleMesh.validate`."""
        return self.mesh.validate(self.start_triangle_hull)
