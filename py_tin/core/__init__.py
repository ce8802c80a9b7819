"""
Core triangulation functionality.
"""

from .geometry import Point, Circle, BoundingBox
from .predicates import PointLinePosition, orient2d, in_circle, point_line_test, circumcircle
from .triangle import Triangle, TriangleMesh, MeshTopologyError, NO_NEIGHBOR
from .delaunay import DelaunayTriangulation, TriangulationOptions

__all__ = ['Point', 'Circle', 'BoundingBox',
           'PointLinePosition', 'orient2d', 'in_circle', 'point_line_test', 'circumcircle',
           'Triangle', 'TriangleMesh', 'MeshTopologyError', 'NO_NEIGHBOR',
           'DelaunayTriangulation', 'TriangulationOptions']
