"""
Incremental Delaunay triangulation of terrain points.
"""

from .core import (
    BoundingBox,
    DelaunayTriangulation,
    MeshTopologyError,
    Point,
    PointLinePosition,
    Triangle,
    TriangulationOptions,
)

__version__ = "0.1.0"

__all__ = ['BoundingBox', 'DelaunayTriangulation', 'MeshTopologyError', 'Point',
           'PointLinePosition', 'Triangle', 'TriangulationOptions']
