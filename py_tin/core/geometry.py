"""Point, circle and bounding box value types used by the triangulation."""

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np


class Point(NamedTuple):
    """A 2D position carrying a height value.

    Only ``x`` and ``y`` take part in the planar geometry; ``z`` rides along
    and is used for height interpolation.
    """
    x: float
    y: float
    z: float = 0.0

    @property
    def key(self) -> tuple:
        """Ordering and de-duplication key, ``(x, y)``."""
        return (self.x, self.y)

    def is_less(self, other: "Point") -> bool:
        return (self.x, self.y) < (other.x, other.y)

    def is_greater(self, other: "Point") -> bool:
        return (self.x, self.y) > (other.x, other.y)


PointLike = Union[Point, Sequence[float], np.ndarray]


def as_point(value: Optional[PointLike]) -> Optional[Point]:
    """Coerce a point-like value to a :class:`Point`.

    Accepts a ``Point``, a 2- or 3-element sequence, or a NumPy row.
    ``None`` passes through unchanged.
    """
    if value is None or isinstance(value, Point):
        return value
    coords = [float(v) for v in value]
    if len(coords) == 2:
        return Point(coords[0], coords[1])
    if len(coords) == 3:
        return Point(coords[0], coords[1], coords[2])
    raise ValueError(f"Expected 2 or 3 coordinates, got {len(coords)}")


def distance_xy(p: Point, q: Point) -> float:
    """Euclidean distance in the XY plane."""
    return math.hypot(p.x - q.x, p.y - q.y)


@dataclass(frozen=True)
class Circle:
    """Circumcircle of a triangle."""
    center: Point
    radius: float

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.radius)


@dataclass
class BoundingBox:
    """Axis-aligned box over every inserted point (x, y and z)."""
    min_point: Point
    max_point: Point

    @staticmethod
    def from_point(p: Point) -> "BoundingBox":
        return BoundingBox(p, p)

    def include(self, p: Point) -> None:
        """Grow the box so it covers ``p``."""
        lo, hi = self.min_point, self.max_point
        self.min_point = Point(min(lo.x, p.x), min(lo.y, p.y), min(lo.z, p.z))
        self.max_point = Point(max(hi.x, p.x), max(hi.y, p.y), max(hi.z, p.z))

    def contains_xy(self, p: Point) -> bool:
        return (self.min_point.x <= p.x <= self.max_point.x
                and self.min_point.y <= p.y <= self.max_point.y)

    @property
    def width(self) -> float:
        return self.max_point.x - self.min_point.x

    @property
    def height(self) -> float:
        return self.max_point.y - self.min_point.y
