"""
Geometric predicates for the triangulation.

Orientation and in-circle signs are evaluated in floating point first and
re-evaluated with exact rational arithmetic whenever the floating-point
result falls inside its error bound (the static filters of Shewchuk's
adaptive predicates). Every call therefore returns the exact sign for its
inputs, which both the point locator and the flip test depend on.
"""

import math
import sys
from enum import Enum
from fractions import Fraction

from .geometry import Circle, Point

_EPSILON = sys.float_info.epsilon * 0.5
_CCW_ERRBOUND = (3.0 + 16.0 * _EPSILON) * _EPSILON
_ICC_ERRBOUND = (10.0 + 96.0 * _EPSILON) * _EPSILON


class PointLinePosition(Enum):
    """Position of a point relative to a directed segment a->b."""
    ON_SEGMENT = 0
    LEFT = 1
    RIGHT = 2
    INFRONT_OF_A = 3  # collinear, beyond a
    BEHIND_B = 4      # collinear, beyond b
    ERROR = 5         # a == b


def _sign(value) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


def _orient2d_exact(a: Point, b: Point, p: Point) -> float:
    ax, ay = Fraction(a.x), Fraction(a.y)
    bx, by = Fraction(b.x), Fraction(b.y)
    px, py = Fraction(p.x), Fraction(p.y)
    return _sign((ax - px) * (by - py) - (ay - py) * (bx - px))


def orient2d(a: Point, b: Point, p: Point) -> float:
    """
    Orientation of ``p`` relative to the directed line a->b.

    Returns a positive value when ``p`` is to the left (a, b, p
    counter-clockwise), negative when to the right and zero when the three
    points are collinear. Only the sign is meaningful.
    """
    detleft = (a.x - p.x) * (b.y - p.y)
    detright = (a.y - p.y) * (b.x - p.x)
    det = detleft - detright
    if abs(det) > _CCW_ERRBOUND * (abs(detleft) + abs(detright)):
        return det
    return _orient2d_exact(a, b, p)


def _in_circle_exact(a: Point, b: Point, c: Point, d: Point) -> float:
    dx, dy = Fraction(d.x), Fraction(d.y)
    adx, ady = Fraction(a.x) - dx, Fraction(a.y) - dy
    bdx, bdy = Fraction(b.x) - dx, Fraction(b.y) - dy
    cdx, cdy = Fraction(c.x) - dx, Fraction(c.y) - dy
    det = ((adx * adx + ady * ady) * (bdx * cdy - cdx * bdy)
           + (bdx * bdx + bdy * bdy) * (cdx * ady - adx * cdy)
           + (cdx * cdx + cdy * cdy) * (adx * bdy - bdx * ady))
    return _sign(det)


def in_circle(a: Point, b: Point, c: Point, d: Point) -> float:
    """
    In-circle test for ``d`` against the circle through a, b, c.

    For a counter-clockwise triple the result is positive when ``d`` lies
    strictly inside the circle, negative outside and zero on it.
    """
    adx, ady = a.x - d.x, a.y - d.y
    bdx, bdy = b.x - d.x, b.y - d.y
    cdx, cdy = c.x - d.x, c.y - d.y

    bdxcdy, cdxbdy = bdx * cdy, cdx * bdy
    cdxady, adxcdy = cdx * ady, adx * cdy
    adxbdy, bdxady = adx * bdy, bdx * ady
    alift = adx * adx + ady * ady
    blift = bdx * bdx + bdy * bdy
    clift = cdx * cdx + cdy * cdy

    det = (alift * (bdxcdy - cdxbdy)
           + blift * (cdxady - adxcdy)
           + clift * (adxbdy - bdxady))
    permanent = ((abs(bdxcdy) + abs(cdxbdy)) * alift
                 + (abs(cdxady) + abs(adxcdy)) * blift
                 + (abs(adxbdy) + abs(bdxady)) * clift)
    if abs(det) > _ICC_ERRBOUND * permanent:
        return det
    return _in_circle_exact(a, b, c, d)


def point_line_test(a: Point, b: Point, p: Point) -> PointLinePosition:
    """
    Classify ``p`` against the directed segment a->b.

    Collinear points are placed along the first non-zero axis of ``b - a``
    (x, then y). Degenerate segments (``a == b`` in the plane) give
    ``ERROR``.
    """
    side = orient2d(a, b, p)
    if side > 0:
        return PointLinePosition.LEFT
    if side < 0:
        return PointLinePosition.RIGHT

    dx = b.x - a.x
    dy = b.y - a.y
    if dx > 0:
        if p.x < a.x:
            return PointLinePosition.INFRONT_OF_A
        if b.x < p.x:
            return PointLinePosition.BEHIND_B
        return PointLinePosition.ON_SEGMENT
    if dx < 0:
        if p.x > a.x:
            return PointLinePosition.INFRONT_OF_A
        if b.x > p.x:
            return PointLinePosition.BEHIND_B
        return PointLinePosition.ON_SEGMENT
    if dy > 0:
        if p.y < a.y:
            return PointLinePosition.INFRONT_OF_A
        if b.y < p.y:
            return PointLinePosition.BEHIND_B
        return PointLinePosition.ON_SEGMENT
    if dy < 0:
        if p.y > a.y:
            return PointLinePosition.INFRONT_OF_A
        if b.y > p.y:
            return PointLinePosition.BEHIND_B
        return PointLinePosition.ON_SEGMENT
    return PointLinePosition.ERROR


def circumcircle(a: Point, b: Point, c: Point) -> Circle:
    """
    Circle through three points.

    Collinear triples have no finite circumcircle; they get an unbounded
    circle centered on ``a``, which contains every other point.
    """
    if orient2d(a, b, c) == 0:
        return Circle(a, math.inf)

    bx, by = b.x - a.x, b.y - a.y
    cx, cy = c.x - a.x, c.y - a.y
    b_len = bx * bx + by * by
    c_len = cx * cx + cy * cy
    den = 2.0 * (bx * cy - by * cx)
    if den == 0.0:
        return Circle(a, math.inf)
    ux = (cy * b_len - by * c_len) / den
    uy = (bx * c_len - cx * b_len) / den
    return Circle(Point(a.x + ux, a.y + uy, 0.0), math.hypot(ux, uy))
