"""Circle geometry for area-proportional diagrams.

Pure functions only: radius from a count, lens area of two circles, the
centre distance that produces a given lens area, and the boundary of that
lens.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

from .model import Point

__all__ = [
    "radius_from_area",
    "area_from_size",
    "diagram_scale",
    "overlap_area",
    "distance_for_overlap",
    "intersection_points",
    "lens_path",
    "lens_polygon",
    "centroid",
]


def radius_from_area(size: float, scale: float) -> float:
    """Radius of the circle standing for ``size`` items.

    ``scale`` is shared by every circle of a diagram, so areas stay
    proportional to sizes. Negative sizes give a zero radius.
    """
    return math.sqrt(max(size, 0.0)) * max(scale, 0.0)


def area_from_size(size: float, scale: float) -> float:
    """Geometric area that ``size`` items occupy at ``scale``."""
    return math.pi * max(scale, 0.0) ** 2 * max(size, 0.0)


def diagram_scale(width: float, height: float, max_size: float, fill_fraction: float) -> float:
    """Scale at which a set of ``max_size`` fills ``fill_fraction`` of the canvas.

    Returns 0 when there is nothing to draw.
    """
    if max_size <= 0:
        return 0.0
    return min(width, height) / 2 / math.sqrt(max_size) * fill_fraction


def overlap_area(r1: float, r2: float, d: float) -> float:
    """Lens area of two circles whose centres are ``d`` apart.

    The smaller disc's area when one circle contains the other, 0 when they
    are disjoint or either radius is not positive.
    """
    if r1 <= 0 or r2 <= 0 or d >= r1 + r2:
        return 0.0
    disc = math.pi * min(r1, r2) ** 2
    if d <= abs(r1 - r2):
        return disc

    # each circle contributes a circular segment cut off by the common chord
    total = 0.0
    for near, far in ((r1, r2), (r2, r1)):
        cos_half = (d * d + near * near - far * far) / (2 * d * near)
        half_angle = math.acos(max(-1.0, min(1.0, cos_half)))
        total += near * near * (half_angle - math.sin(2 * half_angle) / 2)
    return min(max(total, 0.0), disc)


def distance_for_overlap(
    r1: float,
    r2: float,
    target_area: float,
    tolerance: float = 1e-3,
    max_iterations: int = 40,
) -> float:
    """Solve for the distance between circle centers to achieve a lens area.

    The lens area falls strictly as the distance grows from ``|r1 - r2|``
    to ``r1 + r2``, so a bisection over that interval converges.

    Args:
        r1: Radius of first circle
        r2: Radius of second circle
        target_area: Desired intersection area, clamped to
            ``[0, pi * min(r1, r2)**2]``
        tolerance: Relative tolerance on the area
        max_iterations: Maximum bisection steps

    Returns:
        Distance between circle centers. ``r1 + r2`` (touching) for an empty
        target, ``|r1 - r2|`` (internally tangent) for a full one.
    """
    lo, hi = abs(r1 - r2), r1 + r2
    full = math.pi * min(r1, r2) ** 2 if min(r1, r2) > 0 else 0.0

    if target_area <= 0 or full <= 0:
        return hi
    if target_area >= full:
        return lo

    mid = (lo + hi) * 0.5
    for _ in range(max_iterations):
        mid = (lo + hi) * 0.5
        area = overlap_area(r1, r2, mid)
        if abs(area - target_area) <= tolerance * target_area:
            break
        if area > target_area:
            lo = mid
        else:
            hi = mid
    return mid


def intersection_points(
    c1: Tuple[float, float],
    r1: float,
    c2: Tuple[float, float],
    r2: float,
) -> Optional[Tuple[Point, Point]]:
    """Points where the boundaries of two circles cross.

    Returns:
        ``(left, right)`` as seen looking from ``c1`` towards ``c2``, or None
        when the circles are disjoint, nested or concentric. Callers draw the
        smaller circle in that case.
    """
    dx, dy = c2[0] - c1[0], c2[1] - c1[1]
    d = math.hypot(dx, dy)
    if d <= 1e-12 or d >= r1 + r2 or d <= abs(r1 - r2):
        return None

    a = (r1 * r1 - r2 * r2 + d * d) / (2 * d)
    h = math.sqrt(max(0.0, r1 * r1 - a * a))
    ux, uy = dx / d, dy / d
    px, py = c1[0] + a * ux, c1[1] + a * uy
    left = Point(px - h * uy, py + h * ux)
    right = Point(px + h * uy, py - h * ux)
    return left, right


def lens_path(
    c1: Tuple[float, float],
    r1: float,
    c2: Tuple[float, float],
    r2: float,
) -> Optional[str]:
    """SVG path of the lens shared by two crossing circles, or None."""
    points = intersection_points(c1, r1, c2, r2)
    if points is None:
        return None
    left, right = points
    d = math.hypot(c2[0] - c1[0], c2[1] - c1[1])
    # the arc of one circle inside the other is the long one when that
    # circle's centre sits on the far side of the chord
    large1 = 1 if (r1 * r1 - r2 * r2 + d * d) < 0 else 0
    large2 = 1 if (r2 * r2 - r1 * r1 + d * d) < 0 else 0
    return (
        f"M {left.x:.3f} {left.y:.3f} "
        f"A {r1:.3f} {r1:.3f} 0 {large1} 0 {right.x:.3f} {right.y:.3f} "
        f"A {r2:.3f} {r2:.3f} 0 {large2} 0 {left.x:.3f} {left.y:.3f} Z"
    )


def lens_polygon(
    c1: Tuple[float, float],
    r1: float,
    c2: Tuple[float, float],
    r2: float,
    samples: int = 24,
) -> List[Point]:
    """Sampled lens boundary, walking circle 1's arc then circle 2's.

    Returns an empty list when the circles do not cross.
    """
    points = intersection_points(c1, r1, c2, r2)
    if points is None:
        return []
    left, right = points
    return _arc(c1, r1, left, right, samples) + _arc(c2, r2, right, left, samples)[1:-1]


def centroid(points: List[Tuple[float, float]]) -> Point:
    n = len(points)
    return Point(sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def _arc(
    center: Tuple[float, float],
    radius: float,
    start: Point,
    end: Point,
    samples: int,
) -> List[Point]:
    """Clockwise arc from ``start`` to ``end`` (lens arcs always run that way)."""
    a0 = math.atan2(start.y - center[1], start.x - center[0])
    a1 = math.atan2(end.y - center[1], end.x - center[0])
    sweep = (a0 - a1) % (2 * math.pi)
    steps = max(samples, 2)
    return [
        Point(
            center[0] + radius * math.cos(a0 - sweep * i / steps),
            center[1] + radius * math.sin(a0 - sweep * i / steps),
        )
        for i in range(steps + 1)
    ]
