"""Rule-based circle placement.

The planner hands every strategy the reconciled specs and a scale; the
strategy only decides where each circle goes. ``HeuristicLayout`` picks an
arrangement from the shape of the input:

* sets with a role (``outer``/``inner``) are centred on the origin,
* two free sets share the horizontal axis at the distance that gives the
  requested lens area,
* three free sets form a triangle (first on top),
* four or more sit on a ring, nudged towards the sets they intersect with.
"""

from __future__ import annotations

import abc
import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import LayoutConfig
from .geometry import area_from_size, distance_for_overlap, radius_from_area
from .model import CircleLayout, Diagnostic, DiagnosticCode, IntersectionSpec, Point, Role, SetSpec

__all__ = ["LayoutStrategy", "HeuristicLayout", "keep_inside", "pair_distance", "pair_index"]

logger = logging.getLogger(__name__)

ORIGIN = Point(0.0, 0.0)

# top, bottom-left, bottom-right, in units of the triangle size
_TRIANGLE = (Point(0.0, 0.6), Point(-0.5, -0.4), Point(0.5, -0.4))


class LayoutStrategy(abc.ABC):
    """Places one circle per set; everything else is the planner's job."""

    name = "base"

    @abc.abstractmethod
    def place(
        self,
        sets: Sequence[SetSpec],
        intersections: Sequence[IntersectionSpec],
        scale: float,
        config: LayoutConfig,
        diagnostics: List[Diagnostic],
    ) -> List[CircleLayout]:
        """Return a ``CircleLayout`` for every set, in input order."""


def pair_index(intersections: Sequence[IntersectionSpec]) -> Dict[Tuple[str, ...], IntersectionSpec]:
    return {spec.key: spec for spec in intersections if spec.cardinality == 2}


def pair_distance(
    r1: float,
    r2: float,
    spec: Optional[IntersectionSpec],
    scale: float,
    config: LayoutConfig,
) -> float:
    """Centre distance for two circles; disjoint with a margin when unsized."""
    if spec is None:
        return r1 + r2 + config.margin
    return distance_for_overlap(
        r1,
        r2,
        area_from_size(spec.size, scale),
        tolerance=config.tolerance,
        max_iterations=config.max_iterations,
    )


class HeuristicLayout(LayoutStrategy):
    name = "heuristic"

    def place(
        self,
        sets: Sequence[SetSpec],
        intersections: Sequence[IntersectionSpec],
        scale: float,
        config: LayoutConfig,
        diagnostics: List[Diagnostic],
    ) -> List[CircleLayout]:
        radii = {spec.name: radius_from_area(spec.size, scale) for spec in sets}
        pairs = pair_index(intersections)
        free = [spec for spec in sets if spec.role is None]
        outer_radius = max((radii[s.name] for s in sets if s.role is Role.OUTER), default=None)

        centers: Dict[str, Point] = {spec.name: ORIGIN for spec in sets if spec.role is not None}
        if len(free) == 1:
            centers[free[0].name] = ORIGIN
        elif len(free) == 2:
            centers.update(self._place_pair(free, radii, pairs, scale, config))
        elif len(free) == 3:
            centers.update(self._place_triangle(free, radii, pairs, scale, config, outer_radius, diagnostics))
        elif len(free) > 3:
            centers.update(self._place_ring(free, radii, config, outer_radius))

        if outer_radius is not None:
            for spec in free:
                centers[spec.name] = keep_inside(centers[spec.name], radii[spec.name], outer_radius)

        return [
            CircleLayout(spec.name, centers[spec.name].x, centers[spec.name].y, radii[spec.name])
            for spec in sets
        ]

    def _place_pair(
        self,
        free: Sequence[SetSpec],
        radii: Mapping[str, float],
        pairs: Mapping[Tuple[str, ...], IntersectionSpec],
        scale: float,
        config: LayoutConfig,
    ) -> Dict[str, Point]:
        a, b = free
        key = tuple(sorted((a.name, b.name)))
        distance = pair_distance(radii[a.name], radii[b.name], pairs.get(key), scale, config)
        # centre the pair around x=0 for a balanced layout
        offset = distance * 0.5
        return {a.name: Point(-offset, 0.0), b.name: Point(distance - offset, 0.0)}

    def _place_triangle(
        self,
        free: Sequence[SetSpec],
        radii: Mapping[str, float],
        pairs: Mapping[Tuple[str, ...], IntersectionSpec],
        scale: float,
        config: LayoutConfig,
        outer_radius: Optional[float],
        diagnostics: List[Diagnostic],
    ) -> Dict[str, Point]:
        top, left, right = free

        def dist(p: SetSpec, q: SetSpec) -> float:
            key = tuple(sorted((p.name, q.name)))
            return pair_distance(radii[p.name], radii[q.name], pairs.get(key), scale, config)

        d_tl, d_tr, d_lr = dist(top, left), dist(top, right), dist(left, right)
        points = _triangle_from_sides(d_tl, d_tr, d_lr)
        if points is None:
            size = (radii[left.name] + radii[right.name]) * (1 - config.ring_overlap)
            if outer_radius is not None:
                size = min(size, outer_radius * config.inner_ring_fraction)
            points = tuple(Point(p.x * size, p.y * size) for p in _TRIANGLE)
            message = "pairwise distances do not form a triangle; using the fixed arrangement"
            logger.debug(message)
            diagnostics.append(
                Diagnostic(DiagnosticCode.LAYOUT_FALLBACK, message, tuple(s.name for s in free))
            )

        cx = sum(p.x for p in points) / 3
        cy = sum(p.y for p in points) / 3
        return {spec.name: Point(p.x - cx, p.y - cy) for spec, p in zip(free, points)}

    def _place_ring(
        self,
        free: Sequence[SetSpec],
        radii: Mapping[str, float],
        config: LayoutConfig,
        outer_radius: Optional[float],
    ) -> Dict[str, Point]:
        n = len(free)
        step = 2 * math.pi / n
        # first set at the top, then clockwise
        angles = [math.pi / 2 - i * step for i in range(n)]
        chords = [
            (radii[free[i].name] + radii[free[(i + 1) % n].name]) * (1 - config.ring_overlap)
            for i in range(n)
        ]
        ring = sum(chords) / n / (2 * math.sin(math.pi / n))
        if outer_radius is not None:
            ring = min(ring, outer_radius * config.inner_ring_fraction)

        index = {spec.name: i for i, spec in enumerate(free)}
        centers = {}
        for i, spec in enumerate(free):
            radius = radii[spec.name]
            angle = angles[i]
            neighbours = [index[name] for name in spec.intersects_with if name in index and name != spec.name]
            if neighbours:
                nearest = min(neighbours, key=lambda j: _angular_gap(angles[i], angles[j]))
                angle = _angular_midpoint(angles[i], angles[nearest])
                pull = config.intersect_pull * radius
            else:
                pull = config.idle_pull * config.intersect_pull * radius
            distance = max(ring - pull, 0.0)
            centers[spec.name] = Point(distance * math.cos(angle), distance * math.sin(angle))
        return centers


def _triangle_from_sides(d_tl: float, d_tr: float, d_lr: float) -> Optional[Tuple[Point, Point, Point]]:
    """Top, bottom-left and bottom-right vertices with the given side lengths."""
    if d_lr <= 1e-9 or d_tl + d_tr < d_lr or d_tl + d_lr < d_tr or d_tr + d_lr < d_tl:
        return None
    left = Point(-d_lr / 2, 0.0)
    right = Point(d_lr / 2, 0.0)
    x = (d_tl * d_tl - d_tr * d_tr) / (2 * d_lr)
    y = math.sqrt(max(0.0, d_tl * d_tl - (x + d_lr / 2) ** 2))
    return Point(x, y), left, right


def _angular_gap(a: float, b: float) -> float:
    return abs(math.atan2(math.sin(a - b), math.cos(a - b)))


def _angular_midpoint(a: float, b: float) -> float:
    x, y = math.cos(a) + math.cos(b), math.sin(a) + math.sin(b)
    if math.hypot(x, y) < 1e-9:
        return a
    return math.atan2(y, x)


def keep_inside(center: Point, radius: float, outer_radius: float) -> Point:
    """Pull a circle towards the origin until it fits inside the outer one."""
    distance = math.hypot(center.x, center.y)
    if distance + radius <= outer_radius or distance == 0:
        return center
    allowed = max(outer_radius - radius, 0.0)
    return Point(center.x * allowed / distance, center.y * allowed / distance)
