"""Layout by minimising pairwise distance error.

Every pair of circles gets a target centre distance: the lens solve for
sized intersections, "at most |r1 - r2|" for containment, "at least
r1 + r2" for pairs that should not touch. Positions start from the
heuristic layout and follow the gradient of the squared error. With more
than three sets an exact solution rarely exists, so the result is the
closest arrangement found within ``optimize_iterations`` steps. Sets with a
role stay where the heuristic put them, and free sets are pulled back inside
an ``outer`` set afterwards.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import LayoutConfig
from .geometry import area_from_size, distance_for_overlap
from .heuristic import HeuristicLayout, LayoutStrategy, keep_inside, pair_index
from .model import CircleLayout, Diagnostic, IntersectionSpec, Point, Role, SetSpec

__all__ = ["OptimizedLayout"]

logger = logging.getLogger(__name__)

_EXACT, _AT_MOST, _AT_LEAST = 0, 1, 2


class OptimizedLayout(LayoutStrategy):
    name = "optimized"

    def __init__(self, seed: Optional[LayoutStrategy] = None) -> None:
        self.seed = seed or HeuristicLayout()

    def place(
        self,
        sets: Sequence[SetSpec],
        intersections: Sequence[IntersectionSpec],
        scale: float,
        config: LayoutConfig,
        diagnostics: List[Diagnostic],
    ) -> List[CircleLayout]:
        initial = self.seed.place(sets, intersections, scale, config, diagnostics)
        n = len(initial)
        if n < 2:
            return initial

        radii = np.array([c.radius for c in initial])
        # role sets keep the origin the seed gave them
        movable = np.array([spec.role is None for spec in sets], dtype=float)
        if radii.max() <= 0 or not movable.any():
            return initial
        pos = np.array([[c.center_x, c.center_y] for c in initial], dtype=float)
        target, mode = self._targets(sets, intersections, radii, scale, config)

        # separate coincident seeds so their gradient is defined
        angles = 2 * np.pi * np.arange(n) / n
        jitter = 1e-3 * radii.max() * np.column_stack((np.cos(angles), np.sin(angles)))
        pos += jitter * movable[:, None]

        stop = config.tolerance * radii.max()
        for iteration in range(config.optimize_iterations):
            diff = pos[:, None, :] - pos[None, :, :]
            dist = np.sqrt((diff ** 2).sum(axis=-1))
            err = dist - target
            err = np.where((mode == _AT_MOST) & (err < 0), 0.0, err)
            err = np.where((mode == _AT_LEAST) & (err > 0), 0.0, err)
            np.fill_diagonal(err, 0.0)
            coef = np.divide(err, dist, out=np.zeros_like(err), where=dist > 1e-12)
            step = (coef[:, :, None] * diff).sum(axis=1) / n * movable[:, None]
            pos -= step
            if np.abs(step).max() < stop:
                break
        logger.debug(
            "Optimized %d circles in %d step(s), residual %.4g",
            n,
            iteration + 1,
            float(np.sqrt((err ** 2).sum() / 2)),
        )

        centers = [Point(float(x), float(y)) for x, y in pos]
        outer_radius = max((c.radius for c, spec in zip(initial, sets) if spec.role is Role.OUTER), default=None)
        if outer_radius is not None:
            centers = [
                keep_inside(center, c.radius, outer_radius) if spec.role is None else center
                for center, c, spec in zip(centers, initial, sets)
            ]

        return [
            CircleLayout(c.set_name, center.x, center.y, c.radius)
            for c, center in zip(initial, centers)
        ]

    def _targets(
        self,
        sets: Sequence[SetSpec],
        intersections: Sequence[IntersectionSpec],
        radii: np.ndarray,
        scale: float,
        config: LayoutConfig,
    ):
        n = len(sets)
        pairs = pair_index(intersections)
        target = np.zeros((n, n))
        mode = np.full((n, n), _EXACT)
        for i in range(n):
            for j in range(i + 1, n):
                a, b = sets[i], sets[j]
                ri, rj = radii[i], radii[j]
                spec = pairs.get(tuple(sorted((a.name, b.name))))
                if spec is None:
                    if (a.role is Role.OUTER) != (b.role is Role.OUTER):
                        value, kind = abs(ri - rj), _AT_MOST
                    else:
                        value, kind = ri + rj + config.margin, _AT_LEAST
                elif spec.size <= 0:
                    value, kind = ri + rj, _AT_LEAST
                elif spec.size >= min(a.size, b.size):
                    value, kind = abs(ri - rj), _AT_MOST
                else:
                    area = area_from_size(spec.size, scale)
                    value = distance_for_overlap(ri, rj, area, config.tolerance, config.max_iterations)
                    kind = _EXACT
                target[i, j] = target[j, i] = value
                mode[i, j] = mode[j, i] = kind
        return target, mode
