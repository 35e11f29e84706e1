"""Diagram planner: reconciled specs in, ``Diagram`` out.

The planner owns the parts every placement strategy shares: choosing the
scale, fitting the result onto the canvas, and deriving the lens and
triple-overlap regions from the placed circles. Which strategy places the
circles is a parameter, so callers can switch between the rule-based and the
optimized layout without touching reconciliation or rendering.
"""

from __future__ import annotations

import itertools
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .config import LayoutConfig, ReconcileOptions
from .geometry import centroid, diagram_scale, intersection_points, lens_path, lens_polygon, radius_from_area
from .heuristic import HeuristicLayout, LayoutStrategy, pair_index
from .model import CircleLayout, CircleShape, Diagnostic, Diagram, IntersectionRegion, IntersectionSpec
from .optimize import OptimizedLayout
from .reconcile import Reconciliation, reconcile

__all__ = ["STRATEGIES", "get_strategy", "compute_layout", "layout_counts"]

logger = logging.getLogger(__name__)

STRATEGIES = {
    HeuristicLayout.name: HeuristicLayout,
    OptimizedLayout.name: OptimizedLayout,
}

StrategyInput = Union[LayoutStrategy, str, None]


def get_strategy(strategy: StrategyInput = None) -> LayoutStrategy:
    """Resolve a strategy instance or name; None means the heuristic one."""
    if strategy is None:
        return HeuristicLayout()
    if isinstance(strategy, LayoutStrategy):
        return strategy
    try:
        return STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"unknown layout strategy {strategy!r}; choose from {', '.join(sorted(STRATEGIES))}"
        ) from None


def compute_layout(
    reconciliation: Reconciliation,
    config: Optional[LayoutConfig] = None,
    strategy: StrategyInput = None,
) -> Diagram:
    """Lay out a reconciled input.

    Args:
        reconciliation: Output of ``reconcile`` (or ``reconcile_records``).
        config: Canvas size and tunables; defaults to ``LayoutConfig()``.
        strategy: A ``LayoutStrategy``, its name, or None for the heuristic.

    Returns:
        A new ``Diagram``. Empty input gives an empty diagram, never an error.
    """
    config = config or LayoutConfig()
    strategy = get_strategy(strategy)
    diagnostics: List[Diagnostic] = list(reconciliation.diagnostics)

    if reconciliation.is_empty:
        logger.info("Nothing to lay out")
        return Diagram(
            width=config.width,
            height=config.height,
            strategy=strategy.name,
            diagnostics=tuple(diagnostics),
        )

    sets = reconciliation.sets
    scale = diagram_scale(config.width, config.height, max(s.size for s in sets), config.fill_fraction)
    circles = strategy.place(sets, reconciliation.intersections, scale, config, diagnostics)
    recenter = all(spec.role is None for spec in sets)
    circles, scale = _fit_to_canvas(circles, scale, config, recenter)

    sizes = {spec.name: spec.size for spec in sets}
    pairwise = _pairwise_regions(circles, sizes, reconciliation.intersections, config)
    triples = _triple_regions(circles, reconciliation.intersections, scale, config)

    logger.info(
        "Laid out %d circle(s) with the %s strategy: %d lens region(s), %d triple region(s)",
        len(circles),
        strategy.name,
        len(pairwise),
        len(triples),
    )
    return Diagram(
        circles=tuple(circles),
        pairwise_regions=tuple(pairwise),
        triple_regions=tuple(triples),
        sets=tuple(sets),
        width=config.width,
        height=config.height,
        scale=scale,
        strategy=strategy.name,
        diagnostics=tuple(diagnostics),
    )


def layout_counts(
    counts: Optional[Mapping[str, Any]],
    hints: Optional[Mapping[str, Any]] = None,
    config: Optional[LayoutConfig] = None,
    options: Optional[ReconcileOptions] = None,
    strategy: StrategyInput = None,
) -> Diagram:
    """Reconcile raw counts and lay them out in one call."""
    return compute_layout(reconcile(counts, hints, options), config, strategy)


def _fit_to_canvas(
    circles: Sequence[CircleLayout],
    scale: float,
    config: LayoutConfig,
    recenter: bool,
) -> Tuple[List[CircleLayout], float]:
    """Shrink the layout uniformly if it overflows the canvas.

    Scaling positions and radii together keeps every area ratio, so lens
    areas still match their counts afterwards.
    """
    xmin = min(c.center_x - c.radius for c in circles)
    xmax = max(c.center_x + c.radius for c in circles)
    ymin = min(c.center_y - c.radius for c in circles)
    ymax = max(c.center_y + c.radius for c in circles)

    if recenter:
        sx, sy = (xmin + xmax) / 2, (ymin + ymax) / 2
        extent_w, extent_h = xmax - xmin, ymax - ymin
    else:
        # anchored on the origin, so the far side decides
        sx, sy = 0.0, 0.0
        extent_w, extent_h = 2 * max(-xmin, xmax), 2 * max(-ymin, ymax)

    avail_w = config.width - 2 * config.margin if config.width > 2 * config.margin else config.width
    avail_h = config.height - 2 * config.margin if config.height > 2 * config.margin else config.height
    factor = 1.0
    if extent_w > avail_w:
        factor = min(factor, avail_w / extent_w)
    if extent_h > avail_h:
        factor = min(factor, avail_h / extent_h)

    if factor < 1.0:
        logger.debug("Layout overflows the canvas, shrinking by %.3f", factor)
    fitted = [
        CircleLayout(
            c.set_name,
            (c.center_x - sx) * factor,
            (c.center_y - sy) * factor,
            c.radius * factor,
        )
        for c in circles
    ]
    return fitted, scale * factor


def _pairwise_regions(
    circles: Sequence[CircleLayout],
    sizes: Mapping[str, float],
    intersections: Sequence[IntersectionSpec],
    config: LayoutConfig,
) -> List[IntersectionRegion]:
    pairs = pair_index(intersections)
    regions = []
    for a, b in itertools.combinations(circles, 2):
        if a.radius <= 0 or b.radius <= 0:
            continue
        distance = math.hypot(a.center_x - b.center_x, a.center_y - b.center_y)
        if distance >= a.radius + b.radius:
            continue

        members = tuple(sorted((a.set_name, b.set_name)))
        spec = pairs.get(members)
        crossing = intersection_points(a.center, a.radius, b.center, b.radius)
        if spec is not None:
            size, estimated = spec.size, spec.inferred
        else:
            # overlap produced by placement alone, not by a count
            size = min(sizes[a.set_name], sizes[b.set_name])
            if crossing is not None:
                size *= config.adjacency_overlap_fraction
            estimated = True

        if crossing is None:
            smaller = a if a.radius <= b.radius else b
            regions.append(
                IntersectionRegion(
                    members=members,
                    approximate_size=size,
                    estimated=estimated,
                    fallback=CircleShape(smaller.center_x, smaller.center_y, smaller.radius),
                )
            )
            continue

        regions.append(
            IntersectionRegion(
                members=members,
                approximate_size=size,
                estimated=estimated,
                path=lens_path(a.center, a.radius, b.center, b.radius),
                outline=tuple(lens_polygon(a.center, a.radius, b.center, b.radius, config.lens_samples)),
            )
        )
    return regions


def _triple_regions(
    circles: Sequence[CircleLayout],
    intersections: Sequence[IntersectionSpec],
    scale: float,
    config: LayoutConfig,
) -> List[IntersectionRegion]:
    """Approximate each triple overlap with a circle at the centres' centroid.

    The true three-circle region is not solved; the centroid always lies
    inside the triangle of the member centres.
    """
    by_name: Dict[str, CircleLayout] = {c.set_name: c for c in circles}
    regions = []
    for spec in intersections:
        if spec.cardinality != 3 or not all(m in by_name for m in spec.members):
            continue
        center = centroid([by_name[m].center for m in spec.members])
        radius = radius_from_area(spec.size, scale) * config.triple_reduction
        regions.append(
            IntersectionRegion(
                members=spec.members,
                approximate_size=spec.size,
                estimated=spec.inferred,
                fallback=CircleShape(center.x, center.y, radius),
            )
        )
    return regions
