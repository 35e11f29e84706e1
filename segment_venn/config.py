"""Layout and reconciliation settings.

Everything the planner and the reconciliation engine can be tuned with lives
here as frozen dataclasses, so a diagram is fully described by its counts,
its hints and these two objects.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, fields
from typing import Any, Mapping

__all__ = ["InferencePolicy", "LayoutConfig", "ReconcileOptions", "DEFAULT_SEPARATOR"]

DEFAULT_SEPARATOR = "_AND_"


class InferencePolicy(str, enum.Enum):
    """How a missing pairwise intersection is filled in."""

    SUBSET = "subset"
    HINTED = "hinted"
    INDEPENDENT = "independent"


@dataclass(frozen=True)
class ReconcileOptions:
    """Options for turning raw counts into admissible specs.

    Attributes:
        separator: Token joining set names in a composite label.
        policy: Gap inference policy for pairs without an explicit count.
    """

    separator: str = DEFAULT_SEPARATOR
    policy: InferencePolicy = InferencePolicy.SUBSET

    def __post_init__(self) -> None:
        if not isinstance(self.separator, str) or not self.separator:
            raise ValueError("separator must be a non-empty string")
        # accept plain strings ("subset") as well as enum members
        object.__setattr__(self, "policy", InferencePolicy(self.policy))


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas parameters and tunables of the layout planner.

    Attributes:
        width: Canvas width in abstract units (pixels for SVG renderers).
        height: Canvas height.
        fill_fraction: Share of the half-canvas the largest circle may take.
        margin: Gap between disjoint circles and padding around the diagram.
        ring_overlap: Fraction of adjacent radii that ring neighbours overlap.
        inner_ring_fraction: Ring radius cap, relative to an outer circle.
        intersect_pull: Inward pull of a ring circle that declares
            ``intersects_with``, relative to its own radius.
        idle_pull: Inward pull of other ring circles, relative to
            ``intersect_pull``.
        adjacency_overlap_fraction: Share of the smaller set reported for an
            overlap that has no reconciled count.
        triple_reduction: Shrink factor for the triple-region circle.
        tolerance: Relative tolerance of the lens-distance bisection.
        max_iterations: Iteration cap of the lens-distance bisection.
        lens_samples: Points per arc when sampling lens outlines.
        optimize_iterations: Iteration cap of the optimized strategy.
    """

    width: float = 600.0
    height: float = 600.0
    fill_fraction: float = 0.9
    margin: float = 10.0
    ring_overlap: float = 0.15
    inner_ring_fraction: float = 0.4
    intersect_pull: float = 0.4
    idle_pull: float = 0.3
    adjacency_overlap_fraction: float = 0.3
    triple_reduction: float = 0.8
    tolerance: float = 1e-3
    max_iterations: int = 40
    lens_samples: int = 24
    optimize_iterations: int = 400

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if not _finite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive number, got {value!r}")
        if not _finite(self.fill_fraction) or not 0 < self.fill_fraction <= 1:
            raise ValueError(f"fill_fraction must be in (0, 1], got {self.fill_fraction!r}")
        if not _finite(self.margin) or self.margin < 0:
            raise ValueError(f"margin must be >= 0, got {self.margin!r}")
        for name in (
            "ring_overlap",
            "inner_ring_fraction",
            "intersect_pull",
            "idle_pull",
            "adjacency_overlap_fraction",
            "triple_reduction",
        ):
            value = getattr(self, name)
            if not _finite(value) or not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value!r}")
        if not _finite(self.tolerance) or self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance!r}")
        for name in ("max_iterations", "lens_samples", "optimize_iterations"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    @property
    def half_extent(self) -> float:
        """Half of the shorter canvas side."""
        return min(self.width, self.height) / 2

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LayoutConfig":
        """Build a config from a JSON-like mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown layout option(s): {', '.join(unknown)}")
        return cls(**dict(data))


def _finite(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
