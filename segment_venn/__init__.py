"""Area-proportional Venn/Euler layouts for segment counts.

Usage::

    from segment_venn import layout_counts
    diagram = layout_counts({"Event_1": 1200, "Event_2": 900,
                             "Event_1_AND_Event_2": 700})

``reconcile`` makes raw counts drawable, ``compute_layout`` places the
circles, ``compute_emphasis`` derives selection/hover styling and
``diagram_figure``/``venn`` draw the result with Plotly.
"""

import logging

from .config import InferencePolicy, LayoutConfig, ReconcileOptions
from .emphasis import Emphasis, EmphasisLevel, compute_emphasis
from .figure import diagram_figure, venn
from .geometry import distance_for_overlap, intersection_points, overlap_area, radius_from_area
from .heuristic import HeuristicLayout, LayoutStrategy
from .layout import compute_layout, get_strategy, layout_counts
from .model import (
    CircleLayout,
    Diagnostic,
    DiagnosticCode,
    Diagram,
    IntersectionRegion,
    IntersectionSpec,
    Role,
    SetSpec,
    canonicalize,
)
from .optimize import OptimizedLayout
from .reconcile import Reconciliation, reconcile, reconcile_records, segments_from_nested

__version__ = "0.2.0"

__all__ = [
    "CircleLayout",
    "Diagnostic",
    "DiagnosticCode",
    "Diagram",
    "Emphasis",
    "EmphasisLevel",
    "HeuristicLayout",
    "InferencePolicy",
    "IntersectionRegion",
    "IntersectionSpec",
    "LayoutConfig",
    "LayoutStrategy",
    "OptimizedLayout",
    "ReconcileOptions",
    "Reconciliation",
    "Role",
    "SetSpec",
    "canonicalize",
    "compute_emphasis",
    "compute_layout",
    "diagram_figure",
    "distance_for_overlap",
    "get_strategy",
    "intersection_points",
    "layout_counts",
    "overlap_area",
    "radius_from_area",
    "reconcile",
    "reconcile_records",
    "segments_from_nested",
    "venn",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
