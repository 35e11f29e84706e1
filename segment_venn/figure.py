"""Render a ``Diagram`` with Plotly.

Usage::

    from segment_venn import venn
    fig = venn({"Event_1": 1200, "Event_2": 900, "Event_1_AND_Event_2": 700},
               title="Segments")
    fig.show()

Circles become shapes, lens regions become filled paths (Plotly paths have
no arcs, so the sampled outline is used), triple regions are drawn as their
centroid circle, and hover text rides on invisible marker traces because
Plotly shapes carry no hover events.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import plotly.graph_objects as go

from .config import LayoutConfig, ReconcileOptions
from .emphasis import Emphasis, EmphasisLevel, compute_emphasis
from .layout import StrategyInput, layout_counts
from .model import Diagram, IntersectionRegion, SetSpec

__all__ = ["DEFAULT_COLORS", "diagram_figure", "venn", "set_tooltip", "region_tooltip"]

_RGBA_RE = re.compile(r"rgba?\(([^)]+)\)")
_GRAY = (120, 120, 120, 1.0)

DEFAULT_COLORS: Tuple[str, ...] = (
    "#3B82F6",  # blue
    "#10B981",  # green
    "#F59E0B",  # amber
    "#8B5CF6",  # purple
    "#EF4444",  # red
    "#06B6D4",  # cyan
    "#EC4899",  # pink
    "#84CC16",  # lime
    "#6366F1",  # indigo
    "#8B5A2B",  # brown
)
TRIPLE_COLOR = "#5B21B6"
CONNECTION_COLOR = "#8B5CF6"


def _parse_rgba(color: str) -> Tuple[int, int, int, float]:
    """``(r, g, b, alpha)`` of a hex or rgb()/rgba() colour; mid gray if unparseable."""
    if not isinstance(color, str):
        return _GRAY

    color = color.strip()
    match = _RGBA_RE.match(color)
    if match:
        parts = [p.strip() for p in match.group(1).split(',')]
        r, g, b = (int(float(x)) for x in parts[:3])
        return r, g, b, float(parts[3]) if len(parts) > 3 else 1.0

    digits = color[1:] if color.startswith('#') else ''
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)
    if len(digits) == 6:
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16), 1.0
    return _GRAY


def _rgba_str(rgba: Iterable[float]) -> str:
    r, g, b, a = rgba
    return f"rgba({int(r)},{int(g)},{int(b)},{a:.3f})"


def _blend(colors: Sequence[str]) -> str:
    """Blend colors by averaging RGB and taking the max alpha."""
    parsed = [_parse_rgba(c) for c in colors]
    n = len(parsed)
    return _rgba_str((
        sum(p[0] for p in parsed) / n,
        sum(p[1] for p in parsed) / n,
        sum(p[2] for p in parsed) / n,
        max(p[3] for p in parsed),
    ))


def _derive_colors(base_color: str) -> Tuple[str, str, str]:
    """Chip background, border and a font colour readable on that background."""
    r, g, b, a = _parse_rgba(base_color)
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return (
        _rgba_str((r, g, b, min(0.85, max(0.5, a + 0.25)))),
        _rgba_str((r, g, b, 0.95)),
        "#111" if luminance > 150 else "#f5f5f5",
    )


def _with_alpha(color: str, alpha: float) -> str:
    r, g, b, _ = _parse_rgba(color)
    return _rgba_str((r, g, b, alpha))


def _darker(color: str, factor: float = 0.7) -> str:
    r, g, b, _ = _parse_rgba(color)
    return _rgba_str((r * factor, g * factor, b * factor, 1.0))


def _format_count(value: float) -> str:
    return f"{value:,.0f}"


def set_tooltip(spec: SetSpec) -> str:
    """Hover text for a set circle."""
    lines = [f"{spec.name}: {_format_count(spec.size)} users"]
    if spec.related_to:
        lines.append(f"Related: {', '.join(spec.related_to)}")
    if spec.intersects_with:
        lines.append(f"Intersects: {', '.join(spec.intersects_with)}")
    return "<br>".join(lines)


def region_tooltip(region: IntersectionRegion) -> str:
    """Hover text for a lens or triple region."""
    text = f"{' ∩ '.join(region.members)}: {_format_count(region.approximate_size)} users"
    if region.estimated:
        text += " (estimated)"
    if len(region.members) == 3:
        text = f"OVERLAPPING USERS<br>{text}"
    return text


def diagram_figure(
    diagram: Diagram,
    *,
    emphasis: Optional[Emphasis] = None,
    title: Optional[str] = None,
    colors: Sequence[str] = DEFAULT_COLORS,
    outline: str = "#333",
    font_size: int = 12,
    show_labels: bool = True,
    show_legend: Optional[bool] = None,
) -> go.Figure:
    """Create a Plotly figure for a laid-out diagram.

    Args:
        diagram: Output of ``compute_layout``
        emphasis: Selection/hover state; computed with nothing selected if None
        title: Optional title for the figure
        colors: Palette cycled over the sets in order
        outline: Fallback outline colour for circles without a palette entry
        font_size: Font size of the name chips
        show_labels: Whether to draw a name/count chip in each circle
        show_legend: Whether to show a legend (on for 2+ sets if None)

    Returns:
        Plotly Figure object
    """
    emphasis = emphasis or compute_emphasis(diagram)
    fig = go.Figure()
    palette = {
        circle.set_name: (colors[i % len(colors)] if colors else outline)
        for i, circle in enumerate(diagram.circles)
    }
    shapes: List[dict] = []

    for circle in diagram.circles:
        style = emphasis.style(circle.set_name)
        r = circle.radius * style.radius_factor
        base = palette[circle.set_name]
        shapes.append(dict(
            type="circle", xref="x", yref="y",
            x0=circle.center_x - r, y0=circle.center_y - r,
            x1=circle.center_x + r, y1=circle.center_y + r,
            line=dict(color=_darker(base), width=style.stroke_width),
            fillcolor=_with_alpha(base, style.fill_opacity),
            layer="below",
        ))

    for region in diagram.pairwise_regions:
        fill = _blend([palette[m] for m in region.members])
        opacity = 0.8 if emphasis.is_active(region.members) else 0.65
        shapes.append(_region_shape(region, _with_alpha(fill, opacity), _darker(fill)))

    for region in diagram.triple_regions:
        opacity = 0.9 if emphasis.is_active(region.members) else 0.75
        shapes.append(_region_shape(region, _with_alpha(TRIPLE_COLOR, opacity), _darker(TRIPLE_COLOR)))

    for source, target in emphasis.connections:
        a, b = diagram.circle(source), diagram.circle(target)
        shapes.append(dict(
            type="line", xref="x", yref="y",
            x0=a.center_x, y0=a.center_y, x1=b.center_x, y1=b.center_y,
            line=dict(color=CONNECTION_COLOR, width=2, dash="dash"),
            opacity=0.6,
        ))

    _add_hover_traces(fig, diagram)

    if show_legend is None:
        show_legend = len(diagram.circles) > 1
    if show_legend:
        for circle in diagram.circles:
            fig.add_trace(go.Scatter(
                x=[None], y=[None], mode="markers",
                marker=dict(size=12, color=palette[circle.set_name]),
                name=circle.set_name, showlegend=True,
            ))

    if show_labels:
        for circle in diagram.circles:
            spec = diagram.set_spec(circle.set_name)
            if spec is None or circle.radius <= 0:
                continue
            bg, border, font_color = _derive_colors(palette[circle.set_name])
            selected = emphasis.level(circle.set_name) is EmphasisLevel.SELECTED
            fig.add_annotation(
                x=circle.center_x, y=circle.center_y,
                text=f"<b>{spec.name}</b><br>{_format_count(spec.size)} users",
                showarrow=False,
                font=dict(size=font_size + (2 if selected else 0), color=font_color),
                xanchor="center", yanchor="middle", align="center",
                bordercolor=border, borderwidth=1, borderpad=4,
                bgcolor=bg, name=circle.set_name,
            )

    half_w, half_h = diagram.width / 2, diagram.height / 2
    fig.update_layout(
        shapes=shapes,
        xaxis=dict(visible=False, range=[-half_w, half_w]),
        yaxis=dict(visible=False, range=[-half_h, half_h], scaleanchor="x", scaleratio=1),
        margin=dict(l=20, r=20, t=30, b=20),
        title=title if title else None,
        showlegend=show_legend,
        hovermode="closest",
    )
    return fig


def venn(
    counts: Mapping[str, Any],
    *,
    hints: Optional[Mapping[str, Any]] = None,
    config: Optional[LayoutConfig] = None,
    options: Optional[ReconcileOptions] = None,
    strategy: StrategyInput = None,
    selected: Optional[str] = None,
    hovered: Optional[str] = None,
    **figure_kwargs: Any,
) -> go.Figure:
    """Reconcile, lay out and draw raw counts in one call.

    Extra keyword arguments go to ``diagram_figure``.
    """
    diagram = layout_counts(counts, hints, config=config, options=options, strategy=strategy)
    emphasis = compute_emphasis(diagram, selected=selected, hovered=hovered)
    return diagram_figure(diagram, emphasis=emphasis, **figure_kwargs)


def _region_shape(region: IntersectionRegion, fill: str, line: str) -> dict:
    if region.fallback is not None:
        c = region.fallback
        return dict(
            type="circle", xref="x", yref="y",
            x0=c.center_x - c.radius, y0=c.center_y - c.radius,
            x1=c.center_x + c.radius, y1=c.center_y + c.radius,
            line=dict(color=line, width=1.5), fillcolor=fill,
        )
    path = "M " + " L ".join(f"{p.x:.3f},{p.y:.3f}" for p in region.outline) + " Z"
    return dict(
        type="path", xref="x", yref="y", path=path,
        line=dict(color=line, width=1.5), fillcolor=fill,
    )


def _add_hover_traces(fig: go.Figure, diagram: Diagram) -> None:
    points = []
    for circle in diagram.circles:
        spec = diagram.set_spec(circle.set_name)
        if spec is not None:
            points.append((circle.center_x, circle.center_y, set_tooltip(spec)))
    for region in diagram.regions():
        anchor = region.anchor
        points.append((anchor.x, anchor.y, region_tooltip(region)))
    if not points:
        return
    xs, ys, texts = zip(*points)
    fig.add_trace(go.Scatter(
        x=list(xs), y=list(ys), mode="markers",
        marker=dict(size=24, opacity=0),
        hovertext=list(texts), hoverinfo="text",
        showlegend=False, name="hover",
    ))
