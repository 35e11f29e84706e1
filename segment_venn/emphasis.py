"""Selection and hover state for a laid-out diagram.

Emphasis is recomputed on every pointer interaction, so it only reads the
``Diagram`` and never touches geometry.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .model import Diagram

__all__ = ["EmphasisLevel", "CircleEmphasis", "Emphasis", "compute_emphasis"]


class EmphasisLevel(enum.IntEnum):
    NORMAL = 0
    RELATED = 1
    INTERSECTING = 2
    HIGHLIGHTED = 3
    HOVERED = 4
    SELECTED = 5


@dataclass(frozen=True)
class CircleEmphasis:
    level: EmphasisLevel
    fill_opacity: float
    stroke_width: float
    radius_factor: float = 1.0


STYLES = {
    EmphasisLevel.NORMAL: CircleEmphasis(EmphasisLevel.NORMAL, 0.25, 2.0),
    EmphasisLevel.RELATED: CircleEmphasis(EmphasisLevel.RELATED, 0.25, 2.0),
    EmphasisLevel.INTERSECTING: CircleEmphasis(EmphasisLevel.INTERSECTING, 0.3, 2.0),
    EmphasisLevel.HIGHLIGHTED: CircleEmphasis(EmphasisLevel.HIGHLIGHTED, 0.35, 2.5),
    EmphasisLevel.HOVERED: CircleEmphasis(EmphasisLevel.HOVERED, 0.85, 2.0, 1.1),
    EmphasisLevel.SELECTED: CircleEmphasis(EmphasisLevel.SELECTED, 0.4, 3.0),
}


@dataclass(frozen=True)
class Emphasis:
    """View state derived from the selected and hovered set names.

    Attributes:
        circles: Styling per set name, one entry per circle.
        regions: Member tuples of the regions touching the focused sets.
        connections: ``(selected, related)`` pairs to draw as guide lines.
    """

    selected: Optional[str] = None
    hovered: Optional[str] = None
    circles: Dict[str, CircleEmphasis] = field(default_factory=dict)
    regions: Tuple[Tuple[str, ...], ...] = ()
    connections: Tuple[Tuple[str, str], ...] = ()

    def level(self, name: str) -> EmphasisLevel:
        style = self.circles.get(name)
        return style.level if style else EmphasisLevel.NORMAL

    def style(self, name: str) -> CircleEmphasis:
        return self.circles.get(name, STYLES[EmphasisLevel.NORMAL])

    def is_active(self, members: Tuple[str, ...]) -> bool:
        return tuple(members) in self.regions


def compute_emphasis(
    diagram: Diagram,
    selected: Optional[str] = None,
    hovered: Optional[str] = None,
) -> Emphasis:
    """Work out which circles and regions to restyle.

    The selected set's ``intersects_with`` names become INTERSECTING and its
    ``related_to`` names RELATED; the hovered set's related and intersecting
    names become HIGHLIGHTED. Each circle keeps its strongest level. Names
    that are not in the diagram are ignored.
    """
    names = {c.set_name for c in diagram.circles}
    selected = selected if selected in names else None
    hovered = hovered if hovered in names else None
    levels: Dict[str, EmphasisLevel] = {name: EmphasisLevel.NORMAL for name in names}

    def raise_to(name: str, level: EmphasisLevel) -> None:
        if name in levels and level > levels[name]:
            levels[name] = level

    connections = []
    if selected is not None:
        spec = diagram.set_spec(selected)
        raise_to(selected, EmphasisLevel.SELECTED)
        if spec is not None:
            for name in spec.intersects_with:
                raise_to(name, EmphasisLevel.INTERSECTING)
            for name in spec.related_to:
                raise_to(name, EmphasisLevel.RELATED)
                if name in names and name != selected:
                    connections.append((selected, name))

    if hovered is not None:
        spec = diagram.set_spec(hovered)
        raise_to(hovered, EmphasisLevel.HOVERED)
        if spec is not None:
            for name in spec.related_to + spec.intersects_with:
                raise_to(name, EmphasisLevel.HIGHLIGHTED)

    focus = {name for name in (selected, hovered) if name is not None}
    regions = tuple(r.members for r in diagram.regions() if focus & set(r.members))

    return Emphasis(
        selected=selected,
        hovered=hovered,
        circles={name: STYLES[level] for name, level in levels.items()},
        regions=regions,
        connections=tuple(connections),
    )
