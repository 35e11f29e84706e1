"""Value objects shared by reconciliation, layout and rendering.

Nothing here holds behaviour beyond small conveniences: specs describe the
input, ``CircleLayout``/``IntersectionRegion``/``Diagram`` describe one
computed layout, and ``Diagnostic`` records what was adjusted on the way.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

__all__ = [
    "Role",
    "Point",
    "SetSpec",
    "IntersectionSpec",
    "RelationshipHints",
    "CircleLayout",
    "CircleShape",
    "IntersectionRegion",
    "Diagram",
    "DiagnosticCode",
    "Diagnostic",
    "canonicalize",
]


class Role(str, enum.Enum):
    OUTER = "outer"
    INNER = "inner"


class Point(NamedTuple):
    x: float
    y: float


class DiagnosticCode(str, enum.Enum):
    MALFORMED_LABEL = "malformed_label"
    INVALID_SIZE = "invalid_size"
    NEGATIVE_SIZE = "negative_size"
    DUPLICATE_INTERSECTION = "duplicate_intersection"
    UNKNOWN_MEMBER = "unknown_member"
    UNSUPPORTED_CARDINALITY = "unsupported_cardinality"
    INFERRED_INTERSECTION = "inferred_intersection"
    AMBIGUOUS_INFERENCE = "ambiguous_inference"
    CLAMPED_INTERSECTION = "clamped_intersection"
    LAYOUT_FALLBACK = "layout_fallback"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal note about something that was dropped, clamped or guessed."""

    code: DiagnosticCode
    message: str
    members: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "members": list(self.members)}


@dataclass(frozen=True)
class RelationshipHints:
    """Optional per-set metadata supplied next to the counts."""

    role: Optional[Role] = None
    related_to: Tuple[str, ...] = ()
    intersects_with: Tuple[str, ...] = ()

    @classmethod
    def coerce(cls, value: Union["RelationshipHints", Mapping[str, Any], None]) -> "RelationshipHints":
        """Accept a hints object or a mapping in camelCase or snake_case.

        Unknown roles and non-string names are ignored rather than rejected.
        """
        if isinstance(value, RelationshipHints):
            return value
        if not isinstance(value, Mapping):
            return cls()
        return cls(
            role=_coerce_role(value.get("role")),
            related_to=_name_tuple(value.get("relatedTo", value.get("related_to"))),
            intersects_with=_name_tuple(value.get("intersectsWith", value.get("intersects_with"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.role is not None:
            data["role"] = self.role.value
        if self.related_to:
            data["relatedTo"] = list(self.related_to)
        if self.intersects_with:
            data["intersectsWith"] = list(self.intersects_with)
        return data


@dataclass(frozen=True)
class SetSpec:
    """One named group and its cardinality."""

    name: str
    size: float
    role: Optional[Role] = None
    related_to: Tuple[str, ...] = ()
    intersects_with: Tuple[str, ...] = ()

    @property
    def hints(self) -> RelationshipHints:
        return RelationshipHints(self.role, self.related_to, self.intersects_with)


@dataclass(frozen=True)
class IntersectionSpec:
    """Observed overlap between two or three sets.

    ``members`` is kept sorted so two specs over the same sets compare equal
    regardless of the order they were declared in.
    """

    members: Tuple[str, ...]
    size: float
    inferred: bool = field(default=False, compare=False)

    @property
    def key(self) -> Tuple[str, ...]:
        return self.members

    @property
    def cardinality(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CircleLayout:
    set_name: str
    center_x: float
    center_y: float
    radius: float

    @property
    def center(self) -> Point:
        return Point(self.center_x, self.center_y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "setName": self.set_name,
            "centerX": self.center_x,
            "centerY": self.center_y,
            "radius": self.radius,
        }


@dataclass(frozen=True)
class CircleShape:
    """Fallback geometry for a region that has no lens boundary."""

    center_x: float
    center_y: float
    radius: float

    def to_dict(self) -> Dict[str, Any]:
        return {"centerX": self.center_x, "centerY": self.center_y, "radius": self.radius}


@dataclass(frozen=True)
class IntersectionRegion:
    """Overlap region of two circles (a lens) or three (a centroid circle).

    Exactly one of ``path`` and ``fallback`` is set. ``outline`` samples the
    lens boundary for renderers that cannot draw SVG arcs.
    """

    members: Tuple[str, ...]
    approximate_size: float
    estimated: bool = False
    path: Optional[str] = None
    outline: Tuple[Point, ...] = ()
    fallback: Optional[CircleShape] = None

    @property
    def anchor(self) -> Point:
        """A point inside the region, for labels and hover targets."""
        if self.fallback is not None:
            return Point(self.fallback.center_x, self.fallback.center_y)
        xs = [p.x for p in self.outline]
        ys = [p.y for p in self.outline]
        return Point(sum(xs) / len(xs), sum(ys) / len(ys))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "members": list(self.members),
            "approximateSize": self.approximate_size,
            "estimated": self.estimated,
            "path": self.path,
            "fallbackCircle": self.fallback.to_dict() if self.fallback else None,
        }


@dataclass(frozen=True)
class Diagram:
    """Complete output of one layout computation."""

    circles: Tuple[CircleLayout, ...] = ()
    pairwise_regions: Tuple[IntersectionRegion, ...] = ()
    triple_regions: Tuple[IntersectionRegion, ...] = ()
    sets: Tuple[SetSpec, ...] = ()
    width: float = 0.0
    height: float = 0.0
    scale: float = 0.0
    strategy: str = ""
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.circles

    def circle(self, name: str) -> Optional[CircleLayout]:
        for circle in self.circles:
            if circle.set_name == name:
                return circle
        return None

    def set_spec(self, name: str) -> Optional[SetSpec]:
        for spec in self.sets:
            if spec.name == name:
                return spec
        return None

    def regions(self) -> List[IntersectionRegion]:
        return list(self.pairwise_regions) + list(self.triple_regions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "scale": self.scale,
            "strategy": self.strategy,
            "circles": [c.to_dict() for c in self.circles],
            "pairwiseRegions": [r.to_dict() for r in self.pairwise_regions],
            "tripleRegions": [r.to_dict() for r in self.triple_regions],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


RawSet = Union[SetSpec, Mapping[str, Any]]
RawIntersection = Union[IntersectionSpec, Mapping[str, Any]]


def canonicalize(
    raw_sets: Iterable[RawSet],
    raw_intersections: Iterable[RawIntersection],
) -> Tuple[List[SetSpec], List[IntersectionSpec]]:
    """Normalise raw set and intersection entries.

    Args:
        raw_sets: ``SetSpec`` objects or mappings with ``name``/``size`` and
            optional hint keys.
        raw_intersections: ``IntersectionSpec`` objects or mappings with
            ``sets`` (or ``members``) and ``size``.

    Returns:
        Tuple of (sets, intersections). Names are unique (the first position
        is kept, the last value wins), sizes are clamped to zero from below,
        member lists are deduplicated and sorted, and later intersections
        over the same members replace earlier ones. Entries without a usable
        name or numeric size are skipped.
    """
    sets: Dict[str, SetSpec] = {}
    for raw in raw_sets:
        spec = _as_set_spec(raw)
        if spec is not None:
            sets[spec.name] = spec

    intersections: Dict[Tuple[str, ...], IntersectionSpec] = {}
    for raw in raw_intersections:
        spec = _as_intersection_spec(raw)
        if spec is not None:
            intersections[spec.key] = spec

    return list(sets.values()), list(intersections.values())


def clean_size(value: Any) -> Optional[float]:
    """Return ``value`` as a float, or None if it is not a usable count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _as_set_spec(raw: RawSet) -> Optional[SetSpec]:
    if isinstance(raw, SetSpec):
        name, size, hints = raw.name, raw.size, raw.hints
    elif isinstance(raw, Mapping):
        name, size = raw.get("name"), raw.get("size")
        hints = RelationshipHints.coerce(raw)
    else:
        return None
    if not isinstance(name, str) or not name.strip():
        return None
    size = clean_size(size)
    if size is None:
        return None
    return SetSpec(
        name=name.strip(),
        size=max(0.0, size),
        role=hints.role,
        related_to=hints.related_to,
        intersects_with=hints.intersects_with,
    )


def _as_intersection_spec(raw: RawIntersection) -> Optional[IntersectionSpec]:
    if isinstance(raw, IntersectionSpec):
        members, size, inferred = raw.members, raw.size, raw.inferred
    elif isinstance(raw, Mapping):
        members = raw.get("sets", raw.get("members"))
        size, inferred = raw.get("size"), bool(raw.get("inferred", False))
    else:
        return None
    if isinstance(members, str) or not isinstance(members, Sequence):
        return None
    names = _name_tuple(members)
    size = clean_size(size)
    if not names or size is None:
        return None
    return IntersectionSpec(members=tuple(sorted(set(names))), size=max(0.0, size), inferred=inferred)


def _coerce_role(value: Any) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            return None
    return None


def _name_tuple(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        return ()
    names = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in names:
            names.append(item.strip())
    return tuple(names)
