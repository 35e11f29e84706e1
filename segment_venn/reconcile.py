"""Turn raw segment counts into specs the geometry can actually draw.

Counts come from an external query backend as a flat mapping such as::

    {"Event_1": 1200, "Event_2": 900, "Event_1_AND_Event_2": 700}

Such data is often incomplete (a pair with no overlap count) or
contradictory (an overlap larger than one of its sets). ``reconcile`` fills
gaps, caps impossible values and drops what cannot be drawn, recording a
``Diagnostic`` for each adjustment instead of raising.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_SEPARATOR, InferencePolicy, ReconcileOptions
from .model import (
    Diagnostic,
    DiagnosticCode,
    IntersectionSpec,
    RelationshipHints,
    Role,
    SetSpec,
    canonicalize,
    clean_size,
)

__all__ = ["Reconciliation", "reconcile", "reconcile_records", "segments_from_nested", "split_label"]

logger = logging.getLogger(__name__)

HintsInput = Optional[Mapping[str, Any]]

# (member names as declared, size, label used in messages)
_RawIntersection = Tuple[Tuple[str, ...], float, str]


@dataclass(frozen=True)
class Reconciliation:
    """Admissible sets and intersections plus the notes taken on the way."""

    sets: Tuple[SetSpec, ...] = ()
    intersections: Tuple[IntersectionSpec, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = field(default=(), compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.sets

    def size_of(self, name: str) -> Optional[float]:
        for spec in self.sets:
            if spec.name == name:
                return spec.size
        return None

    def intersection(self, *names: str) -> Optional[IntersectionSpec]:
        key = tuple(sorted(set(names)))
        for spec in self.intersections:
            if spec.key == key:
                return spec
        return None

    def to_counts(self, separator: str = DEFAULT_SEPARATOR) -> Dict[str, float]:
        """Flat label mapping equivalent to this reconciliation."""
        counts = {spec.name: spec.size for spec in self.sets}
        for spec in self.intersections:
            counts[separator.join(spec.members)] = spec.size
        return counts

    def hints(self) -> Dict[str, Dict[str, Any]]:
        return {spec.name: spec.hints.to_dict() for spec in self.sets if spec.hints.to_dict()}

    def to_records(self) -> List[Dict[str, Any]]:
        """venn.js-style ``[{"sets": [...], "size": n}]`` records."""
        records = [{"sets": [spec.name], "size": spec.size} for spec in self.sets]
        records.extend({"sets": list(spec.members), "size": spec.size} for spec in self.intersections)
        return records


def split_label(label: str, separator: str = DEFAULT_SEPARATOR) -> Optional[Tuple[str, ...]]:
    """Member names of a count label, or None if the label is malformed."""
    names = tuple(part.strip() for part in label.split(separator))
    if not all(names):
        return None
    return names


def reconcile(
    counts: Optional[Mapping[str, Any]],
    hints: HintsInput = None,
    options: Optional[ReconcileOptions] = None,
) -> Reconciliation:
    """Reconcile a flat label -> count mapping.

    Args:
        counts: Bare set names and composite labels (names joined by
            ``options.separator``) mapped to counts.
        hints: Optional per-set ``{role, relatedTo, intersectsWith}``.
        options: Separator and gap inference policy.

    Returns:
        A ``Reconciliation``; empty when nothing usable was supplied.
    """
    options = options or ReconcileOptions()
    diagnostics: List[Diagnostic] = []
    set_entries: List[Tuple[str, float]] = []
    intersection_entries: List[_RawIntersection] = []

    if not isinstance(counts, Mapping):
        counts = {}

    for label, value in counts.items():
        if not isinstance(label, str):
            _note(diagnostics, DiagnosticCode.MALFORMED_LABEL, f"label {label!r} is not a string")
            continue
        names = split_label(label, options.separator)
        if names is None:
            _note(diagnostics, DiagnosticCode.MALFORMED_LABEL, f"label {label!r} has an empty member")
            continue
        size = _checked_size(label, value, names, diagnostics)
        if size is None:
            continue
        if len(names) == 1:
            set_entries.append((names[0], size))
        else:
            intersection_entries.append((names, size, label))

    return _reconcile_entries(set_entries, intersection_entries, hints, options, diagnostics)


def reconcile_records(
    records: Optional[Iterable[Mapping[str, Any]]],
    hints: HintsInput = None,
    options: Optional[ReconcileOptions] = None,
) -> Reconciliation:
    """Reconcile venn.js-style ``{"sets": [...], "size": n}`` records."""
    options = options or ReconcileOptions()
    diagnostics: List[Diagnostic] = []
    set_entries: List[Tuple[str, float]] = []
    intersection_entries: List[_RawIntersection] = []

    for record in records or ():
        members = record.get("sets") if isinstance(record, Mapping) else None
        if (
            isinstance(members, str)
            or not isinstance(members, Sequence)
            or not members
            or not all(isinstance(m, str) and m.strip() for m in members)
        ):
            _note(diagnostics, DiagnosticCode.MALFORMED_LABEL, f"record {record!r} has no usable 'sets'")
            continue
        names = tuple(m.strip() for m in members)
        label = " & ".join(names)
        size = _checked_size(label, record.get("size"), names, diagnostics)
        if size is None:
            continue
        if len(names) == 1:
            set_entries.append((names[0], size))
        else:
            intersection_entries.append((names, size, label))

    return _reconcile_entries(set_entries, intersection_entries, hints, options, diagnostics)


def segments_from_nested(
    data: Mapping[str, Any],
    separator: str = DEFAULT_SEPARATOR,
) -> Tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
    """Convert the nested segment shape into counts and hints.

    The shape is::

        {"outer": {"name": ..., "size": ...},
         "inner": [{"name", "size", "relatedTo", "intersectsWith",
                    "intersectionSize"}, ...],
         "tripleIntersections": [{"sets": [...], "size": ...}]}

    A segment's ``intersectionSize`` applies to each pair in its
    ``intersectsWith`` list that no earlier segment has already sized.
    """
    counts: Dict[str, Any] = {}
    hints: Dict[str, Dict[str, Any]] = {}
    seen_pairs = set()

    outer = data.get("outer")
    if isinstance(outer, Mapping) and isinstance(outer.get("name"), str):
        counts[outer["name"]] = outer.get("size")
        hints[outer["name"]] = {"role": Role.OUTER.value}

    segments = [
        s for s in _entry_list(data, "inner") if isinstance(s, Mapping) and isinstance(s.get("name"), str)
    ]
    for segment in segments:
        counts[segment["name"]] = segment.get("size")
        hints[segment["name"]] = RelationshipHints.coerce(segment).to_dict()

    for segment in segments:
        size = segment.get("intersectionSize")
        if size is None:
            continue
        for other in RelationshipHints.coerce(segment).intersects_with:
            pair = frozenset((segment["name"], other))
            if len(pair) < 2 or pair in seen_pairs:
                continue
            seen_pairs.add(pair)
            counts[separator.join((segment["name"], other))] = size

    for triple in _entry_list(data, "tripleIntersections"):
        members = triple.get("sets") if isinstance(triple, Mapping) else None
        if isinstance(members, Sequence) and not isinstance(members, str):
            counts[separator.join(str(m) for m in members)] = triple.get("size")

    return counts, hints


def _reconcile_entries(
    set_entries: List[Tuple[str, float]],
    intersection_entries: List[_RawIntersection],
    hints: HintsInput,
    options: ReconcileOptions,
    diagnostics: List[Diagnostic],
) -> Reconciliation:
    hint_map = _hint_map(hints)
    sets, _ = canonicalize(
        (
            SetSpec(
                name=name,
                size=size,
                role=hint_map.get(name, RelationshipHints()).role,
                related_to=hint_map.get(name, RelationshipHints()).related_to,
                intersects_with=hint_map.get(name, RelationshipHints()).intersects_with,
            )
            for name, size in set_entries
        ),
        (),
    )
    by_name = {spec.name: spec for spec in sets}

    explicit = _admissible_intersections(intersection_entries, by_name, diagnostics)
    inferred = _infer_gaps(sets, explicit, options.policy, diagnostics)

    pairs = [s for s in explicit.values() if s.cardinality == 2] + inferred
    triples = [s for s in explicit.values() if s.cardinality == 3]
    pairs = [_clamp(spec, by_name, {}, diagnostics) for spec in pairs]
    pair_sizes = {spec.key: spec.size for spec in pairs}
    triples = [_clamp(spec, by_name, pair_sizes, diagnostics) for spec in triples]

    result = Reconciliation(
        sets=tuple(sets),
        intersections=tuple(pairs + triples),
        diagnostics=tuple(diagnostics),
    )
    logger.debug(
        "Reconciled %d set(s), %d intersection(s), %d diagnostic(s)",
        len(result.sets),
        len(result.intersections),
        len(result.diagnostics),
    )
    return result


def _admissible_intersections(
    entries: List[_RawIntersection],
    by_name: Mapping[str, SetSpec],
    diagnostics: List[Diagnostic],
) -> Dict[Tuple[str, ...], IntersectionSpec]:
    explicit: Dict[Tuple[str, ...], IntersectionSpec] = {}
    for names, size, label in entries:
        members = tuple(sorted(set(names)))
        if not 2 <= len(members) <= 3:
            _note(
                diagnostics,
                DiagnosticCode.UNSUPPORTED_CARDINALITY,
                f"{label!r} names {len(members)} distinct set(s); only 2 or 3 can be drawn",
                members,
            )
            continue
        missing = [m for m in members if m not in by_name]
        if missing:
            _note(
                diagnostics,
                DiagnosticCode.UNKNOWN_MEMBER,
                f"{label!r} refers to set(s) without a size: {', '.join(missing)}",
                members,
            )
            continue
        if members in explicit:
            _note(
                diagnostics,
                DiagnosticCode.DUPLICATE_INTERSECTION,
                f"{label!r} repeats an earlier intersection; the later value wins",
                members,
            )
        explicit[members] = IntersectionSpec(members=members, size=size)
    return explicit


def _infer_gaps(
    sets: Sequence[SetSpec],
    explicit: Mapping[Tuple[str, ...], IntersectionSpec],
    policy: InferencePolicy,
    diagnostics: List[Diagnostic],
) -> List[IntersectionSpec]:
    """Synthesize pairwise intersections the input left out.

    The subset rule (a smaller set lies inside a larger one) is a heuristic,
    not a proof. Equal sizes are left alone unless a role settles it.
    """
    if policy is InferencePolicy.INDEPENDENT:
        return []

    inferred = []
    for a, b in itertools.combinations(sets, 2):
        key = tuple(sorted((a.name, b.name)))
        if key in explicit:
            continue

        contained = _contained_by_role(a, b)
        if contained is not None:
            size = contained.size
            reason = f"{contained.name} is declared inside the other set"
        elif policy is InferencePolicy.HINTED:
            continue
        elif a.size == b.size:
            if a.size > 0:
                _note(
                    diagnostics,
                    DiagnosticCode.AMBIGUOUS_INFERENCE,
                    f"{a.name} and {b.name} have equal sizes and no containment hint; no intersection inferred",
                    key,
                )
            continue
        else:
            smaller = a if a.size < b.size else b
            size = smaller.size
            reason = f"{smaller.name} is smaller, assumed to be a subset"

        if size <= 0:
            continue
        _note(diagnostics, DiagnosticCode.INFERRED_INTERSECTION, f"inferred {key[0]} & {key[1]} = {size:g} ({reason})", key)
        inferred.append(IntersectionSpec(members=key, size=size, inferred=True))
    return inferred


def _contained_by_role(a: SetSpec, b: SetSpec) -> Optional[SetSpec]:
    """The set a role hint places inside the other, if any.

    An ``outer`` set contains every set that is not itself ``outer``; an
    ``inner`` set lies inside any partner that is not also ``inner``.
    """
    if a.role is Role.OUTER and b.role is not Role.OUTER:
        return b
    if b.role is Role.OUTER and a.role is not Role.OUTER:
        return a
    if a.role is Role.INNER and b.role is not Role.INNER:
        return a
    if b.role is Role.INNER and a.role is not Role.INNER:
        return b
    return None


def _clamp(
    spec: IntersectionSpec,
    by_name: Mapping[str, SetSpec],
    pair_sizes: Mapping[Tuple[str, ...], float],
    diagnostics: List[Diagnostic],
) -> IntersectionSpec:
    bound = min(by_name[m].size for m in spec.members)
    if spec.cardinality == 3:
        for pair in itertools.combinations(spec.members, 2):
            if pair in pair_sizes:
                bound = min(bound, pair_sizes[pair])
    if spec.size <= bound:
        return spec

    logger.warning(
        "Intersection %s size %g exceeds the admissible %g, capping it",
        " & ".join(spec.members),
        spec.size,
        bound,
    )
    _note(
        diagnostics,
        DiagnosticCode.CLAMPED_INTERSECTION,
        f"{' & '.join(spec.members)} capped from {spec.size:g} to {bound:g}",
        spec.members,
    )
    return IntersectionSpec(members=spec.members, size=bound, inferred=spec.inferred)


def _checked_size(
    label: str,
    value: Any,
    members: Tuple[str, ...],
    diagnostics: List[Diagnostic],
) -> Optional[float]:
    size = clean_size(value)
    if size is None:
        _note(diagnostics, DiagnosticCode.INVALID_SIZE, f"{label!r} has no usable count ({value!r})", members)
        return None
    if size < 0:
        _note(diagnostics, DiagnosticCode.NEGATIVE_SIZE, f"{label!r} count {size:g} raised to 0", members)
        return 0.0
    return size


def _entry_list(data: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Sequence):
        logger.warning("Ignoring %r in nested segments: expected a list, got %s", key, type(value).__name__)
        return ()
    return value


def _hint_map(hints: HintsInput) -> Dict[str, RelationshipHints]:
    if not isinstance(hints, Mapping):
        return {}
    return {
        name.strip(): RelationshipHints.coerce(value)
        for name, value in hints.items()
        if isinstance(name, str) and name.strip()
    }


def _note(
    diagnostics: List[Diagnostic],
    code: DiagnosticCode,
    message: str,
    members: Tuple[str, ...] = (),
) -> None:
    logger.debug("%s: %s", code.value, message)
    diagnostics.append(Diagnostic(code=code, message=message, members=tuple(members)))
