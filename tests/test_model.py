"""
Tests for the value objects, input canonicalisation and settings.

Run: pytest tests/test_model.py -v
"""

from __future__ import annotations

import logging

import pytest

from segment_venn import InferencePolicy, LayoutConfig, ReconcileOptions
from segment_venn.logging_config import setup_logging
from segment_venn.model import (
    CircleLayout,
    CircleShape,
    Diagnostic,
    DiagnosticCode,
    Diagram,
    IntersectionRegion,
    IntersectionSpec,
    Point,
    RelationshipHints,
    Role,
    SetSpec,
    canonicalize,
)


# ---------------------------------------------------------------------------
# canonicalize
# ---------------------------------------------------------------------------


def test_canonicalize_keeps_first_position_and_last_value() -> None:
    sets, _ = canonicalize(
        [{"name": "A", "size": 1}, {"name": "B", "size": 2}, {"name": "A", "size": 3}],
        [],
    )
    assert [(s.name, s.size) for s in sets] == [("A", 3.0), ("B", 2.0)]


def test_canonicalize_clamps_negative_sizes() -> None:
    sets, intersections = canonicalize(
        [SetSpec("A", -4)],
        [{"sets": ["A", "B"], "size": -1}],
    )
    assert sets[0].size == 0.0
    assert intersections[0].size == 0.0


def test_canonicalize_sorts_and_dedupes_members() -> None:
    _, intersections = canonicalize(
        [],
        [
            {"sets": ["C", "A", "C"], "size": 2},
            {"members": ["A", "C"], "size": 5},
            IntersectionSpec(("B", "A"), 1),
        ],
    )
    assert [(i.members, i.size) for i in intersections] == [(("A", "C"), 5.0), (("A", "B"), 1.0)]


def test_canonicalize_skips_unusable_entries() -> None:
    sets, intersections = canonicalize(
        [{"name": "", "size": 1}, {"name": "A", "size": "x"}, {"size": 3}, "B", {"name": " C ", "size": 1}],
        [{"sets": "AB", "size": 1}, {"sets": ["A"], "size": None}],
    )
    assert [s.name for s in sets] == ["C"]
    assert intersections == []


def test_canonicalize_reads_hints_from_mappings() -> None:
    sets, _ = canonicalize([{"name": "A", "size": 1, "role": "outer", "relatedTo": ["B"]}], [])
    assert sets[0].role is Role.OUTER
    assert sets[0].related_to == ("B",)


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


def test_intersection_spec_equality_ignores_inferred_flag() -> None:
    assert IntersectionSpec(("A", "B"), 3, inferred=True) == IntersectionSpec(("A", "B"), 3)
    assert IntersectionSpec(("A", "B", "C"), 1).cardinality == 3


def test_relationship_hints_to_dict_omits_empty_fields() -> None:
    assert RelationshipHints().to_dict() == {}
    hints = RelationshipHints.coerce({"role": "inner", "intersectsWith": ["B", "B", 3]})
    assert hints.to_dict() == {"role": "inner", "intersectsWith": ["B"]}


def test_region_anchor() -> None:
    lens = IntersectionRegion(("A", "B"), 5, outline=(Point(0, 0), Point(2, 0), Point(2, 2), Point(0, 2)))
    assert lens.anchor == Point(1, 1)
    fallback = IntersectionRegion(("A", "B"), 5, fallback=CircleShape(3, 4, 1))
    assert fallback.anchor == Point(3, 4)


def test_diagram_to_dict() -> None:
    diagram = Diagram(
        circles=(CircleLayout("A", 1.0, 2.0, 3.0),),
        sets=(SetSpec("A", 9),),
        width=100,
        height=80,
        scale=1.0,
        strategy="heuristic",
        diagnostics=(Diagnostic(DiagnosticCode.NEGATIVE_SIZE, "raised", ("A",)),),
    )
    data = diagram.to_dict()
    assert data["circles"] == [{"setName": "A", "centerX": 1.0, "centerY": 2.0, "radius": 3.0}]
    assert data["diagnostics"] == [{"code": "negative_size", "message": "raised", "members": ["A"]}]
    assert data["pairwiseRegions"] == [] and data["tripleRegions"] == []
    assert diagram.circle("A").radius == 3.0
    assert diagram.circle("Z") is None
    assert diagram.set_spec("A").size == 9


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_layout_config_defaults() -> None:
    config = LayoutConfig()
    assert config.width == 600 and config.height == 600
    assert config.half_extent == 300
    assert LayoutConfig(width=800, height=400).half_extent == 200


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 0},
        {"height": -10},
        {"width": float("nan")},
        {"fill_fraction": 0},
        {"fill_fraction": 1.5},
        {"margin": -1},
        {"ring_overlap": 2},
        {"tolerance": 0},
        {"max_iterations": 0},
        {"lens_samples": True},
        {"optimize_iterations": 2.5},
    ],
)
def test_layout_config_rejects_bad_values(overrides) -> None:
    with pytest.raises(ValueError):
        LayoutConfig(**overrides)


def test_layout_config_from_dict() -> None:
    assert LayoutConfig.from_dict({"width": 800, "fill_fraction": 0.5}).width == 800
    with pytest.raises(ValueError, match="colour"):
        LayoutConfig.from_dict({"colour": "red"})


def test_reconcile_options() -> None:
    assert ReconcileOptions(policy="hinted").policy is InferencePolicy.HINTED
    with pytest.raises(ValueError):
        ReconcileOptions(policy="bogus")
    with pytest.raises(ValueError):
        ReconcileOptions(separator="")


def test_setup_logging_writes_to_file(tmp_path) -> None:
    log_file = tmp_path / "venn.log"
    setup_logging(logging.DEBUG, str(log_file))
    logger = logging.getLogger("segment_venn")
    try:
        logging.getLogger("segment_venn.layout").info("hello from layout")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from layout" in log_file.read_text(encoding="utf-8")
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
