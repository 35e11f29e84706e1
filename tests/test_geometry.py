"""
Tests for the circle geometry helpers.

Run: pytest tests/test_geometry.py -v
"""

from __future__ import annotations

import math

import pytest

from segment_venn.geometry import (
    area_from_size,
    centroid,
    diagram_scale,
    distance_for_overlap,
    intersection_points,
    lens_path,
    lens_polygon,
    overlap_area,
    radius_from_area,
)

RADII_PAIRS = [(1.0, 1.0), (3.0, 1.0), (2.0, 5.0), (40.0, 37.5)]


def _shoelace(points) -> float:
    total = 0.0
    for (x1, y1), (x2, y2) in zip(points, points[1:] + points[:1]):
        total += x1 * y2 - x2 * y1
    return abs(total) / 2


# ---------------------------------------------------------------------------
# Radius and scale
# ---------------------------------------------------------------------------


def test_radius_is_non_negative_and_monotonic() -> None:
    sizes = [0, 1, 4, 100, 700, 1200, 1e6]
    radii = [radius_from_area(s, 2.0) for s in sizes]
    assert all(r >= 0 for r in radii)
    assert radii == sorted(radii)
    assert radius_from_area(100, 2.0) == pytest.approx(20.0)


def test_radius_of_negative_size_is_zero() -> None:
    assert radius_from_area(-50, 3.0) == 0.0


def test_area_is_proportional_to_size() -> None:
    scale = 1.7
    assert area_from_size(300, scale) / area_from_size(100, scale) == pytest.approx(3.0)
    assert area_from_size(100, scale) == pytest.approx(math.pi * radius_from_area(100, scale) ** 2)


def test_diagram_scale_fits_largest_circle() -> None:
    scale = diagram_scale(600, 400, 100, 0.5)
    assert scale == pytest.approx(10.0)
    assert radius_from_area(100, scale) == pytest.approx(200 * 0.5)


def test_diagram_scale_without_sizes_is_zero() -> None:
    assert diagram_scale(600, 600, 0, 0.9) == 0.0


# ---------------------------------------------------------------------------
# Lens area
# ---------------------------------------------------------------------------


def test_overlap_area_known_value() -> None:
    expected = 2 * math.pi / 3 - math.sqrt(3) / 2
    assert overlap_area(1.0, 1.0, 1.0) == pytest.approx(expected, rel=1e-9)


def test_overlap_area_disjoint_and_contained() -> None:
    assert overlap_area(1.0, 2.0, 3.0) == 0.0
    assert overlap_area(1.0, 2.0, 10.0) == 0.0
    assert overlap_area(1.0, 3.0, 1.5) == pytest.approx(math.pi)
    assert overlap_area(2.0, 2.0, 0.0) == pytest.approx(4 * math.pi)


def test_overlap_area_bounds() -> None:
    for r1, r2 in RADII_PAIRS:
        full = math.pi * min(r1, r2) ** 2
        lo, hi = abs(r1 - r2), r1 + r2
        for i in range(21):
            d = lo + (hi - lo) * i / 20
            area = overlap_area(r1, r2, d)
            assert 0.0 <= area <= full + 1e-9


def test_overlap_area_is_symmetric_and_decreasing() -> None:
    r1, r2 = 2.0, 5.0
    distances = [3.0 + 0.25 * i for i in range(17)]
    areas = [overlap_area(r1, r2, d) for d in distances]
    assert areas == sorted(areas, reverse=True)
    for d in distances:
        assert overlap_area(r1, r2, d) == pytest.approx(overlap_area(r2, r1, d))


def test_overlap_area_zero_radius() -> None:
    assert overlap_area(0.0, 2.0, 0.0) == 0.0


# ---------------------------------------------------------------------------
# Inverse solve
# ---------------------------------------------------------------------------


def test_distance_for_overlap_round_trip() -> None:
    for r1, r2 in RADII_PAIRS:
        full = math.pi * min(r1, r2) ** 2
        for fraction in (0.01, 0.05, 0.3, 0.5, 0.7, 0.95, 0.999):
            target = full * fraction
            d = distance_for_overlap(r1, r2, target)
            assert abs(r1 - r2) <= d <= r1 + r2
            assert overlap_area(r1, r2, d) == pytest.approx(target, rel=2e-3)


def test_distance_for_overlap_clamps_targets() -> None:
    assert distance_for_overlap(3.0, 1.0, -5.0) == pytest.approx(4.0)
    assert distance_for_overlap(3.0, 1.0, 0.0) == pytest.approx(4.0)
    assert distance_for_overlap(3.0, 1.0, 1e9) == pytest.approx(2.0)
    assert distance_for_overlap(3.0, 1.0, math.pi) == pytest.approx(2.0)


def test_distance_for_overlap_zero_radius() -> None:
    assert distance_for_overlap(0.0, 2.0, 5.0) == pytest.approx(2.0)


def test_distance_for_overlap_is_monotonic() -> None:
    targets = [0.5, 1.0, 2.0, 3.0]
    distances = [distance_for_overlap(2.0, 1.5, t) for t in targets]
    assert distances == sorted(distances, reverse=True)


def test_distance_for_overlap_respects_iteration_cap() -> None:
    d = distance_for_overlap(5.0, 5.0, 30.0, tolerance=1e-12, max_iterations=1)
    # a single bisection step lands on the interval midpoint
    assert d == pytest.approx(5.0)


# ---------------------------------------------------------------------------
# Boundary crossings and lens outlines
# ---------------------------------------------------------------------------


def test_intersection_points_of_crossing_circles() -> None:
    left, right = intersection_points((0.0, 0.0), 1.0, (1.0, 0.0), 1.0)
    assert left.x == pytest.approx(0.5)
    assert left.y == pytest.approx(math.sqrt(3) / 2)
    assert right.x == pytest.approx(0.5)
    assert right.y == pytest.approx(-math.sqrt(3) / 2)


def test_intersection_points_lie_on_both_circles() -> None:
    c1, r1, c2, r2 = (2.0, -1.0), 3.0, (5.5, 2.0), 2.5
    for p in intersection_points(c1, r1, c2, r2):
        assert math.hypot(p.x - c1[0], p.y - c1[1]) == pytest.approx(r1)
        assert math.hypot(p.x - c2[0], p.y - c2[1]) == pytest.approx(r2)


def test_intersection_points_none_when_not_crossing() -> None:
    assert intersection_points((0.0, 0.0), 1.0, (5.0, 0.0), 1.0) is None
    assert intersection_points((0.0, 0.0), 5.0, (1.0, 0.0), 1.0) is None
    assert intersection_points((0.0, 0.0), 2.0, (0.0, 0.0), 2.0) is None


def test_lens_path_shape() -> None:
    path = lens_path((0.0, 0.0), 1.0, (1.0, 0.0), 1.0)
    assert path.startswith("M ")
    assert path.count(" A ") == 2
    assert path.endswith("Z")
    assert lens_path((0.0, 0.0), 1.0, (3.0, 0.0), 1.0) is None


def test_lens_path_uses_large_arc_past_the_chord() -> None:
    # the small circle's centre lies outside the big one's chord side
    path = lens_path((0.0, 0.0), 1.0, (2.5, 0.0), 3.0)
    assert "A 1.000 1.000 0 1 0" in path
    assert "A 3.000 3.000 0 0 0" in path


def test_lens_polygon_stays_inside_both_circles() -> None:
    c1, r1, c2, r2 = (0.0, 0.0), 4.0, (5.0, 1.0), 3.0
    outline = lens_polygon(c1, r1, c2, r2, samples=32)
    assert len(outline) > 32
    for p in outline:
        assert math.hypot(p.x - c1[0], p.y - c1[1]) <= r1 + 1e-9
        assert math.hypot(p.x - c2[0], p.y - c2[1]) <= r2 + 1e-9


def test_lens_polygon_area_matches_lens_area() -> None:
    c1, r1, c2, r2 = (0.0, 0.0), 4.0, (5.0, 1.0), 3.0
    outline = lens_polygon(c1, r1, c2, r2, samples=64)
    d = math.hypot(5.0, 1.0)
    assert _shoelace(outline) == pytest.approx(overlap_area(r1, r2, d), rel=0.02)


def test_lens_polygon_empty_when_disjoint() -> None:
    assert lens_polygon((0.0, 0.0), 1.0, (9.0, 0.0), 1.0) == []


def test_centroid() -> None:
    c = centroid([(0.0, 0.0), (3.0, 0.0), (0.0, 3.0)])
    assert c.x == pytest.approx(1.0)
    assert c.y == pytest.approx(1.0)
