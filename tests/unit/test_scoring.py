from __future__ import annotations

import itertools

import pytest

from web2builder.config import ScoringConfig
from web2builder.models import LayoutBox, StructureCounts
from web2builder.verify.scoring import (
    ByteSizeVisualScorer,
    calculate_overall_score,
    compare_layout_arrays,
    compare_responsiveness,
    compare_screenshots,
    compare_structural_fidelity,
    has_valid_content,
)


def _boxes(count: int) -> list[LayoutBox]:
    return [LayoutBox(tag="div", x=0, y=index * 10, width=100, height=10) for index in range(count)]


def test_identical_screenshots_score_point_eight() -> None:
    shot = b"\xff" * 2048
    assert compare_screenshots(shot, shot) == 0.8


def test_screenshot_buckets() -> None:
    assert compare_screenshots(None, b"abc") == 0.2
    assert compare_screenshots(b"", b"") == 0.1
    assert compare_screenshots(b"a" * 100, b"a" * 120) == 0.4
    assert compare_screenshots(b"a" * 100, b"a" * 1000) == 0.1


def test_structural_fidelity_of_identical_counts() -> None:
    counts = StructureCounts(elements=40, text_nodes=12, images=3, sections=2, containers=15, headings=4, links=6)
    assert compare_structural_fidelity(counts, counts) >= 0.9
    assert compare_structural_fidelity(counts, counts) == 1.0


def test_structural_fidelity_missing_sides() -> None:
    with_text = StructureCounts(elements=3, text_nodes=1)
    assert compare_structural_fidelity(None, None) == 0.8
    assert compare_structural_fidelity(None, with_text) == 0.7
    assert compare_structural_fidelity(None, StructureCounts()) == 0.4
    assert not has_valid_content(StructureCounts(elements=5, links=2))


def test_structural_fidelity_partial_credit() -> None:
    original = StructureCounts(elements=10, text_nodes=4, images=2)
    clone = StructureCounts(elements=5)
    # elements 0.5*1.4=0.7, text and images 0.3 each, the other four metrics are both zero.
    expected = (0.7 + 0.3 + 0.3 + 4.0) / 7
    assert compare_structural_fidelity(original, clone) == pytest.approx(expected)


def test_layout_array_bands() -> None:
    assert compare_layout_arrays(None, None) == 0.7
    assert compare_layout_arrays(None, _boxes(2)) == 0.5
    assert compare_layout_arrays([], []) == 1.0
    assert compare_layout_arrays(_boxes(3), []) == 0.5
    assert compare_layout_arrays(_boxes(10), _boxes(10)) == 1.0
    assert compare_layout_arrays(_boxes(10), _boxes(7)) == 0.9
    assert compare_layout_arrays(_boxes(10), _boxes(1)) == 0.6


def test_responsiveness_across_devices() -> None:
    full = {device: _boxes(5) for device in ("desktop", "tablet", "mobile")}
    assert compare_responsiveness(full, full) == 1.0
    assert compare_responsiveness(None, None) == 0.8
    assert compare_responsiveness(full, None) == 0.7
    assert compare_responsiveness({}, {}) == 0.75
    assert compare_responsiveness({"desktop": _boxes(10)}, {"desktop": _boxes(5)}) == pytest.approx(0.96)


def test_overall_score_floor_and_ceiling() -> None:
    assert calculate_overall_score(visual=1.0, structural=1.0, responsive=1.0) == pytest.approx(1.0)
    assert calculate_overall_score(visual=0.0, structural=0.0, responsive=0.0) == 0.5


def test_overall_score_stays_in_range_with_comparison_data() -> None:
    grid = [0.0, 0.1, 0.35, 0.5, 0.75, 1.0]
    for visual, structural, responsive in itertools.product(grid, repeat=3):
        score = calculate_overall_score(visual=visual, structural=structural, responsive=responsive)
        assert 0.5 <= score <= 1.0


def test_overall_score_boost_rule() -> None:
    score = calculate_overall_score(visual=0.1, structural=0.5, responsive=0.1)
    assert score == pytest.approx(0.6)


def test_fallback_scores_stay_below_threshold() -> None:
    cfg = ScoringConfig()
    structural, visual, responsive = cfg.fallback_scores
    score = calculate_overall_score(
        visual=visual, structural=structural, responsive=responsive, config=cfg, has_comparison_data=False
    )
    assert score == pytest.approx(0.21)
    assert score < cfg.threshold


def test_disabling_visual_proxy_renormalizes_weights() -> None:
    cfg = ScoringConfig(visual_proxy=False)
    score = calculate_overall_score(visual=0.0, structural=1.0, responsive=1.0, config=cfg)
    assert score == pytest.approx(1.0)
    lower = calculate_overall_score(visual=1.0, structural=0.5, responsive=0.5, config=cfg)
    assert lower == pytest.approx(0.65)


def test_byte_size_visual_scorer_reports_per_breakpoint() -> None:
    scorer = ByteSizeVisualScorer()
    original = {"desktop": b"a" * 100, "mobile": b"a" * 100, "tablet": b"a" * 100}
    clone = {"desktop": b"a" * 100, "mobile": b"a" * 1000}
    average, per_breakpoint = scorer.score(original, clone)
    assert per_breakpoint == {"desktop": 0.8, "mobile": 0.1}
    assert average == pytest.approx(0.45)
    assert scorer.score({}, {}) == (0.0, {})
    assert scorer.name == "byte_size_proxy"
