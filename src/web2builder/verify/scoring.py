"""Fidelity scorers.

The visual scorer compares encoded screenshot sizes. It is a coarse proxy
for visual similarity, not a pixel diff, and can be switched off through
``ScoringConfig.visual_proxy``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from web2builder.config import ScoringConfig
from web2builder.models import LayoutBox, StructureCounts

DEVICES = ("desktop", "tablet", "mobile")


def compare_screenshots(
    original: bytes | None, clone: bytes | None, config: ScoringConfig | None = None
) -> float:
    cfg = config or ScoringConfig()
    if original is None or clone is None:
        return 0.2
    average = (len(original) + len(clone)) / 2
    if average == 0:
        return 0.1
    ratio = abs(len(original) - len(clone)) / average
    for upper, score in cfg.visual_buckets:
        if ratio < upper:
            return score
    return cfg.visual_default


def has_valid_content(counts: StructureCounts | None) -> bool:
    if counts is None:
        return False
    return counts.text_nodes > 0 or counts.containers > 0 or counts.images > 0 or counts.headings > 0


def compare_structural_fidelity(
    original: StructureCounts | None,
    clone: StructureCounts | None,
    config: ScoringConfig | None = None,
) -> float:
    cfg = config or ScoringConfig()
    if original is None and clone is None:
        return 0.8
    if original is None or clone is None:
        return 0.7 if has_valid_content(clone) else 0.4

    original_values = original.as_dict()
    clone_values = clone.as_dict()
    total = 0.0
    for metric, original_count in original_values.items():
        clone_count = clone_values[metric]
        if original_count == 0 and clone_count == 0:
            total += 1.0
        elif original_count == 0 or clone_count == 0:
            total += cfg.structural_partial_credit
        else:
            ratio = min(original_count, clone_count) / max(original_count, clone_count)
            total += min(1.0, ratio * cfg.structural_leniency)
    score = total / len(original_values)
    if has_valid_content(clone):
        return min(score * cfg.content_boost, 1.0)
    return score


def compare_layout_arrays(
    original: Sequence[LayoutBox] | None,
    clone: Sequence[LayoutBox] | None,
    config: ScoringConfig | None = None,
) -> float:
    cfg = config or ScoringConfig()
    if original is None and clone is None:
        return 0.7
    if original is None or clone is None:
        return 0.5
    if not original and not clone:
        return 1.0
    if not original or not clone:
        return 0.5
    ratio = min(len(original), len(clone)) / max(len(original), len(clone))
    for lower, score in cfg.responsive_bands:
        if ratio >= lower:
            return score
    return cfg.responsive_minimum


def compare_responsiveness(
    original: Mapping[str, Sequence[LayoutBox]] | None,
    clone: Mapping[str, Sequence[LayoutBox]] | None,
    config: ScoringConfig | None = None,
) -> float:
    cfg = config or ScoringConfig()
    if original is None and clone is None:
        return 0.8
    if original is None or clone is None:
        return 0.7
    total = 0.0
    comparisons = 0
    for device in DEVICES:
        left = original.get(device)
        right = clone.get(device)
        if left is not None and right is not None:
            total += compare_layout_arrays(left, right, cfg)
            comparisons += 1
        elif left is not None or right is not None:
            total += 0.5
            comparisons += 1
    if comparisons == 0:
        return 0.75
    if comparisons < 2:
        total = min(total * 1.2, comparisons)
    return total / comparisons


def calculate_overall_score(
    *,
    visual: float,
    structural: float,
    responsive: float,
    config: ScoringConfig | None = None,
    has_comparison_data: bool = True,
) -> float:
    """Weighted score with the low-score boost and, when data existed, the floor."""
    cfg = config or ScoringConfig()
    visual_weight = cfg.visual_weight if cfg.visual_proxy else 0.0
    weight_total = visual_weight + cfg.structural_weight + cfg.responsive_weight
    if weight_total <= 0:
        return 0.0
    weighted = (
        visual * visual_weight + structural * cfg.structural_weight + responsive * cfg.responsive_weight
    ) / weight_total
    visual_signal = cfg.visual_proxy and visual > cfg.boost_trigger
    if weighted < cfg.boost_below and (structural > cfg.boost_trigger or visual_signal):
        return max(cfg.boost_floor, weighted * cfg.boost_factor)
    if has_comparison_data:
        return max(cfg.score_floor, weighted)
    return weighted


class VisualScorer(Protocol):
    name: str

    def score(
        self, original: Mapping[str, bytes], clone: Mapping[str, bytes]
    ) -> tuple[float, dict[str, float]]: ...


class StructuralScorer(Protocol):
    def score(self, original: StructureCounts | None, clone: StructureCounts | None) -> float: ...


class ResponsiveScorer(Protocol):
    def score(
        self,
        original: Mapping[str, Sequence[LayoutBox]] | None,
        clone: Mapping[str, Sequence[LayoutBox]] | None,
    ) -> float: ...


@dataclass(slots=True)
class ByteSizeVisualScorer:
    config: ScoringConfig = field(default_factory=ScoringConfig)
    name: str = "byte_size_proxy"

    def score(
        self, original: Mapping[str, bytes], clone: Mapping[str, bytes]
    ) -> tuple[float, dict[str, float]]:
        per_breakpoint: dict[str, float] = {}
        for device in DEVICES:
            if original.get(device) is not None and clone.get(device) is not None:
                per_breakpoint[device] = compare_screenshots(original[device], clone[device], self.config)
        if not per_breakpoint:
            return 0.0, per_breakpoint
        return sum(per_breakpoint.values()) / len(per_breakpoint), per_breakpoint


@dataclass(slots=True)
class CountRatioStructuralScorer:
    config: ScoringConfig = field(default_factory=ScoringConfig)

    def score(self, original: StructureCounts | None, clone: StructureCounts | None) -> float:
        return compare_structural_fidelity(original, clone, self.config)


@dataclass(slots=True)
class LayoutCountResponsiveScorer:
    config: ScoringConfig = field(default_factory=ScoringConfig)

    def score(
        self,
        original: Mapping[str, Sequence[LayoutBox]] | None,
        clone: Mapping[str, Sequence[LayoutBox]] | None,
    ) -> float:
        return compare_responsiveness(original, clone, self.config)
