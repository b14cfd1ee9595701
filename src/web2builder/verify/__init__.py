from __future__ import annotations

from web2builder.verify.analysis import detailed_analysis, fallback_details, status_for
from web2builder.verify.scoring import (
    ByteSizeVisualScorer,
    CountRatioStructuralScorer,
    LayoutCountResponsiveScorer,
    calculate_overall_score,
    compare_layout_arrays,
    compare_responsiveness,
    compare_screenshots,
    compare_structural_fidelity,
)
from web2builder.verify.verifier import FidelityVerifier, content_quality

__all__ = [
    "ByteSizeVisualScorer",
    "CountRatioStructuralScorer",
    "FidelityVerifier",
    "LayoutCountResponsiveScorer",
    "calculate_overall_score",
    "compare_layout_arrays",
    "compare_responsiveness",
    "compare_screenshots",
    "compare_structural_fidelity",
    "content_quality",
    "detailed_analysis",
    "fallback_details",
    "status_for",
]
