from __future__ import annotations

from typing import Any

_VISUAL = (
    "Visual fidelity is excellent. The clone accurately represents the original design.",
    "Visual fidelity is good with minor differences in styling or layout.",
    "Visual fidelity is acceptable but may need refinement in colors, spacing, or typography.",
    "Visual fidelity needs significant improvement. Major differences detected in layout and styling.",
)
_STRUCTURAL = (
    "Structural fidelity is excellent. All major elements have been captured correctly.",
    "Structural fidelity is good with most elements properly captured.",
    "Structural fidelity is acceptable but some elements may be missing or incorrectly mapped.",
    "Structural fidelity needs improvement. Many elements may be missing or incorrectly structured.",
)
_RESPONSIVE = (
    "Responsive behavior is excellent across all devices.",
    "Responsive behavior is good with minor layout differences on some devices.",
    "Responsive behavior is acceptable but may need adjustment for optimal mobile/tablet display.",
    "Responsive behavior needs significant improvement. Layout may break on different screen sizes.",
)

FALLBACK_RECOMMENDATION = (
    "Template created but accuracy cannot be guaranteed without proper verification."
)
FAILURE_RECOMMENDATION = "Clone quality is poor. Consider re-scanning or using a different approach."


def status_for(score: float) -> str:
    if score >= 0.9:
        return "excellent"
    if score >= 0.8:
        return "good"
    if score >= 0.7:
        return "acceptable"
    return "needs improvement"


def _pick(score: float, texts: tuple[str, str, str, str]) -> str:
    if score >= 0.9:
        return texts[0]
    if score >= 0.8:
        return texts[1]
    if score >= 0.7:
        return texts[2]
    return texts[3]


def overall_recommendation(score: float) -> str:
    if score >= 0.95:
        return "Exceptional fidelity! This clone is ready for production use."
    if score >= 0.9:
        return "Excellent fidelity with minor areas for improvement."
    if score >= 0.8:
        return "Good fidelity suitable for most use cases with some refinement needed."
    if score >= 0.7:
        return "Acceptable fidelity but requires optimization before production use."
    return "Fidelity score too low for reliable use. Significant improvements needed."


def detailed_analysis(*, visual: float, structural: float, responsive: float, overall: float) -> dict[str, Any]:
    return {
        "visualAnalysis": {
            "score": visual,
            "status": status_for(visual),
            "recommendation": _pick(visual, _VISUAL),
        },
        "structuralAnalysis": {
            "score": structural,
            "status": status_for(structural),
            "recommendation": _pick(structural, _STRUCTURAL),
        },
        "responsiveAnalysis": {
            "score": responsive,
            "status": status_for(responsive),
            "recommendation": _pick(responsive, _RESPONSIVE),
        },
        "overallRecommendation": overall_recommendation(overall),
    }


def fallback_details(*, error: str, content_quality: bool) -> dict[str, Any]:
    if content_quality:
        return {
            "fallback": True,
            "reason": "Verification failed - conservative scoring applied",
            "originalError": error,
            "contentQuality": "Partial - some structure captured but verification incomplete",
            "overallRecommendation": FALLBACK_RECOMMENDATION,
        }
    return {
        "fallback": True,
        "reason": "Verification failed with insufficient content captured",
        "originalError": error,
        "contentQuality": "Insufficient",
        "overallRecommendation": FAILURE_RECOMMENDATION,
    }
