from __future__ import annotations

from web2builder.verify.analysis import (
    FAILURE_RECOMMENDATION,
    FALLBACK_RECOMMENDATION,
    detailed_analysis,
    fallback_details,
    overall_recommendation,
    status_for,
)


def test_status_for_bands() -> None:
    assert status_for(0.95) == "excellent"
    assert status_for(0.85) == "good"
    assert status_for(0.7) == "acceptable"
    assert status_for(0.69) == "needs improvement"


def test_detailed_analysis_shape() -> None:
    details = detailed_analysis(visual=0.4, structural=0.92, responsive=0.8, overall=0.81)
    assert set(details) == {"visualAnalysis", "structuralAnalysis", "responsiveAnalysis", "overallRecommendation"}
    assert details["structuralAnalysis"]["status"] == "excellent"
    assert details["visualAnalysis"]["status"] == "needs improvement"
    assert details["responsiveAnalysis"]["recommendation"].startswith("Responsive behavior is good")
    assert details["overallRecommendation"] == overall_recommendation(0.81)


def test_overall_recommendation_extremes() -> None:
    assert overall_recommendation(0.97).startswith("Exceptional fidelity")
    assert overall_recommendation(0.5).startswith("Fidelity score too low")


def test_fallback_details_depend_on_content_quality() -> None:
    partial = fallback_details(error="timeout", content_quality=True)
    assert partial["fallback"] is True
    assert partial["originalError"] == "timeout"
    assert partial["overallRecommendation"] == FALLBACK_RECOMMENDATION

    poor = fallback_details(error="crash", content_quality=False)
    assert poor["contentQuality"] == "Insufficient"
    assert poor["overallRecommendation"] == FAILURE_RECOMMENDATION
