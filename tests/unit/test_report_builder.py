from __future__ import annotations

import json
from pathlib import Path

from web2builder.convert.builder import TemplateBuilder
from web2builder.errors import CaptureWarning
from web2builder.models import (
    AssetBundle,
    BreakpointCapture,
    ElementNode,
    FidelityReport,
    PageInfo,
    PageSnapshot,
)
from web2builder.pipeline.clone import RETRY_RECOMMENDATION, CloneResult
from web2builder.report.builder import build_clone_response, safe_filename, write_template


def _snapshot() -> PageSnapshot:
    root = ElementNode(tag="body", children=[ElementNode(tag="h1", text="Hello"), ElementNode(tag="p", text="World")])
    return PageSnapshot(
        url="https://example.com/",
        final_url="https://example.com/home",
        page_info=PageInfo(title="Home", language="en"),
        breakpoints={"desktop": BreakpointCapture(name="desktop", width=1200, root=root)},
        assets=AssetBundle(images=[{"src": "/a.png"}], fonts=["Inter"]),
        timestamp="2026-01-01T00:00:00+00:00",
        warnings=[CaptureWarning("scroll", "lazy-content scroll interrupted", "timeout")],
    )


def _report(score: float, passed: bool) -> FidelityReport:
    report = FidelityReport(url="https://example.com/", timestamp="now", threshold=0.45)
    report.fidelity_score = score
    report.passed = passed
    report.details = {"overallRecommendation": "Good fidelity"}
    report.screenshots = {"original": {"desktop": b"\x01\x02"}}
    return report


def test_success_response_carries_template_and_metadata() -> None:
    snapshot = _snapshot()
    document = TemplateBuilder().build(snapshot)
    result = CloneResult(
        success=True,
        url="https://example.com/",
        session_id="1700000000000",
        snapshot=snapshot,
        document=document,
        report=_report(0.82, True),
        preview_html="<html></html>",
        duration_ms=1234,
    )
    response = build_clone_response(result)

    assert response["success"] is True
    assert response["sessionId"] == "1700000000000"
    assert response["template"] is document
    assert response["pageInfo"]["lang"] == "en"
    assert response["warnings"] == [
        {"stage": "scroll", "message": "lazy-content scroll interrupted", "detail": "timeout"}
    ]
    verification = response["verification"]
    assert verification["fidelityScore"] == 0.82
    assert verification["recommendation"] == "Good fidelity"
    assert "screenshots" not in verification
    metadata = response["metadata"]
    assert metadata["finalUrl"] == "https://example.com/home"
    assert (metadata["sectionsCount"], metadata["columnsCount"], metadata["widgetsCount"]) == (1, 1, 2)
    assert metadata["fidelityScore"] == 82
    assert metadata["hasImages"] is True
    assert metadata["scrapeDuration"] == 1234
    json.dumps(response)


def test_screenshots_are_base64_encoded_on_request() -> None:
    snapshot = _snapshot()
    result = CloneResult(
        success=True,
        url="https://example.com/",
        session_id="1",
        snapshot=snapshot,
        document=TemplateBuilder().build(snapshot),
        report=_report(0.9, True),
    )
    response = build_clone_response(result, include_screenshots=True)
    assert response["verification"]["screenshots"] == {"original": {"desktop": "AQI="}}


def test_refusal_response_offers_retry() -> None:
    result = CloneResult(
        success=False,
        url="https://example.com/",
        session_id="1",
        snapshot=_snapshot(),
        report=_report(0.21, False),
        reason="Quality checks failed: has_minimum_complexity, has_valid_metadata",
        recommendation="Quality is too low.",
        failed_checks=["has_minimum_complexity", "has_valid_metadata"],
        can_retry=True,
        skip_verification_available=True,
    )
    response = build_clone_response(result)
    assert response["success"] is False
    assert response["error"].startswith("Quality checks failed")
    assert response["fidelityScore"] == 21
    assert response["failedChecks"] == ["has_minimum_complexity", "has_valid_metadata"]
    assert response["retryRecommendation"] == RETRY_RECOMMENDATION
    assert response["verification"]["recommendation"] == "Quality is too low."
    assert "template" not in response


def test_skipped_verification_has_no_verification_block() -> None:
    snapshot = _snapshot()
    result = CloneResult(
        success=True,
        url="https://example.com/",
        session_id="1",
        snapshot=snapshot,
        document=TemplateBuilder().build(snapshot),
    )
    response = build_clone_response(result)
    assert response["verification"] is None
    assert response["metadata"]["verificationPassed"] is None
    assert response["metadata"]["fidelityScore"] == 0


def test_write_template_writes_indented_utf8_json(tmp_path: Path) -> None:
    document = {"title": "Café", "content": []}
    path = write_template(document, tmp_path / "nested" / "page.json")
    text = path.read_text(encoding="utf-8")
    assert "Café" in text
    assert text.startswith("{\n  ")
    assert json.loads(text) == document


def test_safe_filename() -> None:
    assert safe_filename("landing page") == "landing-page"
    assert safe_filename("../../") == "cloned-template"
    assert safe_filename("my_template.v2") == "my_template.v2"
