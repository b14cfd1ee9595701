from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from web2builder.convert.builder import count_elements
from web2builder.convert.governance import document_size
from web2builder.models import PageSnapshot
from web2builder.pipeline.clone import RETRY_RECOMMENDATION, CloneResult


def _page_info(snapshot: PageSnapshot) -> dict[str, Any]:
    info = snapshot.page_info
    return {
        "title": info.title,
        "description": info.description,
        "favicon": info.favicon,
        "lang": info.language,
        "charset": info.charset,
        "viewport": info.viewport,
    }


def _verification(result: CloneResult, *, include_screenshots: bool) -> dict[str, Any] | None:
    if result.report is None:
        return None
    payload = result.report.to_dict(include_screenshots=include_screenshots)
    payload["recommendation"] = result.recommendation or payload["details"].get("overallRecommendation")
    return payload


def build_clone_response(result: CloneResult, *, include_screenshots: bool = False) -> dict[str, Any]:
    """Shape a clone result into the JSON body returned to callers."""
    snapshot = result.snapshot
    fidelity = result.report.fidelity_score if result.report else 0.0
    response: dict[str, Any] = {
        "success": result.success,
        "sessionId": result.session_id,
        "html": result.preview_html,
        "pageInfo": _page_info(snapshot),
        "verification": _verification(result, include_screenshots=include_screenshots),
        "warnings": [warning.to_dict() for warning in snapshot.warnings],
    }
    if not result.success:
        response.update(
            {
                "error": result.reason,
                "fidelityScore": round(fidelity * 100),
                "failedChecks": list(result.failed_checks),
                "canRetry": result.can_retry,
                "skipVerificationAvailable": result.skip_verification_available,
            }
        )
        if result.skip_verification_available:
            response["retryRecommendation"] = RETRY_RECOMMENDATION
        return response

    document = result.document or {}
    sections, columns, widgets = count_elements(document.get("content") or [])
    response["template"] = document
    response["metadata"] = {
        "originalUrl": result.url,
        "finalUrl": snapshot.final_url,
        "title": snapshot.page_info.title,
        "timestamp": snapshot.timestamp,
        "elementsCount": sections + columns + widgets,
        "sectionsCount": sections,
        "columnsCount": columns,
        "widgetsCount": widgets,
        "imagesCount": len(snapshot.assets.images),
        "hasImages": bool(snapshot.assets.images),
        "hasFonts": bool(snapshot.assets.fonts),
        "templateSize": document_size(document),
        "scrapeDuration": result.duration_ms,
        "verificationPassed": result.report.passed if result.report else None,
        "fidelityScore": round(fidelity * 100),
        "templateWarnings": list(result.template_warnings),
    }
    return response


def safe_filename(name: str, default: str = "cloned-template") -> str:
    cleaned = "".join(ch if ch.isalnum() or ch in "-_." else "-" for ch in name).strip("-.")
    return cleaned or default


def template_bytes(document: dict[str, Any]) -> bytes:
    return json.dumps(document, ensure_ascii=False, indent=2).encode("utf-8")


def write_template(document: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(template_bytes(document))
    return path
