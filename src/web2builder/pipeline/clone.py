from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from web2builder.capture.browser import BrowserManager
from web2builder.capture.capturer import SnapshotCapturer
from web2builder.config import RunConfig
from web2builder.convert.builder import TemplateBuilder, apply_report
from web2builder.models import FidelityReport, PageSnapshot
from web2builder.pipeline.progress import ProgressCallback, ProgressReporter
from web2builder.render.html_renderer import render_document_html
from web2builder.utils import is_http_url
from web2builder.verify.verifier import FidelityVerifier

logger = logging.getLogger(__name__)

LOW_QUALITY_RECOMMENDATION = (
    "Quality is too low. Try with a different page or enable skip verification mode."
)
RETRY_RECOMMENDATION = "You can retry with verification disabled to force the clone to complete"


@dataclass(slots=True)
class CloneResult:
    success: bool
    url: str
    session_id: str
    snapshot: PageSnapshot
    document: dict[str, Any] | None = None
    report: FidelityReport | None = None
    preview_html: str = ""
    reason: str | None = None
    recommendation: str | None = None
    failed_checks: list[str] = field(default_factory=list)
    template_warnings: list[str] = field(default_factory=list)
    can_retry: bool = False
    skip_verification_available: bool = False
    duration_ms: int = 0


def quality_checks(snapshot: PageSnapshot) -> dict[str, bool]:
    desktop = snapshot.desktop
    root = desktop.root if desktop else None
    return {
        "has_content": root is not None and (bool(root.children) or root.has_content),
        "has_minimum_complexity": len(snapshot.assets.images) > 0 or (root is not None and len(root.children) > 1),
        "has_valid_metadata": bool(snapshot.page_info.title),
    }


def template_checks(document: dict[str, Any]) -> tuple[list[str], list[str]]:
    """Return (critical failures, warnings) for an emitted document."""
    content = document.get("content")
    has_structure = isinstance(content, list)
    sections = content if has_structure else []
    try:
        json.dumps(document)
        valid_json = True
    except (TypeError, ValueError):
        valid_json = False
    critical = {
        "has_valid_structure": has_structure,
        "has_sections": len(sections) > 0,
        "has_valid_json": valid_json,
    }
    advisory = {
        "has_columns": any(section.get("elements") for section in sections),
        "has_widgets": any(
            column.get("elements") for section in sections for column in section.get("elements") or []
        ),
    }
    return (
        [name for name, ok in critical.items() if not ok],
        [name for name, ok in advisory.items() if not ok],
    )


def should_proceed(
    report: FidelityReport | None, failed_checks: list[str], config: RunConfig
) -> bool:
    if report is None or report.passed:
        return True
    return report.fidelity_score >= config.scoring.gate_soft_score and len(failed_checks) <= 1


def should_refuse(report: FidelityReport, failed_checks: list[str], config: RunConfig) -> bool:
    return report.fidelity_score < config.scoring.gate_hard_fail_score and len(failed_checks) > 1


def run_clone(
    url: str,
    *,
    config: RunConfig | None = None,
    skip_verification: bool | None = None,
    progress: ProgressCallback | ProgressReporter | None = None,
    capturer: SnapshotCapturer | None = None,
    builder: TemplateBuilder | None = None,
    verifier: FidelityVerifier | None = None,
    browser: BrowserManager | None = None,
) -> CloneResult:
    """Capture, build, verify and gate one page.

    A caller that passes ``browser`` keeps ownership of it; otherwise a
    browser is started for this run only and shut down before returning.

    Raises ``ValueError`` for a non-http(s) URL, ``NavigationError`` when the
    page cannot be loaded and ``CaptureError`` when a breakpoint capture fails.
    Every other outcome is a ``CloneResult``.
    """
    cfg = config or RunConfig()
    skip = cfg.skip_verification if skip_verification is None else skip_verification
    if not is_http_url(url):
        raise ValueError(f"Invalid URL: {url!r}")
    reporter = progress if isinstance(progress, ProgressReporter) else ProgressReporter(progress)
    session_id = str(int(time.time() * 1000))
    started = time.monotonic()

    owned_browser: BrowserManager | None = None
    if browser is None and (capturer is None or (verifier is None and not skip)):
        owned_browser = BrowserManager(headful=cfg.headful, user_agent=cfg.user_agent)
    shared = browser or owned_browser
    try:
        capturer = capturer or SnapshotCapturer(cfg, shared)
        builder = builder or TemplateBuilder(cfg)

        reporter.report("initializing_scan", 1)
        snapshot = capturer.capture(url, reporter.scoped(0, 70))

        reporter.report("building_template", 72)
        document = builder.build(snapshot)
        reporter.report("template_built", 78)

        report: FidelityReport | None = None
        if skip:
            logger.info("verification skipped for %s", url)
        else:
            if verifier is None:
                verifier = FidelityVerifier(cfg, shared)
            report = verifier.verify(url, snapshot, document, reporter.scoped(78, 97))
            apply_report(document, report)
    finally:
        if owned_browser is not None:
            owned_browser.shutdown()

    checks = quality_checks(snapshot)
    failed_checks = [name for name, ok in checks.items() if not ok]
    preview_html = render_document_html(document)
    duration_ms = int((time.monotonic() - started) * 1000)
    result = CloneResult(
        success=True,
        url=url,
        session_id=session_id,
        snapshot=snapshot,
        document=document,
        report=report,
        preview_html=preview_html,
        failed_checks=failed_checks,
        duration_ms=duration_ms,
    )

    if report is not None and not should_proceed(report, failed_checks, cfg):
        reporter.report("verification_warning", 90)
        logger.warning(
            "verification warning for %s: score=%.2f failed=%s",
            url,
            report.fidelity_score,
            ", ".join(failed_checks) or "none",
        )
        if should_refuse(report, failed_checks, cfg):
            result.success = False
            result.document = None
            result.reason = (
                f"Quality checks failed: {', '.join(failed_checks)}"
                if failed_checks
                else "Fidelity verification failed - quality too low"
            )
            result.recommendation = LOW_QUALITY_RECOMMENDATION
            result.can_retry = True
            result.skip_verification_available = True
            return result

    critical, warnings = template_checks(document)
    result.template_warnings = warnings
    if warnings:
        logger.info("template warnings for %s: %s", url, ", ".join(warnings))
    if critical:
        result.success = False
        result.document = None
        result.reason = f"Critical template validation failed: {', '.join(critical)}"
        result.recommendation = "Template generation failed - try a different page structure"
        result.can_retry = True
        return result

    reporter.report("scan_complete", 100)
    return result
