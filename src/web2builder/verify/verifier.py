from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from playwright.sync_api import Page

from web2builder.capture.browser import BrowserManager
from web2builder.capture.dom_tree import count_tree_structure
from web2builder.capture.navigation import default_strategies, navigate_with_fallback
from web2builder.capture.scripts import LAYOUT_SNAPSHOT_JS, STRUCTURE_COUNTS_JS
from web2builder.config import RunConfig
from web2builder.models import FidelityReport, LayoutBox, PageCapture, PageSnapshot, StructureCounts
from web2builder.pipeline.progress import ProgressReporter
from web2builder.render.html_renderer import render_document_html
from web2builder.verify.analysis import detailed_analysis, fallback_details
from web2builder.verify.scoring import (
    ByteSizeVisualScorer,
    CountRatioStructuralScorer,
    LayoutCountResponsiveScorer,
    ResponsiveScorer,
    StructuralScorer,
    VisualScorer,
    calculate_overall_score,
    compare_layout_arrays,
    has_valid_content,
)

logger = logging.getLogger(__name__)

SCREENSHOT_QUALITY = 80
CLONE_LOAD_TIMEOUT_MS = 30000


def content_quality(snapshot: PageSnapshot | None) -> bool:
    """A structurally valid capture plus at least one secondary signal."""
    if snapshot is None:
        return False
    desktop = snapshot.desktop
    if desktop is None or not has_valid_content(count_tree_structure(desktop.root)):
        return False
    return (
        bool(snapshot.page_info.title)
        or len(snapshot.assets.images) > 2
        or len(snapshot.assets.fonts) > 1
    )


class FidelityVerifier:
    def __init__(
        self,
        config: RunConfig,
        browser: BrowserManager | None = None,
        *,
        visual_scorer: VisualScorer | None = None,
        structural_scorer: StructuralScorer | None = None,
        responsive_scorer: ResponsiveScorer | None = None,
    ) -> None:
        self.config = config
        self.browser = browser or BrowserManager(headful=config.headful, user_agent=config.user_agent)
        scoring = config.scoring
        self.visual_scorer = visual_scorer or ByteSizeVisualScorer(scoring)
        self.structural_scorer = structural_scorer or CountRatioStructuralScorer(scoring)
        self.responsive_scorer = responsive_scorer or LayoutCountResponsiveScorer(scoring)

    def verify(
        self,
        url: str,
        snapshot: PageSnapshot | None,
        document: dict[str, Any],
        progress: ProgressReporter | None = None,
    ) -> FidelityReport:
        """Score the document against the live page. Never raises."""
        reporter = progress or ProgressReporter()
        scoring = self.config.scoring
        report = FidelityReport(
            url=url,
            timestamp=datetime.now(timezone.utc).isoformat(),
            threshold=scoring.threshold,
        )
        _enter(report, "preparing")
        reporter.report("verification_preparing", 0)
        try:
            _enter(report, "capturing_original")
            reporter.report("capturing_original", 10)
            original = self.capture_original(url)

            _enter(report, "rendering_clone")
            reporter.report("rendering_clone", 45)
            clone = self.capture_clone(document)

            _enter(report, "scoring_visual")
            reporter.report("scoring", 80)
            per_visual: dict[str, float] = {}
            if scoring.visual_proxy:
                report.visual_score, per_visual = self.visual_scorer.score(original.screenshots, clone.screenshots)

            _enter(report, "scoring_structural")
            report.structural_score = self.structural_scorer.score(original.structure, clone.structure)

            _enter(report, "scoring_responsive")
            report.responsive_score = self.responsive_scorer.score(original.layouts, clone.layouts)
        except Exception as exc:  # noqa: BLE001
            logger.warning("verification failed for %s, using fallback scores: %s", url, exc)
            return self._fallback(report, snapshot, exc, reporter)

        report.fidelity_score = calculate_overall_score(
            visual=report.visual_score,
            structural=report.structural_score,
            responsive=report.responsive_score,
            config=scoring,
            has_comparison_data=True,
        )
        report.passed = report.fidelity_score >= scoring.threshold
        report.details = detailed_analysis(
            visual=report.visual_score,
            structural=report.structural_score,
            responsive=report.responsive_score,
            overall=report.fidelity_score,
        )
        report.details["visualScorer"] = self.visual_scorer.name if scoring.visual_proxy else None
        for name in set(original.layouts) | set(clone.layouts) | set(per_visual):
            entry: dict[str, float] = {
                "responsive": compare_layout_arrays(original.layouts.get(name), clone.layouts.get(name), scoring)
            }
            if name in per_visual:
                entry["visual"] = per_visual[name]
            report.breakpoint_scores[name] = entry
        if self.config.include_screenshots:
            report.screenshots = {"original": original.screenshots, "clone": clone.screenshots}
        _enter(report, "scored")
        reporter.report("verification_complete", 100)
        logger.info("fidelity for %s: %.2f (passed=%s)", url, report.fidelity_score, report.passed)
        return report

    def capture_original(self, url: str) -> PageCapture:
        cfg = self.config
        with self.browser.open_page(
            width=cfg.breakpoints.desktop, height=cfg.breakpoints.viewport_height
        ) as page:
            navigate_with_fallback(page, url, default_strategies(cfg.navigation))
            return self._capture(page)

    def capture_clone(self, document: dict[str, Any]) -> PageCapture:
        cfg = self.config
        markup = render_document_html(document)
        with self.browser.open_page(
            width=cfg.breakpoints.desktop, height=cfg.breakpoints.viewport_height
        ) as page:
            page.set_content(markup, wait_until="domcontentloaded", timeout=CLONE_LOAD_TIMEOUT_MS)
            return self._capture(page)

    def _capture(self, page: Page) -> PageCapture:
        cfg = self.config
        capture = PageCapture()
        for breakpoint in cfg.breakpoints.ordered():
            page.set_viewport_size({"width": breakpoint.width, "height": cfg.breakpoints.viewport_height})
            page.wait_for_timeout(cfg.reflow_wait_ms)
            capture.screenshots[breakpoint.name] = page.screenshot(
                full_page=True, type="jpeg", quality=SCREENSHOT_QUALITY
            )
            capture.layouts[breakpoint.name] = [
                _layout_box(raw) for raw in page.evaluate(LAYOUT_SNAPSHOT_JS) or [] if isinstance(raw, dict)
            ]
        capture.structure = StructureCounts.from_raw(page.evaluate(STRUCTURE_COUNTS_JS))
        return capture

    def _fallback(
        self,
        report: FidelityReport,
        snapshot: PageSnapshot | None,
        error: BaseException,
        reporter: ProgressReporter,
    ) -> FidelityReport:
        scoring = self.config.scoring
        quality = content_quality(snapshot)
        structural, visual, responsive = scoring.fallback_scores if quality else scoring.failure_scores
        report.structural_score = structural
        report.visual_score = visual
        report.responsive_score = responsive
        report.fidelity_score = calculate_overall_score(
            visual=visual,
            structural=structural,
            responsive=responsive,
            config=scoring,
            has_comparison_data=False,
        )
        report.passed = quality and report.fidelity_score >= scoring.threshold
        report.fallback = True
        report.error = str(error)
        report.details = fallback_details(error=str(error), content_quality=quality)
        _enter(report, "fallback_scored")
        reporter.report("verification_complete", 100)
        return report


def _enter(report: FidelityReport, state: str) -> None:
    report.state = state
    report.state_history.append(state)


def _layout_box(raw: dict[str, Any]) -> LayoutBox:
    styles = raw.get("styles") or {}
    return LayoutBox(
        tag=str(raw.get("tag") or ""),
        x=float(raw.get("x") or 0.0),
        y=float(raw.get("y") or 0.0),
        width=float(raw.get("width") or 0.0),
        height=float(raw.get("height") or 0.0),
        styles={str(k): str(v) for k, v in styles.items()} if isinstance(styles, dict) else {},
    )
