from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from web2builder.capture.assets import (
    build_asset_bundle,
    fetch_stylesheets,
    merge_stylesheet_facts,
    parse_stylesheet,
)
from web2builder.capture.browser import BrowserManager
from web2builder.capture.dom_tree import build_element_tree
from web2builder.capture.navigation import default_strategies, navigate_with_fallback
from web2builder.capture.scripts import (
    ASSETS_JS,
    DOCUMENT_HEIGHT_JS,
    ELEMENT_TREE_JS,
    PAGE_INFO_JS,
    SCROLL_TO_JS,
    STYLESHEETS_JS,
)
from web2builder.config import Breakpoint, RunConfig
from web2builder.errors import CaptureError, CaptureWarning
from web2builder.models import AssetBundle, BreakpointCapture, PageInfo, PageSnapshot
from web2builder.pipeline.progress import ProgressReporter

logger = logging.getLogger(__name__)


class SnapshotCapturer:
    def __init__(self, config: RunConfig, browser: BrowserManager | None = None) -> None:
        self.config = config
        self.browser = browser or BrowserManager(headful=config.headful, user_agent=config.user_agent)

    def capture(self, url: str, progress: ProgressReporter | None = None) -> PageSnapshot:
        """Load ``url`` and capture structure, metadata and assets.

        Raises ``NavigationError`` when no wait strategy can load the page and
        ``CaptureError`` when a breakpoint yields no element tree. Metadata,
        asset and stylesheet failures degrade the snapshot and are recorded as
        warnings.
        """
        reporter = progress or ProgressReporter()
        cfg = self.config
        warnings: list[CaptureWarning] = []

        reporter.report("connecting", 2)
        desktop_width = cfg.breakpoints.desktop
        with self.browser.open_page(width=desktop_width, height=cfg.breakpoints.viewport_height) as page:
            reporter.report("loading_page", 8)
            navigate_with_fallback(page, url, default_strategies(cfg.navigation))
            reporter.report("page_loaded", 15)

            page.wait_for_timeout(cfg.post_load_wait_ms)
            self._auto_scroll(page, warnings)

            reporter.report("analyzing_layout", 22)
            page_info = self._page_info(page, warnings)

            reporter.report("capturing_visual_structure", 28)
            breakpoints: dict[str, BreakpointCapture] = {}
            ordered = cfg.breakpoints.ordered()
            increment = 7 // len(ordered)
            for index, breakpoint in enumerate(ordered):
                reporter.report(f"capturing_{breakpoint.name}", 28 + index * increment)
                breakpoints[breakpoint.name] = self._capture_breakpoint(page, url, breakpoint, warnings)

            reporter.report("extracting_assets", 42)
            assets = self._extract_assets(page, warnings)

            reporter.report("processing_assets", 58)
            final_url = page.url or url
            self._process_stylesheets(breakpoints, assets, final_url, warnings)

        reporter.report("scraping_complete", 95)
        for warning in warnings:
            logger.warning("capture degraded at %s: %s (%s)", warning.stage, warning.message, warning.detail)
        return PageSnapshot(
            url=url,
            final_url=final_url,
            page_info=page_info,
            breakpoints=breakpoints,
            assets=assets,
            timestamp=datetime.now(timezone.utc).isoformat(),
            warnings=warnings,
        )

    def _auto_scroll(self, page: Page, warnings: list[CaptureWarning]) -> None:
        cfg = self.config
        try:
            height = int(page.evaluate(DOCUMENT_HEIGHT_JS) or 0)
            steps = min(cfg.max_scroll_steps, math.ceil(height / max(1, cfg.scroll_step_px)))
            for step in range(1, steps + 1):
                page.evaluate(SCROLL_TO_JS, step * cfg.scroll_step_px)
                page.wait_for_timeout(cfg.scroll_step_ms)
            page.evaluate(SCROLL_TO_JS, 0)
            page.wait_for_timeout(cfg.scroll_settle_ms)
        except PlaywrightError as exc:
            warnings.append(CaptureWarning("scroll", "lazy-content scroll interrupted", str(exc)))

    def _page_info(self, page: Page, warnings: list[CaptureWarning]) -> PageInfo:
        try:
            return PageInfo.from_raw(page.evaluate(PAGE_INFO_JS))
        except PlaywrightError as exc:
            warnings.append(CaptureWarning("page_info", "page metadata unavailable", str(exc)))
            return PageInfo()

    def _capture_breakpoint(
        self, page: Page, url: str, breakpoint: Breakpoint, warnings: list[CaptureWarning]
    ) -> BreakpointCapture:
        """Capture one viewport width; a missing element tree aborts the scrape."""
        cfg = self.config
        capture = BreakpointCapture(name=breakpoint.name, width=breakpoint.width, root=None)
        try:
            page.set_viewport_size({"width": breakpoint.width, "height": cfg.breakpoints.viewport_height})
            page.wait_for_timeout(cfg.reflow_wait_ms)
            raw_nodes = page.evaluate(
                ELEMENT_TREE_JS,
                {"maxDepth": cfg.max_depth, "maxMarkupChars": cfg.max_markup_chars},
            )
        except PlaywrightError as exc:
            raise CaptureError(url, breakpoint.name, str(exc)) from exc
        capture.root = build_element_tree(raw_nodes, max_depth=cfg.max_depth)
        if capture.root is None:
            raise CaptureError(url, breakpoint.name, "no element tree captured")

        try:
            sheets = page.evaluate(STYLESHEETS_JS) or {}
            capture.stylesheet_text = str(sheets.get("text") or "")
            capture.stylesheet_sources = [
                (str(sheet.get("href") or ""), str(sheet.get("text") or ""))
                for sheet in sheets.get("sheets") or []
                if isinstance(sheet, dict)
            ]
            capture.inaccessible_stylesheets = [str(href) for href in sheets.get("inaccessible") or []]
            capture.html = page.content()
        except PlaywrightError as exc:
            warnings.append(
                CaptureWarning(f"breakpoint:{breakpoint.name}", "stylesheets or markup unavailable", str(exc))
            )
        return capture

    def _extract_assets(self, page: Page, warnings: list[CaptureWarning]) -> AssetBundle:
        try:
            return build_asset_bundle(page.evaluate(ASSETS_JS))
        except PlaywrightError as exc:
            warnings.append(CaptureWarning("assets", "asset extraction failed", str(exc)))
            return AssetBundle()

    def _process_stylesheets(
        self,
        breakpoints: dict[str, BreakpointCapture],
        assets: AssetBundle,
        final_url: str,
        warnings: list[CaptureWarning],
    ) -> None:
        cfg = self.config
        desktop = breakpoints.get("desktop")
        if desktop is None:
            return
        fetched = fetch_stylesheets(
            desktop.inaccessible_stylesheets,
            referer=final_url,
            user_agent=cfg.user_agent,
            timeout_seconds=cfg.stylesheet_timeout_seconds,
            enabled=cfg.fetch_stylesheets,
        )
        warnings.extend(fetched.warnings)
        sources = desktop.stylesheet_sources or [("", desktop.stylesheet_text)]
        for href, css_text in [*sources, *fetched.sheets]:
            merge_stylesheet_facts(assets, parse_stylesheet(css_text, base_url=href or final_url))
