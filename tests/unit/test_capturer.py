from __future__ import annotations

from contextlib import contextmanager
from typing import Any

import pytest
from playwright.sync_api import Error as PlaywrightError

from web2builder.capture.capturer import SnapshotCapturer
from web2builder.capture.scripts import (
    ASSETS_JS,
    DOCUMENT_HEIGHT_JS,
    ELEMENT_TREE_JS,
    PAGE_INFO_JS,
    SCROLL_TO_JS,
    STYLESHEETS_JS,
)
from web2builder.config import RunConfig
from web2builder.errors import CaptureError
from web2builder.pipeline.progress import ProgressReporter

TREE = [
    {"tag": "body", "depth": 0, "parent": -1},
    {"tag": "h1", "depth": 1, "parent": 0, "text": "Hello", "style": {"width": 1200, "height": 40}},
    {"tag": "p", "depth": 1, "parent": 0, "text": "World", "style": {"y": 40, "width": 1200, "height": 20}},
]
STYLESHEET = """
@font-face { font-family: "Brand Sans"; src: url("/fonts/brand.woff2"); }
.hero { background: url(/img/hero.jpg) no-repeat; }
"""


class CapturePage:
    def __init__(self, *, fail_page_info: bool = False) -> None:
        self.url = "https://example.com/home"
        self.fail_page_info = fail_page_info
        self.scroll_positions: list[int] = []
        self.viewports: list[int] = []

    def goto(self, url: str, *, wait_until: str, timeout: int) -> None:
        return None

    def wait_for_timeout(self, ms: int) -> None:
        return None

    def set_viewport_size(self, size: dict[str, int]) -> None:
        self.viewports.append(size["width"])

    def content(self) -> str:
        return "<html><body><h1>Hello</h1><p>World</p></body></html>"

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == DOCUMENT_HEIGHT_JS:
            return 250
        if script == SCROLL_TO_JS:
            self.scroll_positions.append(arg)
            return None
        if script == PAGE_INFO_JS:
            if self.fail_page_info:
                raise PlaywrightError("Execution context was destroyed")
            return {"title": "Home", "description": "Landing", "lang": "en", "charset": "UTF-8"}
        if script == ELEMENT_TREE_JS:
            assert arg == {"maxDepth": 25, "maxMarkupChars": 50_000}
            return TREE
        if script == STYLESHEETS_JS:
            return {"text": STYLESHEET, "inaccessible": []}
        if script == ASSETS_JS:
            return {
                "images": [{"src": "https://example.com/logo.png"}, "bogus"],
                "fonts": ["Inter", "Inter"],
                "colors": ["rgb(0, 0, 0)"],
            }
        raise AssertionError("unexpected script")


class OnePageBrowser:
    def __init__(self, page: CapturePage) -> None:
        self.page = page

    @contextmanager
    def open_page(self, *, width: int, height: int):  # type: ignore[no-untyped-def]
        yield self.page


def test_capture_builds_snapshot_for_every_breakpoint() -> None:
    page = CapturePage()
    reporter = ProgressReporter()
    snapshot = SnapshotCapturer(RunConfig(), OnePageBrowser(page)).capture(  # type: ignore[arg-type]
        "https://example.com/", reporter
    )

    assert snapshot.final_url == "https://example.com/home"
    assert snapshot.page_info.title == "Home"
    assert snapshot.page_info.language == "en"
    assert list(snapshot.breakpoints) == ["mobile", "tablet", "desktop"]
    assert page.viewports == [375, 768, 1200]
    desktop = snapshot.desktop
    assert desktop is not None and desktop.root is not None
    assert [child.tag for child in desktop.root.children] == ["h1", "p"]
    assert "<h1>Hello</h1>" in desktop.html
    assert page.scroll_positions == [100, 200, 300, 0]

    assert snapshot.assets.fonts == ["Inter", "Brand Sans"]
    assert [image["src"] for image in snapshot.assets.images] == [
        "https://example.com/logo.png",
        "https://example.com/img/hero.jpg",
    ]
    assert snapshot.warnings == []

    phases = [phase for phase, _ in reporter.history]
    assert phases == [
        "connecting",
        "loading_page",
        "page_loaded",
        "analyzing_layout",
        "capturing_visual_structure",
        "capturing_mobile",
        "capturing_tablet",
        "capturing_desktop",
        "extracting_assets",
        "processing_assets",
        "scraping_complete",
    ]
    assert reporter.last_percent == 95


def test_capture_records_degraded_steps_as_warnings() -> None:
    page = CapturePage(fail_page_info=True)
    snapshot = SnapshotCapturer(RunConfig(), OnePageBrowser(page)).capture(  # type: ignore[arg-type]
        "https://example.com/"
    )
    assert snapshot.page_info.title == ""
    assert [warning.stage for warning in snapshot.warnings] == ["page_info"]


def test_inaccessible_stylesheets_warn_when_fetch_is_disabled() -> None:
    class CrossOriginPage(CapturePage):
        def evaluate(self, script: str, arg: Any = None) -> Any:
            if script == STYLESHEETS_JS:
                return {"text": "", "inaccessible": ["https://cdn.example.net/site.css"]}
            return super().evaluate(script, arg)

    snapshot = SnapshotCapturer(RunConfig(fetch_stylesheets=False), OnePageBrowser(CrossOriginPage())).capture(  # type: ignore[arg-type]
        "https://example.com/"
    )
    assert [(warning.stage, warning.detail) for warning in snapshot.warnings] == [
        ("stylesheets", "https://cdn.example.net/site.css")
    ]


def test_breakpoint_failure_aborts_the_capture() -> None:
    class TabletCrashPage(CapturePage):
        def evaluate(self, script: str, arg: Any = None) -> Any:
            if script == ELEMENT_TREE_JS and self.viewports[-1] == 768:
                raise PlaywrightError("Target crashed")
            return super().evaluate(script, arg)

    with pytest.raises(CaptureError) as excinfo:
        SnapshotCapturer(RunConfig(), OnePageBrowser(TabletCrashPage())).capture(  # type: ignore[arg-type]
            "https://example.com/"
        )
    assert excinfo.value.breakpoint == "tablet"
    assert "Target crashed" in str(excinfo.value)


def test_empty_element_tree_aborts_the_capture() -> None:
    class BlankPage(CapturePage):
        def evaluate(self, script: str, arg: Any = None) -> Any:
            if script == ELEMENT_TREE_JS:
                return []
            return super().evaluate(script, arg)

    with pytest.raises(CaptureError) as excinfo:
        SnapshotCapturer(RunConfig(), OnePageBrowser(BlankPage())).capture(  # type: ignore[arg-type]
            "https://example.com/"
        )
    assert excinfo.value.breakpoint == "mobile"


def test_stylesheet_failure_only_degrades_the_breakpoint() -> None:
    class NoSheetsPage(CapturePage):
        def evaluate(self, script: str, arg: Any = None) -> Any:
            if script == STYLESHEETS_JS:
                raise PlaywrightError("Execution context was destroyed")
            return super().evaluate(script, arg)

    snapshot = SnapshotCapturer(RunConfig(), OnePageBrowser(NoSheetsPage())).capture(  # type: ignore[arg-type]
        "https://example.com/"
    )
    assert snapshot.desktop is not None and snapshot.desktop.root is not None
    assert [warning.stage for warning in snapshot.warnings] == [
        "breakpoint:mobile",
        "breakpoint:tablet",
        "breakpoint:desktop",
    ]


def test_stylesheet_images_resolve_against_their_sheet() -> None:
    class LinkedSheetPage(CapturePage):
        def evaluate(self, script: str, arg: Any = None) -> Any:
            if script == STYLESHEETS_JS:
                return {
                    "text": ".a { background: url(../img/x.png) }\n",
                    "sheets": [
                        {"href": "https://cdn.example.com/css/site.css", "text": ".a { background: url(../img/x.png) }\n"},
                        {"href": "", "text": ".b { background: url(local.gif) }\n"},
                    ],
                    "inaccessible": [],
                }
            return super().evaluate(script, arg)

    snapshot = SnapshotCapturer(RunConfig(), OnePageBrowser(LinkedSheetPage())).capture(  # type: ignore[arg-type]
        "https://example.com/"
    )
    assert [image["src"] for image in snapshot.assets.images] == [
        "https://example.com/logo.png",
        "https://cdn.example.com/img/x.png",
        "https://example.com/local.gif",
    ]
