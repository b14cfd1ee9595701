from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from playwright.sync_api import Browser, Page, Playwright, sync_playwright

from web2builder.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = ["--disable-blink-features=AutomationControlled", "--no-sandbox"]


class BrowserManager:
    """Owns one lazily started Chromium and hands out isolated pages.

    Playwright's sync objects are bound to the thread that created them, so a
    manager must be used from a single thread.
    """

    def __init__(
        self,
        *,
        headful: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self.headful = headful
        self.user_agent = user_agent
        self._playwright_factory = playwright_factory
        self._driver: Any = None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._start_lock = threading.Lock()
        self._context_lock = threading.Lock()

    def acquire(self) -> Browser:
        if self._browser is not None:
            return self._browser
        with self._start_lock:
            if self._browser is None:
                self._driver = self._playwright_factory()
                self._playwright = self._driver.start()
                self._browser = self._playwright.chromium.launch(
                    headless=not self.headful,
                    args=_LAUNCH_ARGS,
                )
                logger.info("browser started (headful=%s)", self.headful)
        return self._browser

    @property
    def started(self) -> bool:
        return self._browser is not None

    @contextmanager
    def open_page(self, *, width: int = 1200, height: int = 800) -> Iterator[Page]:
        browser = self.acquire()
        with self._context_lock:
            context = browser.new_context(
                viewport={"width": width, "height": height},
                user_agent=self.user_agent,
            )
        try:
            page = context.new_page()
            page.add_init_script(
                """
                Object.defineProperty(navigator, 'webdriver', {
                  get: () => undefined
                });
                """
            )
            yield page
        finally:
            context.close()

    def shutdown(self) -> None:
        with self._start_lock:
            browser, self._browser = self._browser, None
            playwright, self._playwright = self._playwright, None
            self._driver = None
            if browser is not None:
                browser.close()
            if playwright is not None:
                playwright.stop()
                logger.info("browser stopped")

    def __enter__(self) -> BrowserManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.shutdown()
