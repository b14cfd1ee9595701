from __future__ import annotations

import logging
from dataclasses import dataclass

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from web2builder.config import NavigationConfig
from web2builder.errors import NavigationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WaitStrategy:
    name: str
    wait_until: str
    timeout_ms: int
    settle_ms: int = 0
    idle_after_load: bool = False


def default_strategies(config: NavigationConfig | None = None) -> list[WaitStrategy]:
    cfg = config or NavigationConfig()
    return [
        WaitStrategy("strict_idle", "networkidle", cfg.strict_idle_timeout_ms),
        WaitStrategy(
            "lenient_idle",
            "load",
            cfg.lenient_idle_timeout_ms,
            settle_ms=cfg.lenient_idle_settle_ms,
            idle_after_load=True,
        ),
        WaitStrategy(
            "dom_ready",
            "domcontentloaded",
            cfg.dom_ready_timeout_ms,
            settle_ms=cfg.dom_ready_settle_ms,
        ),
    ]


def navigate_with_fallback(
    page: Page, url: str, strategies: list[WaitStrategy] | None = None
) -> str:
    """Try each wait strategy in order and return the name of the one that loaded."""
    chain = strategies if strategies is not None else default_strategies()
    attempted: list[str] = []
    last_error: BaseException | None = None
    for strategy in chain:
        attempted.append(strategy.name)
        try:
            page.goto(url, wait_until=strategy.wait_until, timeout=strategy.timeout_ms)
        except PlaywrightError as exc:
            logger.warning("navigation strategy %s failed for %s: %s", strategy.name, url, exc)
            last_error = exc
            continue
        _settle(page, strategy)
        logger.info("navigated to %s using %s", url, strategy.name)
        return strategy.name
    raise NavigationError(url, attempted, last_error)


def _settle(page: Page, strategy: WaitStrategy) -> None:
    if strategy.settle_ms <= 0:
        return
    if not strategy.idle_after_load:
        page.wait_for_timeout(strategy.settle_ms)
        return
    try:
        page.wait_for_load_state("networkidle", timeout=strategy.settle_ms)
    except PlaywrightError:
        # Best effort: the load event already fired.
        logger.debug("network did not go idle within %sms", strategy.settle_ms)
