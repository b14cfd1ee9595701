from __future__ import annotations

import pytest
from playwright.sync_api import Error as PlaywrightError

from web2builder.capture.navigation import WaitStrategy, default_strategies, navigate_with_fallback
from web2builder.config import NavigationConfig
from web2builder.errors import NavigationError


class ScriptedPage:
    def __init__(self, failures: int, *, idle_fails: bool = False) -> None:
        self.failures = failures
        self.idle_fails = idle_fails
        self.goto_calls: list[tuple[str, int]] = []
        self.load_states: list[tuple[str, int]] = []
        self.timeouts: list[int] = []

    def goto(self, url: str, *, wait_until: str, timeout: int) -> None:
        self.goto_calls.append((wait_until, timeout))
        if len(self.goto_calls) <= self.failures:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")

    def wait_for_load_state(self, state: str, *, timeout: int) -> None:
        self.load_states.append((state, timeout))
        if self.idle_fails:
            raise PlaywrightError("Timeout exceeded")

    def wait_for_timeout(self, ms: int) -> None:
        self.timeouts.append(ms)


def test_unreachable_host_tries_every_strategy_in_order() -> None:
    page = ScriptedPage(failures=3)
    with pytest.raises(NavigationError) as caught:
        navigate_with_fallback(page, "https://unreachable.invalid/")  # type: ignore[arg-type]
    error = caught.value
    assert [wait_until for wait_until, _ in page.goto_calls] == ["networkidle", "load", "domcontentloaded"]
    assert error.attempted == ["strict_idle", "lenient_idle", "dom_ready"]
    assert isinstance(error.last_error, PlaywrightError)
    assert error.url == "https://unreachable.invalid/"
    assert "dom_ready" in str(error)


def test_strict_idle_success_needs_no_settle() -> None:
    page = ScriptedPage(failures=0)
    assert navigate_with_fallback(page, "https://example.com/") == "strict_idle"  # type: ignore[arg-type]
    assert page.load_states == []
    assert page.timeouts == []


def test_lenient_idle_waits_for_network_idle_best_effort() -> None:
    page = ScriptedPage(failures=1, idle_fails=True)
    assert navigate_with_fallback(page, "https://example.com/") == "lenient_idle"  # type: ignore[arg-type]
    assert page.load_states == [("networkidle", 5000)]


def test_dom_ready_settles_with_fixed_delay() -> None:
    page = ScriptedPage(failures=2)
    assert navigate_with_fallback(page, "https://example.com/") == "dom_ready"  # type: ignore[arg-type]
    assert page.timeouts == [3000]


def test_default_strategies_follow_config() -> None:
    strategies = default_strategies(NavigationConfig(strict_idle_timeout_ms=1000, dom_ready_timeout_ms=500))
    assert [strategy.name for strategy in strategies] == ["strict_idle", "lenient_idle", "dom_ready"]
    assert strategies[0].timeout_ms == 1000
    assert strategies[2].timeout_ms == 500


def test_custom_strategy_chain() -> None:
    page = ScriptedPage(failures=0)
    chain = [WaitStrategy("only_load", "load", 100)]
    assert navigate_with_fallback(page, "https://example.com/", chain) == "only_load"  # type: ignore[arg-type]
    assert page.goto_calls == [("load", 100)]
