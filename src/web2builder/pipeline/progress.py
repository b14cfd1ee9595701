from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


@dataclass(slots=True)
class _Tracker:
    callback: ProgressCallback | None
    last: int = 0
    history: list[tuple[str, int]] = field(default_factory=list)


class ProgressReporter:
    """Fire-and-forget progress events with non-decreasing percentages.

    A scoped reporter maps its local 0..100 range onto a slice of the parent's
    range; all scopes share one monotonic tracker.
    """

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        *,
        start: float = 0.0,
        end: float = 100.0,
        _tracker: _Tracker | None = None,
    ) -> None:
        self._tracker = _tracker or _Tracker(callback=callback)
        self.start = start
        self.end = end

    def report(self, phase: str, percent: float) -> None:
        local = min(100.0, max(0.0, float(percent)))
        mapped = int(self.start + (self.end - self.start) * local / 100.0)
        tracker = self._tracker
        value = max(tracker.last, mapped)
        tracker.last = value
        tracker.history.append((phase, value))
        if tracker.callback is None:
            return
        try:
            tracker.callback(phase, value)
        except Exception:  # noqa: BLE001
            logger.debug("progress callback failed for phase %s", phase, exc_info=True)

    def scoped(self, start: float, end: float) -> ProgressReporter:
        span = self.end - self.start
        return ProgressReporter(
            start=self.start + span * start / 100.0,
            end=self.start + span * end / 100.0,
            _tracker=self._tracker,
        )

    @property
    def last_percent(self) -> int:
        return self._tracker.last

    @property
    def history(self) -> list[tuple[str, int]]:
        return list(self._tracker.history)
