from __future__ import annotations

from dataclasses import dataclass


class NavigationError(RuntimeError):
    """Every wait strategy failed to load the URL."""

    def __init__(self, url: str, attempted: list[str], last_error: BaseException | None) -> None:
        self.url = url
        self.attempted = list(attempted)
        self.last_error = last_error
        reason = str(last_error) if last_error is not None else "unknown error"
        super().__init__(
            f"Navigation to {url} failed after strategies [{', '.join(self.attempted)}]: {reason}"
        )



class CaptureError(RuntimeError):
    """The page loaded but its element tree could not be captured at a breakpoint."""

    def __init__(self, url: str, breakpoint: str, reason: str) -> None:
        self.url = url
        self.breakpoint = breakpoint
        super().__init__(f"Capture of {url} failed at the {breakpoint} breakpoint: {reason}")


@dataclass(slots=True)
class CaptureWarning:
    """A non-fatal, degraded capture step (partial data, skipped resource)."""

    stage: str
    message: str
    detail: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"stage": self.stage, "message": self.message, "detail": self.detail}
