from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True, slots=True)
class Breakpoint:
    name: str
    width: int


@dataclass(slots=True)
class Breakpoints:
    mobile: int = 375
    tablet: int = 768
    desktop: int = 1200
    viewport_height: int = 800

    def ordered(self) -> list[Breakpoint]:
        return [
            Breakpoint("mobile", self.mobile),
            Breakpoint("tablet", self.tablet),
            Breakpoint("desktop", self.desktop),
        ]


@dataclass(slots=True)
class NavigationConfig:
    strict_idle_timeout_ms: int = 60000
    lenient_idle_timeout_ms: int = 45000
    lenient_idle_settle_ms: int = 5000
    dom_ready_timeout_ms: int = 30000
    dom_ready_settle_ms: int = 3000


@dataclass(slots=True)
class ClassifierThresholds:
    section_min_height: float = 200.0
    section_min_width: float = 300.0
    section_min_children: int = 2  # strictly more than this
    wide_child_min_width: float = 100.0
    column_wide_ratio: float = 1.5
    min_column_width: int = 15
    max_column_width: int = 70
    widget_weight: float = 0.2
    media_weight: float = 0.5
    form_weight: float = 0.3
    button_min_padding_top: int = 5
    button_min_padding_left: int = 10
    section_min_custom_height: int = 100
    max_palette_colors: int = 8
    max_palette_fonts: int = 6
    max_gradients: int = 3


@dataclass(slots=True)
class ScoringConfig:
    threshold: float = 0.45
    structural_weight: float = 0.5
    visual_weight: float = 0.3
    responsive_weight: float = 0.2
    visual_proxy: bool = True
    structural_leniency: float = 1.4
    structural_partial_credit: float = 0.3
    content_boost: float = 1.2
    boost_below: float = 0.6
    boost_trigger: float = 0.4
    boost_factor: float = 1.3
    boost_floor: float = 0.6
    score_floor: float = 0.5
    visual_buckets: tuple[tuple[float, float], ...] = (
        (0.05, 0.8),
        (0.15, 0.6),
        (0.3, 0.4),
        (0.5, 0.3),
    )
    visual_default: float = 0.1
    responsive_bands: tuple[tuple[float, float], ...] = (
        (0.8, 1.0),
        (0.6, 0.9),
        (0.4, 0.8),
        (0.2, 0.7),
    )
    responsive_minimum: float = 0.6
    fallback_scores: tuple[float, float, float] = (0.25, 0.15, 0.20)
    failure_scores: tuple[float, float, float] = (0.10, 0.05, 0.10)
    gate_soft_score: float = 0.4
    gate_hard_fail_score: float = 0.3


@dataclass(slots=True)
class SizeLimits:
    markup_field_max_chars: int = 1000
    compact_above_bytes: int = 150_000
    hard_max_bytes: int = 2_000_000
    minimal_sections: int = 3


@dataclass(slots=True)
class RunConfig:
    url: str = ""
    skip_verification: bool = False
    headful: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    breakpoints: Breakpoints = field(default_factory=Breakpoints)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    classifier: ClassifierThresholds = field(default_factory=ClassifierThresholds)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    size: SizeLimits = field(default_factory=SizeLimits)
    post_load_wait_ms: int = 3000
    reflow_wait_ms: int = 500
    scroll_step_px: int = 100
    scroll_step_ms: int = 100
    max_scroll_steps: int = 400
    scroll_settle_ms: int = 1000
    max_depth: int = 25
    max_markup_chars: int = 50_000
    fetch_stylesheets: bool = True
    stylesheet_timeout_seconds: float = 15.0
    viewport_tablet_max: int = 1024
    include_screenshots: bool = False
    log_level: str = "info"
    output_root: Path = Path("output")

    @property
    def viewport_mobile_max(self) -> int:
        return self.breakpoints.tablet - 1
