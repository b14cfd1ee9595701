from __future__ import annotations

import base64
from dataclasses import dataclass, field, fields
from typing import Any

from web2builder.errors import CaptureWarning

NO_PAINT_COLORS = frozenset({"rgba(0, 0, 0, 0)", "transparent", ""})
FLOW_DISPLAYS = frozenset({"flex", "inline-flex", "grid", "inline-grid"})


@dataclass(slots=True)
class Sides:
    top: str = "0px"
    right: str = "0px"
    bottom: str = "0px"
    left: str = "0px"

    @classmethod
    def from_raw(cls, raw: Any) -> Sides:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            top=str(raw.get("top") or "0px"),
            right=str(raw.get("right") or "0px"),
            bottom=str(raw.get("bottom") or "0px"),
            left=str(raw.get("left") or "0px"),
        )


@dataclass(slots=True)
class StyleSnapshot:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    display: str = "block"
    position: str = "static"
    flex_direction: str = "row"
    flex_wrap: str = "nowrap"
    justify_content: str = "normal"
    align_items: str = "normal"
    grid_template_columns: str = "none"
    grid_template_rows: str = "none"
    flex: str = ""
    flex_grow: str = "0"
    flex_basis: str = "auto"
    order: str = "0"
    margin: Sides = field(default_factory=Sides)
    padding: Sides = field(default_factory=Sides)
    background_color: str = "rgba(0, 0, 0, 0)"
    background_image: str = "none"
    background_size: str = "auto"
    background_position: str = "0% 0%"
    background_repeat: str = "repeat"
    border: str = ""
    border_width: str = "0px"
    border_style: str = "none"
    border_color: str = ""
    border_radius: str = "0px"
    box_shadow: str = "none"
    font_family: str = ""
    font_size: str = "16px"
    font_weight: str = "400"
    font_style: str = "normal"
    line_height: str = "normal"
    text_align: str = "start"
    text_decoration: str = "none"
    text_transform: str = "none"
    letter_spacing: str = "normal"
    color: str = "rgb(0, 0, 0)"
    visibility: str = "visible"
    opacity: str = "1"
    overflow: str = "visible"
    overflow_x: str = "visible"
    overflow_y: str = "visible"
    z_index: str = "auto"
    transform: str = "none"
    css_float: str = "none"
    white_space: str = "normal"

    @classmethod
    def from_raw(cls, raw: Any) -> StyleSnapshot:
        if not isinstance(raw, dict):
            return cls()
        values: dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in raw or raw[item.name] is None:
                continue
            value = raw[item.name]
            if item.name in {"margin", "padding"}:
                values[item.name] = Sides.from_raw(value)
            elif item.name in {"x", "y", "width", "height"}:
                try:
                    values[item.name] = float(value)
                except (TypeError, ValueError):
                    continue
            else:
                values[item.name] = str(value)
        return cls(**values)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_visible(self) -> bool:
        return (
            self.width > 0
            and self.height > 0
            and self.visibility != "hidden"
            and self.display != "none"
        )

    @property
    def is_flow_container(self) -> bool:
        return self.display in FLOW_DISPLAYS

    @property
    def is_row_flow(self) -> bool:
        if self.display in {"grid", "inline-grid"}:
            return True
        return self.display in {"flex", "inline-flex"} and not self.flex_direction.startswith("column")

    @property
    def has_background(self) -> bool:
        return self.background_color not in NO_PAINT_COLORS


@dataclass(slots=True)
class ElementNode:
    tag: str
    style: StyleSnapshot = field(default_factory=StyleSnapshot)
    element_id: str = ""
    class_name: str = ""
    text: str = ""
    inner_html: str = ""
    outer_html: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[ElementNode] = field(default_factory=list)
    depth: int = 0
    markup_truncated: bool = False

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def has_content(self) -> bool:
        return bool(self.text.strip() or self.inner_html.strip())

    def attr(self, name: str) -> str:
        return self.attributes.get(name) or ""


@dataclass(slots=True)
class BreakpointCapture:
    name: str
    width: int
    root: ElementNode | None
    html: str = ""
    stylesheet_text: str = ""
    stylesheet_sources: list[tuple[str, str]] = field(default_factory=list)
    inaccessible_stylesheets: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PageInfo:
    title: str = ""
    description: str = ""
    favicon: str | None = None
    language: str = ""
    charset: str = ""
    viewport: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> PageInfo:
        if not isinstance(raw, dict):
            return cls()
        return cls(
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            favicon=raw.get("favicon") or None,
            language=str(raw.get("lang") or raw.get("language") or ""),
            charset=str(raw.get("charset") or ""),
            viewport=str(raw.get("viewport") or ""),
        )


@dataclass(slots=True)
class AssetBundle:
    images: list[dict[str, Any]] = field(default_factory=list)
    fonts: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    gradients: list[str] = field(default_factory=list)
    videos: list[dict[str, Any]] = field(default_factory=list)
    forms: list[dict[str, Any]] = field(default_factory=list)
    buttons: list[dict[str, Any]] = field(default_factory=list)
    links: list[dict[str, Any]] = field(default_factory=list)
    stylesheets: list[dict[str, Any]] = field(default_factory=list)
    scripts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(getattr(self, item.name)) for item in fields(self))


@dataclass(slots=True)
class PageSnapshot:
    url: str
    final_url: str
    page_info: PageInfo
    breakpoints: dict[str, BreakpointCapture]
    assets: AssetBundle
    timestamp: str
    warnings: list[CaptureWarning] = field(default_factory=list)

    @property
    def desktop(self) -> BreakpointCapture | None:
        if "desktop" in self.breakpoints:
            return self.breakpoints["desktop"]
        if not self.breakpoints:
            return None
        return max(self.breakpoints.values(), key=lambda capture: capture.width)


@dataclass(slots=True)
class StructureCounts:
    elements: int = 0
    text_nodes: int = 0
    images: int = 0
    sections: int = 0
    containers: int = 0
    headings: int = 0
    links: int = 0

    @classmethod
    def from_raw(cls, raw: Any) -> StructureCounts:
        if not isinstance(raw, dict):
            return cls()
        return cls(**{item.name: int(raw.get(item.name) or 0) for item in fields(cls)})

    def as_dict(self) -> dict[str, int]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


@dataclass(slots=True)
class LayoutBox:
    tag: str
    x: float
    y: float
    width: float
    height: float
    styles: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PageCapture:
    screenshots: dict[str, bytes] = field(default_factory=dict)
    layouts: dict[str, list[LayoutBox]] = field(default_factory=dict)
    structure: StructureCounts | None = None


@dataclass(slots=True)
class FidelityReport:
    url: str
    timestamp: str
    threshold: float
    visual_score: float = 0.0
    structural_score: float = 0.0
    responsive_score: float = 0.0
    fidelity_score: float = 0.0
    passed: bool = False
    state: str = "preparing"
    state_history: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    breakpoint_scores: dict[str, dict[str, float]] = field(default_factory=dict)
    screenshots: dict[str, dict[str, bytes]] = field(default_factory=dict)
    fallback: bool = False
    error: str | None = None

    def to_dict(self, *, include_screenshots: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "fidelityScore": self.fidelity_score,
            "visualScore": self.visual_score,
            "structuralScore": self.structural_score,
            "responsiveScore": self.responsive_score,
            "passed": self.passed,
            "threshold": self.threshold,
            "details": self.details,
            "breakpoints": self.breakpoint_scores,
            "state": self.state,
            "fallback": self.fallback,
        }
        if self.error is not None:
            payload["error"] = self.error
        if include_screenshots and self.screenshots:
            payload["screenshots"] = {
                side: {
                    name: base64.b64encode(data).decode("ascii") for name, data in shots.items()
                }
                for side, shots in self.screenshots.items()
            }
        return payload
