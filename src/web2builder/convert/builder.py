from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from web2builder.config import RunConfig
from web2builder.convert.columns import allocate_widths, group_into_columns, make_column
from web2builder.convert.governance import govern_size
from web2builder.convert.rules import NodeKind, ParentKind, classify
from web2builder.convert.styles import section_settings
from web2builder.convert.widgets import IdFactory, create_widget
from web2builder.models import NO_PAINT_COLORS, ElementNode, FidelityReport, PageSnapshot
from web2builder.utils import IdGenerator

logger = logging.getLogger(__name__)

TEMPLATE_VERSION = "0.4"
CLONED_BY = "web2builder"
CAPTURE_METHOD = "multi-breakpoint-structure"
WELCOME_HTML = "<p>Welcome to your cloned page</p>"
RESPONSIVE_CSS = """/* Essential responsive CSS only */
.elementor-widget:hover { transition: all 0.3s ease; }
.elementor-widget-image img { max-width: 100%; height: auto; }
@media (max-width: 768px) {
  .elementor-section { padding: 15px 10px; }
}"""
SYSTEM_COLORS = (
    ("Primary", "#6ec1e4"),
    ("Secondary", "#54595f"),
    ("Text", "#7a7a7a"),
    ("Accent", "#61ce70"),
)


class TemplateBuilder:
    def __init__(self, config: RunConfig | None = None) -> None:
        self.config = config or RunConfig()

    def build(
        self,
        snapshot: PageSnapshot,
        report: FidelityReport | None = None,
        *,
        id_factory: IdFactory | None = None,
    ) -> dict[str, Any]:
        """Turn a captured page into a size-governed TemplateDocument."""
        new_id = id_factory or IdGenerator()
        desktop = snapshot.desktop
        content = self.build_content(desktop.root if desktop else None, new_id)
        sections, columns, widgets = count_elements(content)
        document: dict[str, Any] = {
            "version": TEMPLATE_VERSION,
            "title": snapshot.page_info.title or "Cloned Page",
            "type": "page",
            "content": content,
            "page_settings": self.page_settings(snapshot, new_id),
            "metadata": {
                "created_at": datetime.now(timezone.utc).isoformat(),
                "source_url": snapshot.final_url or snapshot.url,
                "fidelity_score": report.fidelity_score if report else 0,
                "verification_passed": report.passed if report else False,
                "total_elements": sections + columns + widgets,
                "sections_count": sections,
                "columns_count": columns,
                "widgets_count": widgets,
                "cloned_by": CLONED_BY,
                "capture_method": CAPTURE_METHOD,
            },
        }
        logger.info(
            "built document: %d section(s), %d column(s), %d widget(s)", sections, columns, widgets
        )
        return govern_size(document, self.config.size)

    def build_content(self, root: ElementNode | None, new_id: IdFactory) -> list[dict[str, Any]]:
        thresholds = self.config.classifier
        sections: list[dict[str, Any]] = []
        stray: list[dict[str, Any]] = []

        def flush() -> None:
            if not stray:
                return
            column = make_column(new_id, list(stray))
            allocate_widths([column], thresholds)
            sections.append(_section(new_id, section_settings(None, 1), [column]))
            stray.clear()

        if root is None:
            stack: list[ElementNode] = []
        elif root.children:
            stack = list(reversed(root.children))
        else:
            stack = [root]

        while stack:
            node = stack.pop()
            kind = classify(node, ParentKind.BODY, thresholds).kind
            if kind == NodeKind.SECTION:
                flush()
                columns = group_into_columns(node, new_id, thresholds)
                settings = section_settings(node, len(columns), thresholds.section_min_custom_height)
                sections.append(_section(new_id, settings, columns))
            elif kind == NodeKind.PASSTHROUGH:
                stack.extend(reversed(node.children))
            else:
                widget = create_widget(node, new_id, thresholds)
                if widget is not None:
                    stray.append(widget)
        flush()

        if not sections:
            logger.info("no sections found; emitting default section")
            sections.append(default_section(new_id))
        return sections

    def page_settings(self, snapshot: PageSnapshot, new_id: IdFactory) -> dict[str, Any]:
        cfg = self.config
        thresholds = cfg.classifier
        colors = [
            color for color in snapshot.assets.colors if color and color not in NO_PAINT_COLORS
        ][: thresholds.max_palette_colors]
        fonts = [font for font in snapshot.assets.fonts if font and font != "inherit"][
            : thresholds.max_palette_fonts
        ]
        return {
            "template": "elementor_canvas",
            "viewport_mobile": cfg.viewport_mobile_max,
            "viewport_tablet": cfg.viewport_tablet_max,
            "custom_css": build_custom_css(snapshot.assets.gradients, thresholds.max_gradients),
            "custom_colors": [
                {"_id": new_id(), "title": f"Color {index}", "color": color}
                for index, color in enumerate(colors, start=1)
            ],
            "custom_fonts": [
                {"_id": new_id(), "title": f"Font {index}", "font_family": font, "font_weight": "400"}
                for index, font in enumerate(fonts, start=1)
            ],
            "system_colors": [
                {"_id": new_id(), "title": title, "color": color} for title, color in SYSTEM_COLORS
            ],
        }


def build_custom_css(gradients: list[str], limit: int = 3) -> str:
    lines = [
        f".custom-gradient-{index} {{ background: {gradient}; }}"
        for index, gradient in enumerate(gradients[:limit])
    ]
    lines.append(RESPONSIVE_CSS)
    return "\n".join(lines).strip()


def _section(new_id: IdFactory, settings: dict[str, Any], columns: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "id": new_id(),
        "elType": "section",
        "settings": settings,
        "elements": columns,
        "isInner": False,
    }


def default_section(new_id: IdFactory) -> dict[str, Any]:
    widget = {
        "id": new_id(),
        "elType": "widget",
        "widgetType": "text-editor",
        "settings": {"_element_id": new_id(), "editor": WELCOME_HTML},
    }
    return _section(new_id, {"content_width": "boxed"}, [make_column(new_id, [widget])])


def count_elements(content: list[dict[str, Any]]) -> tuple[int, int, int]:
    sections = columns = widgets = 0
    for section in content:
        sections += 1
        for column in section.get("elements") or []:
            columns += 1
            widgets += len(column.get("elements") or [])
    return sections, columns, widgets


def apply_report(document: dict[str, Any], report: FidelityReport | None) -> dict[str, Any]:
    metadata = document.setdefault("metadata", {})
    metadata["fidelity_score"] = report.fidelity_score if report else 0
    metadata["verification_passed"] = report.passed if report else False
    return document
