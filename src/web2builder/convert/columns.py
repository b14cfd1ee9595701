from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from web2builder.config import ClassifierThresholds
from web2builder.convert.rules import LayoutContext, NodeKind, ParentKind, classify, column_break
from web2builder.convert.styles import column_settings
from web2builder.convert.widgets import IdFactory, create_widget
from web2builder.models import ElementNode

logger = logging.getLogger(__name__)

CONTAINER_TAGS = frozenset({"div", "article", "aside", "section", "main", "header", "footer", "figure"})
MEDIA_WIDGETS = frozenset({"image", "video"})


def make_column(
    new_id: IdFactory, widgets: list[dict[str, Any]], source: ElementNode | None = None
) -> dict[str, Any]:
    return {
        "id": new_id(),
        "elType": "column",
        "settings": column_settings(source),
        "elements": widgets,
        "isInner": False,
    }


def widgets_for_child(
    child: ElementNode, new_id: IdFactory, thresholds: ClassifierThresholds
) -> list[dict[str, Any]]:
    """Widgets contributed by one direct child of a section."""
    kind = classify(child, ParentKind.SECTION, thresholds).kind
    if kind == NodeKind.COLUMN and child.children and child.tag in CONTAINER_TAGS:
        widgets = []
        for grandchild in child.children:
            widget = create_widget(grandchild, new_id, thresholds)
            if widget is not None:
                widgets.append(widget)
        return widgets
    widget = create_widget(child, new_id, thresholds)
    return [widget] if widget is not None else []


def group_into_columns(
    section: ElementNode, new_id: IdFactory, thresholds: ClassifierThresholds | None = None
) -> list[dict[str, Any]]:
    t = thresholds or ClassifierThresholds()
    children = section.children
    if not children:
        return [make_column(new_id, [])]

    context = LayoutContext.analyze(section, children, t)
    groups: list[list[ElementNode]] = []
    previous: ElementNode | None = None
    for child in children:
        reason = column_break(child, previous, context)
        if reason is not None or not groups:
            if reason is not None:
                logger.debug("column break before <%s>: %s", child.tag, reason)
            groups.append([child])
        else:
            groups[-1].append(child)
        previous = child

    columns: list[dict[str, Any]] = []
    for group in groups:
        widgets: list[dict[str, Any]] = []
        for child in group:
            widgets.extend(widgets_for_child(child, new_id, t))
        if not widgets:
            continue
        source = group[0] if len(group) == 1 else None
        columns.append(make_column(new_id, widgets, source))

    if not columns:
        return [make_column(new_id, [])]
    allocate_widths(columns, t)
    return columns


def column_weight(column: dict[str, Any], thresholds: ClassifierThresholds) -> float:
    widgets = column.get("elements") or []
    weight = 1.0 + len(widgets) * thresholds.widget_weight
    if any(widget.get("widgetType") in MEDIA_WIDGETS for widget in widgets):
        weight += thresholds.media_weight
    if any(_is_form_widget(widget) for widget in widgets):
        weight += thresholds.form_weight
    return weight


def _is_form_widget(widget: dict[str, Any]) -> bool:
    if widget.get("widgetType") != "html":
        return False
    markup = str((widget.get("settings") or {}).get("html") or "")
    return "<form" in markup or "<input" in markup


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_widths(weights: Sequence[float], thresholds: ClassifierThresholds | None = None) -> list[int]:
    """Proportional integer widths that always sum to exactly 100."""
    t = thresholds or ClassifierThresholds()
    count = len(weights)
    if count == 0:
        return []
    if count == 1:
        return [100]
    total = sum(weights) or float(count)
    floor = min(t.min_column_width, 100 // count)
    widths: list[int] = []
    used = 0
    for index, weight in enumerate(weights):
        if index == count - 1:
            widths.append(100 - used)
            break
        width = _round_half_up(weight / total * 100)
        width = max(floor, min(t.max_column_width, width))
        remaining_columns = count - index - 1
        width = min(width, 100 - used - floor * remaining_columns)
        widths.append(width)
        used += width
    return widths


def allocate_widths(columns: list[dict[str, Any]], thresholds: ClassifierThresholds | None = None) -> None:
    t = thresholds or ClassifierThresholds()
    widths = compute_widths([column_weight(column, t) for column in columns], t)
    for column, width in zip(columns, widths):
        column["settings"]["_column_size"] = width
        column["settings"]["_inline_size"] = None
