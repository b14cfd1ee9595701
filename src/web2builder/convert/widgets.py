from __future__ import annotations

import html
import re
from collections.abc import Callable
from typing import Any

from web2builder.capture.dom_tree import iter_tree
from web2builder.config import ClassifierThresholds
from web2builder.convert.styles import has_visible_border, widget_base_settings
from web2builder.models import ElementNode
from web2builder.utils import parse_px

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
TEXT_TAGS = frozenset({"p", "span", "div"})
FIELD_TAGS = frozenset({"input", "textarea", "select"})
MEDIA_TAGS = frozenset({"video", "iframe"})
LIST_TAGS = frozenset({"ul", "ol"})
TABLE_TAGS = frozenset({"table", "tbody", "thead", "tr", "td", "th"})
NAV_TAGS = frozenset({"nav", "menu"})
STRUCTURAL_TAGS = frozenset({"section", "header", "footer", "article", "aside", "main"})

_BUTTON_CLASS_RE = re.compile(r"\b(btn|button|cta|call-to-action)\b", re.IGNORECASE)

IdFactory = Callable[[], str]


def is_button_like(node: ElementNode, thresholds: ClassifierThresholds | None = None) -> bool:
    t = thresholds or ClassifierThresholds()
    if node.class_name and _BUTTON_CLASS_RE.search(node.class_name):
        return True
    style = node.style
    painted = style.has_background or has_visible_border(style) or parse_px(style.border_radius) > 0
    padded = (
        parse_px(style.padding.top) > t.button_min_padding_top
        or parse_px(style.padding.left) > t.button_min_padding_left
    )
    return painted and padded


def reconstruct_list_html(node: ElementNode) -> str:
    if not node.children:
        return f"<{node.tag}>{node.inner_html}</{node.tag}>" if node.inner_html else ""
    items = "".join(f"<li>{html.escape(_full_text(child))}</li>" for child in node.children)
    return f"<{node.tag}>{items}</{node.tag}>"


def collect_menu_items(node: ElementNode) -> list[dict[str, str]]:
    items: list[dict[str, str]] = []
    for descendant in iter_tree(node):
        if descendant.tag != "a":
            continue
        items.append({"text": _full_text(descendant), "url": descendant.attr("href") or "#"})
    return items


def _full_text(node: ElementNode) -> str:
    parts = [item.text for item in iter_tree(node) if item.text]
    return " ".join(parts).strip()


def _widget(new_id: IdFactory, widget_type: str, settings: dict[str, Any]) -> dict[str, Any]:
    return {"id": new_id(), "elType": "widget", "widgetType": widget_type, "settings": settings}


def _markup(node: ElementNode) -> str:
    if node.outer_html:
        return node.outer_html
    if node.inner_html:
        return node.inner_html
    return f"<{node.tag}>{html.escape(node.text)}</{node.tag}>"


def create_widget(
    node: ElementNode | None,
    new_id: IdFactory,
    thresholds: ClassifierThresholds | None = None,
) -> dict[str, Any] | None:
    """Map one element to a widget by tag, or None when it carries nothing to show."""
    if node is None:
        return None
    tag = node.tag
    base = widget_base_settings(node, new_id())

    if tag in HEADING_TAGS:
        return _widget(
            new_id,
            "heading",
            {**base, "title": node.text or node.inner_html or "Heading", "header_size": tag, "size": "default"},
        )

    if tag == "img":
        src = node.attr("src")
        settings = {
            **base,
            "image": {"url": src} if src else {},
            "image_size": "full",
            "caption": node.attr("alt"),
            "align": "center",
        }
        if node.style.width > 0:
            settings["width"] = {"size": int(node.style.width), "unit": "px"}
        return _widget(new_id, "image", settings)

    if tag == "a":
        href = node.attr("href")
        text = node.text or _full_text(node)
        if is_button_like(node, thresholds):
            return _widget(
                new_id,
                "button",
                {
                    **base,
                    "text": text or "Click here",
                    "link": {"url": href, "is_external": True} if href else {},
                    "size": "md",
                    "button_type": "success",
                },
            )
        editor = f'<a href="{html.escape(href or "#", quote=True)}">{html.escape(text or "Link")}</a>'
        return _widget(new_id, "text-editor", {**base, "editor": editor})

    if tag in TEXT_TAGS:
        if not node.has_content:
            return None
        editor = node.inner_html if node.inner_html.strip() else f"<{tag}>{html.escape(node.text)}</{tag}>"
        return _widget(new_id, "text-editor", {**base, "editor": editor})

    if tag == "form":
        return _widget(new_id, "html", {**base, "html": _markup(node), "title": "Form Element"})

    if tag in FIELD_TAGS:
        input_type = node.attr("type") or "text"
        value = node.attr("value")
        if input_type in {"submit", "button"}:
            return _widget(
                new_id,
                "button",
                {**base, "text": value or node.text or "Submit", "size": "md", "button_type": "primary"},
            )
        markup = node.outer_html or (
            f'<{tag} type="{html.escape(input_type, quote=True)}" '
            f'placeholder="{html.escape(node.attr("placeholder"), quote=True)}" '
            f'value="{html.escape(value, quote=True)}" />'
        )
        return _widget(new_id, "html", {**base, "html": markup, "title": f"{tag.upper()} Field"})

    if tag in MEDIA_TAGS:
        src = node.attr("src")
        if "youtube" in src or "vimeo" in src:
            youtube = "youtube" in src
            return _widget(
                new_id,
                "video",
                {
                    **base,
                    "video_type": "youtube" if youtube else "vimeo",
                    "youtube_url": src if youtube else "",
                    "vimeo_url": src if not youtube else "",
                    "aspect_ratio": "169",
                },
            )
        markup = node.outer_html or node.inner_html or f'<{tag} src="{html.escape(src, quote=True)}"></{tag}>'
        return _widget(new_id, "html", {**base, "html": markup, "title": "Video/Media Element"})

    if tag in LIST_TAGS:
        return _widget(new_id, "text-editor", {**base, "editor": reconstruct_list_html(node)})

    if tag == "button":
        return _widget(
            new_id,
            "button",
            {**base, "text": node.text or _full_text(node) or "Button", "size": "md", "button_type": "primary"},
        )

    if tag in TABLE_TAGS:
        return _widget(new_id, "html", {**base, "html": _markup(node), "title": "Table Element"})

    if tag == "svg":
        return _widget(new_id, "html", {**base, "html": _markup(node), "title": "SVG Icon"})

    if tag in NAV_TAGS:
        return _widget(
            new_id,
            "nav-menu",
            {**base, "layout": "horizontal", "pointer": "underline", "menu_items": collect_menu_items(node)},
        )

    if node.has_content or tag in STRUCTURAL_TAGS:
        return _widget(new_id, "html", {**base, "html": _markup(node), "title": f"{tag.upper()} Element"})

    return None
