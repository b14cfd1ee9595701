from __future__ import annotations

import re
from typing import Any

from web2builder.models import NO_PAINT_COLORS, ElementNode, Sides, StyleSnapshot
from web2builder.utils import parse_css_number, parse_px

_CSS_URL_RE = re.compile(r"url\(['\"]?([^'\")]+)['\"]?\)")
_ALIGNMENTS = frozenset({"left", "center", "right", "justify"})


def extract_image_url(background_image: str) -> str | None:
    if not background_image or background_image == "none":
        return None
    match = _CSS_URL_RE.search(background_image)
    return match.group(1) if match else None


def convert_spacing(sides: Sides | None) -> dict[str, Any]:
    if sides is None:
        return {"top": 0, "right": 0, "bottom": 0, "left": 0, "unit": "px", "isLinked": False}
    return {
        "top": parse_px(sides.top),
        "right": parse_px(sides.right),
        "bottom": parse_px(sides.bottom),
        "left": parse_px(sides.left),
        "unit": "px",
        "isLinked": False,
    }


def has_visible_border(style: StyleSnapshot) -> bool:
    return style.border_style not in {"none", "hidden", ""} and parse_px(style.border_width) > 0


def border_radius_setting(style: StyleSnapshot) -> dict[str, Any] | None:
    radius = parse_px(style.border_radius)
    if not style.border_radius or style.border_radius == "0px" or radius <= 0:
        return None
    return {"top": radius, "right": radius, "bottom": radius, "left": radius, "unit": "px"}


def background_settings(style: StyleSnapshot, *, with_image: bool = False) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    if style.background_color not in NO_PAINT_COLORS:
        settings["background_background"] = "classic"
        settings["background_color"] = style.background_color
    if with_image:
        image_url = extract_image_url(style.background_image)
        if image_url:
            settings["background_background"] = "classic"
            settings["background_image"] = {"url": image_url}
            settings["background_size"] = (
                style.background_size if style.background_size not in {"", "auto"} else "cover"
            )
            settings["background_position"] = (
                style.background_position if style.background_position else "center center"
            )
    return settings


def typography_settings(style: StyleSnapshot) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    if style.font_family:
        settings["typography_typography"] = "custom"
        settings["typography_font_family"] = style.font_family
    font_size = parse_px(style.font_size)
    if font_size > 0:
        settings["typography_font_size"] = {"size": font_size, "unit": "px"}
    if style.font_weight:
        settings["typography_font_weight"] = style.font_weight
    if style.line_height.endswith("px"):
        line_height = parse_css_number(style.line_height)
        if line_height:
            settings["typography_line_height"] = {"size": line_height, "unit": "px"}
    if style.text_align in _ALIGNMENTS:
        settings["align"] = style.text_align
    return settings


def widget_base_settings(node: ElementNode, element_id: str) -> dict[str, Any]:
    style = node.style
    settings: dict[str, Any] = {"_element_id": element_id}
    if style.color:
        settings["color"] = style.color
    settings.update(background_settings(style))
    settings.update(typography_settings(style))
    settings["padding"] = convert_spacing(style.padding)
    settings["margin"] = convert_spacing(style.margin)
    radius = border_radius_setting(style)
    if radius is not None:
        settings["border_radius"] = radius
    if style.box_shadow and style.box_shadow != "none":
        settings["box_shadow_box_shadow"] = style.box_shadow
    return settings


def section_settings(node: ElementNode | None, column_count: int, min_custom_height: int = 100) -> dict[str, Any]:
    settings: dict[str, Any] = {
        "content_width": "boxed",
        "height": "default",
        "structure": f"{max(1, min(column_count, 6))}0",
    }
    if node is None:
        return settings
    style = node.style
    settings.update(background_settings(style, with_image=True))
    settings["padding"] = convert_spacing(style.padding)
    settings["margin"] = convert_spacing(style.margin)
    height = int(style.height)
    if height > min_custom_height:
        settings["height"] = "min-height"
        settings["custom_height"] = {"size": height, "unit": "px"}
    return settings


def column_settings(node: ElementNode | None) -> dict[str, Any]:
    settings: dict[str, Any] = {"_column_size": 100, "_inline_size": None}
    if node is None:
        return settings
    style = node.style
    settings.update(background_settings(style))
    settings["padding"] = convert_spacing(style.padding)
    settings["margin"] = convert_spacing(style.margin)
    if has_visible_border(style):
        settings["border_border"] = "solid"
        settings["border_width"] = {"top": 1, "right": 1, "bottom": 1, "left": 1, "unit": "px"}
        settings["border_color"] = style.border_color or "#000000"
    radius = border_radius_setting(style)
    if radius is not None:
        settings["border_radius"] = radius
    return settings
