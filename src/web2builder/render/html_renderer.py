from __future__ import annotations

import logging
from typing import Any

from lxml import etree
from lxml import html as lxml_html
from lxml.html import builder as E

logger = logging.getLogger(__name__)

_BASE_CSS = """
* { box-sizing: border-box; }
body { margin: 0; font-family: sans-serif; }
.elementor-section { display: block; width: 100%; }
.elementor-container { display: flex; flex-wrap: wrap; max-width: 1140px; margin: 0 auto; }
.elementor-column { min-height: 1px; }
.elementor-widget img { max-width: 100%; height: auto; }
.elementor-button { display: inline-block; padding: 12px 24px; text-decoration: none; }
@media (max-width: 767px) { .elementor-column { width: 100% !important; } }
"""


def render_document_html(document: dict[str, Any]) -> str:
    """Render a TemplateDocument as one standalone, script-free HTML page."""
    page_settings = document.get("page_settings") or {}
    custom_css = str(page_settings.get("custom_css") or "")
    head = E.HEAD(
        E.META(charset="utf-8"),
        E.META(name="viewport", content="width=device-width, initial-scale=1"),
        E.TITLE(str(document.get("title") or "Cloned Page")),
        E.STYLE(_BASE_CSS + "\n" + custom_css),
    )
    body = E.BODY(E.CLASS("elementor-page"))
    for section in document.get("content") or []:
        if isinstance(section, dict):
            body.append(_render_section(section))
    root = E.HTML(head, body)
    return lxml_html.tostring(root, doctype="<!DOCTYPE html>", encoding="unicode", method="html")


def _render_section(section: dict[str, Any]) -> etree._Element:
    settings = section.get("settings") or {}
    element = E.E.section(E.CLASS("elementor-section"))
    element.set("data-id", str(section.get("id") or ""))
    style = _box_style(settings)
    custom_height = settings.get("custom_height")
    if isinstance(custom_height, dict) and custom_height.get("size"):
        style.append(f"min-height: {custom_height['size']}px")
    background_image = settings.get("background_image")
    if isinstance(background_image, dict) and background_image.get("url"):
        style.append(f"background-image: url('{background_image['url']}')")
        style.append(f"background-size: {settings.get('background_size') or 'cover'}")
    if style:
        element.set("style", "; ".join(style))
    container = E.DIV(E.CLASS("elementor-container"))
    for column in section.get("elements") or []:
        if isinstance(column, dict):
            container.append(_render_column(column))
    element.append(container)
    return element


def _render_column(column: dict[str, Any]) -> etree._Element:
    settings = column.get("settings") or {}
    size = settings.get("_column_size") or 100
    element = E.DIV(E.CLASS("elementor-column"))
    element.set("data-id", str(column.get("id") or ""))
    style = [f"width: {size}%"] + _box_style(settings)
    element.set("style", "; ".join(style))
    for widget in column.get("elements") or []:
        if isinstance(widget, dict):
            element.append(_render_widget(widget))
    return element


def _render_widget(widget: dict[str, Any]) -> etree._Element:
    widget_type = str(widget.get("widgetType") or "html")
    settings = widget.get("settings") or {}
    wrapper = E.DIV(E.CLASS(f"elementor-widget elementor-widget-{widget_type}"))
    wrapper.set("data-id", str(widget.get("id") or ""))
    style = _box_style(settings) + _text_style(settings)
    if style:
        wrapper.set("style", "; ".join(style))

    if widget_type == "heading":
        tag = str(settings.get("header_size") or "h2")
        heading = etree.SubElement(wrapper, tag if tag in {"h1", "h2", "h3", "h4", "h5", "h6"} else "h2")
        heading.set("class", "elementor-heading-title")
        _append_markup(heading, str(settings.get("title") or ""))
    elif widget_type == "image":
        image = settings.get("image") or {}
        img = etree.SubElement(wrapper, "img")
        img.set("src", str(image.get("url") or ""))
        img.set("alt", str(settings.get("caption") or ""))
    elif widget_type == "button":
        link = settings.get("link") or {}
        anchor = etree.SubElement(wrapper, "a")
        anchor.set("class", "elementor-button")
        anchor.set("href", _safe_href(str(link.get("url") or "#")))
        anchor.text = str(settings.get("text") or "Button")
    elif widget_type == "video":
        iframe = etree.SubElement(wrapper, "iframe")
        iframe.set("src", str(settings.get("youtube_url") or settings.get("vimeo_url") or ""))
        iframe.set("width", "100%")
        iframe.set("height", "360")
    elif widget_type == "nav-menu":
        nav = etree.SubElement(wrapper, "nav")
        menu = etree.SubElement(nav, "ul")
        for item in settings.get("menu_items") or []:
            entry = etree.SubElement(menu, "li")
            anchor = etree.SubElement(entry, "a")
            anchor.set("href", _safe_href(str(item.get("url") or "#")))
            anchor.text = str(item.get("text") or "")
    elif widget_type == "text-editor":
        _append_markup(wrapper, str(settings.get("editor") or ""))
    else:
        _append_markup(wrapper, str(settings.get("html") or ""))
    return wrapper


def _box_style(settings: dict[str, Any]) -> list[str]:
    style: list[str] = []
    if settings.get("background_color"):
        style.append(f"background-color: {settings['background_color']}")
    for name in ("padding", "margin"):
        sides = settings.get(name)
        if isinstance(sides, dict):
            unit = sides.get("unit") or "px"
            values = " ".join(f"{sides.get(side) or 0}{unit}" for side in ("top", "right", "bottom", "left"))
            style.append(f"{name}: {values}")
    radius = settings.get("border_radius")
    if isinstance(radius, dict) and radius.get("top"):
        style.append(f"border-radius: {radius['top']}px")
    return style


def _text_style(settings: dict[str, Any]) -> list[str]:
    style: list[str] = []
    if settings.get("color"):
        style.append(f"color: {settings['color']}")
    if settings.get("typography_font_family"):
        style.append(f"font-family: {settings['typography_font_family']}")
    font_size = settings.get("typography_font_size")
    if isinstance(font_size, dict) and font_size.get("size"):
        style.append(f"font-size: {font_size['size']}{font_size.get('unit') or 'px'}")
    if settings.get("typography_font_weight"):
        style.append(f"font-weight: {settings['typography_font_weight']}")
    if settings.get("align"):
        style.append(f"text-align: {settings['align']}")
    return style


def _append_markup(parent: etree._Element, markup: str) -> None:
    if not markup.strip():
        return
    try:
        fragments = lxml_html.fragments_fromstring(markup)
    except (etree.ParserError, ValueError) as exc:
        logger.debug("markup fragment rendered as text: %s", exc)
        _append_text(parent, markup)
        return
    for fragment in fragments:
        if isinstance(fragment, str):
            _append_text(parent, fragment)
            continue
        _sanitize(fragment)
        if fragment.tag == "script":
            continue
        parent.append(fragment)


def _append_text(parent: etree._Element, text: str) -> None:
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _sanitize(root: etree._Element) -> None:
    for script in list(root.iter("script")):
        if script is root:
            continue
        parent = script.getparent()
        if parent is not None:
            script.drop_tree()
    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        for attr in list(element.attrib.keys()):
            if attr.lower().startswith("on"):
                element.attrib.pop(attr, None)
        href = element.get("href")
        if href is not None:
            element.set("href", _safe_href(href))


def _safe_href(href: str) -> str:
    return "#" if href.strip().lower().startswith("javascript:") else href
