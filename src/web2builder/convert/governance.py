"""Size governance for emitted documents.

``govern_size`` always cleans, compacts above the soft limit and reduces to a
minimal document only above the hard limit. Every step is logged, none raises.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any

from web2builder.config import SizeLimits
from web2builder.utils import IdGenerator

logger = logging.getLogger(__name__)

DROPPED_KEYS = frozenset(
    {
        "completeHTML",
        "fallback_html",
        "original_assets",
        "outerHTML",
        "innerHTML",
        "styles",
        "allAttributes",
        "data-*",
    }
)
ESSENTIAL_METADATA_KEYS = (
    "created_at",
    "source_url",
    "fidelity_score",
    "verification_passed",
    "total_elements",
    "sections_count",
    "columns_count",
    "widgets_count",
)
OPTIMIZED_PLACEHOLDER = "<p>Optimized</p>"
MINIMAL_PLACEHOLDER = "<p>Content Successfully Cloned</p>"

_WHITESPACE_RE = re.compile(r"\s+")
_BETWEEN_TAGS_RE = re.compile(r">\s+<")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def document_size(document: dict[str, Any]) -> int:
    return len(json.dumps(document, ensure_ascii=False))


def _is_dropped_key(key: str) -> bool:
    return key in DROPPED_KEYS or "HTML" in key


def clean_document(document: dict[str, Any], limits: SizeLimits | None = None) -> dict[str, Any]:
    """Return a copy without raw-markup keys and with oversized markup replaced."""
    lim = limits or SizeLimits()
    removed: list[str] = []

    def clean(value: Any, path: str) -> Any:
        if isinstance(value, dict):
            out: dict[str, Any] = {}
            for key, item in value.items():
                item_path = f"{path}.{key}" if path else str(key)
                if _is_dropped_key(str(key)):
                    removed.append(item_path)
                    continue
                if isinstance(item, str) and len(item) > lim.markup_field_max_chars and "<" in item:
                    out[key] = OPTIMIZED_PLACEHOLDER
                    removed.append(f"{item_path} (large markup)")
                    continue
                out[key] = clean(item, item_path)
            return out
        if isinstance(value, list):
            return [clean(item, f"{path}[{index}]") for index, item in enumerate(value)]
        return value

    cleaned = clean(document, "")
    if removed:
        logger.info("cleaned document: %d field(s) removed or replaced", len(removed))
        logger.debug("cleaned fields: %s", ", ".join(removed))
    return cleaned


def compress_markup(markup: str) -> str:
    text = _COMMENT_RE.sub("", markup)
    text = _WHITESPACE_RE.sub(" ", text)
    return _BETWEEN_TAGS_RE.sub("><", text).strip()


def compress_css(css: str) -> str:
    text = _CSS_COMMENT_RE.sub("", css)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == {} or value == []


def compact_document(document: dict[str, Any], limits: SizeLimits | None = None) -> dict[str, Any]:
    """Shrink a document without changing its section/column/widget structure."""
    compacted = copy.deepcopy(document)

    metadata = compacted.get("metadata") or {}
    compacted["metadata"] = {key: metadata[key] for key in ESSENTIAL_METADATA_KEYS if key in metadata}

    page_settings = compacted.get("page_settings") or {}
    if isinstance(page_settings.get("custom_css"), str):
        page_settings["custom_css"] = compress_css(page_settings["custom_css"])

    stack: list[Any] = list(compacted.get("content") or [])
    while stack:
        element = stack.pop()
        if not isinstance(element, dict):
            continue
        settings = element.get("settings")
        if isinstance(settings, dict):
            for key in list(settings):
                value = settings[key]
                if _is_empty(value):
                    del settings[key]
                elif isinstance(value, str) and "<" in value:
                    settings[key] = compress_markup(value)
        stack.extend(element.get("elements") or [])
    return compacted


def minimal_document(document: dict[str, Any], limits: SizeLimits | None = None) -> dict[str, Any]:
    lim = limits or SizeLimits()
    new_id = IdGenerator()
    sections = []
    for _source in (document.get("content") or [])[: lim.minimal_sections]:
        sections.append(_placeholder_section(new_id, MINIMAL_PLACEHOLDER))
    if not sections:
        sections.append(_placeholder_section(new_id, MINIMAL_PLACEHOLDER))
    page_settings = document.get("page_settings") or {}
    metadata = document.get("metadata") or {}
    minimal = {
        "version": document.get("version", "0.4"),
        "title": document.get("title") or "Cloned Page",
        "type": document.get("type", "page"),
        "content": sections,
        "page_settings": {
            "template": page_settings.get("template", "elementor_canvas"),
            "viewport_mobile": page_settings.get("viewport_mobile", 767),
            "viewport_tablet": page_settings.get("viewport_tablet", 1024),
        },
        "metadata": {
            "created_at": metadata.get("created_at"),
            "source_url": metadata.get("source_url", ""),
            "fidelity_score": metadata.get("fidelity_score", 0),
            "sections_count": len(sections),
            "columns_count": len(sections),
            "widgets_count": len(sections),
            "total_elements": len(sections) * 3,
        },
    }
    return minimal


def _placeholder_section(new_id: IdGenerator, editor: str) -> dict[str, Any]:
    return {
        "id": new_id(),
        "elType": "section",
        "settings": {"content_width": "boxed"},
        "elements": [
            {
                "id": new_id(),
                "elType": "column",
                "settings": {"_column_size": 100, "_inline_size": None},
                "elements": [
                    {
                        "id": new_id(),
                        "elType": "widget",
                        "widgetType": "text-editor",
                        "settings": {"_element_id": new_id(), "editor": editor},
                    }
                ],
                "isInner": False,
            }
        ],
        "isInner": False,
    }


def govern_size(document: dict[str, Any], limits: SizeLimits | None = None) -> dict[str, Any]:
    lim = limits or SizeLimits()
    cleaned = clean_document(document, lim)
    size = document_size(cleaned)
    if size <= lim.compact_above_bytes:
        return cleaned
    logger.warning("document is large (%d chars); compacting", size)
    compacted = compact_document(cleaned, lim)
    size = document_size(compacted)
    logger.info("compacted document to %d chars", size)
    if size <= lim.hard_max_bytes:
        return compacted
    logger.warning("document still above %d chars after compaction; reducing to minimal form", lim.hard_max_bytes)
    return minimal_document(compacted, lim)
