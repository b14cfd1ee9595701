from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import httpx
import tinycss2

from web2builder.errors import CaptureWarning
from web2builder.models import AssetBundle

logger = logging.getLogger(__name__)

_IMAGE_URL_RE = re.compile(r"\.(png|jpe?g|gif|webp|svg|avif)(\?|#|$)", re.IGNORECASE)


@dataclass(slots=True)
class StylesheetFacts:
    font_families: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)


@dataclass(slots=True)
class FetchedStylesheets:
    text: str = ""
    sheets: list[tuple[str, str]] = field(default_factory=list)
    warnings: list[CaptureWarning] = field(default_factory=list)


def build_asset_bundle(raw: Any) -> AssetBundle:
    if not isinstance(raw, dict):
        return AssetBundle()

    def dicts(key: str) -> list[dict[str, Any]]:
        value = raw.get(key)
        return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []

    def strings(key: str) -> list[str]:
        value = raw.get(key)
        if not isinstance(value, list):
            return []
        return _unique(str(item) for item in value if item)

    return AssetBundle(
        images=dicts("images"),
        fonts=strings("fonts"),
        colors=strings("colors"),
        gradients=strings("gradients"),
        videos=dicts("videos"),
        forms=dicts("forms"),
        buttons=dicts("buttons"),
        links=dicts("links"),
        stylesheets=dicts("stylesheets"),
        scripts=dicts("scripts"),
    )


def parse_stylesheet(css_text: str, base_url: str = "") -> StylesheetFacts:
    """Collect ``@font-face`` families and ``url(...)`` references.

    References are resolved against ``base_url``, the stylesheet's own URL
    (or the page URL for inline styles), when one is given.
    """
    facts = StylesheetFacts()
    if not css_text.strip():
        return facts
    rules = tinycss2.parse_stylesheet(css_text, skip_comments=True, skip_whitespace=True)
    families: list[str] = []
    urls: list[str] = []
    for rule in rules:
        if rule.type == "at-rule" and rule.lower_at_keyword == "font-face" and rule.content:
            declarations = tinycss2.parse_declaration_list(
                rule.content, skip_comments=True, skip_whitespace=True
            )
            for declaration in declarations:
                if declaration.type == "declaration" and declaration.lower_name == "font-family":
                    name = tinycss2.serialize(declaration.value).strip().strip("'\"")
                    if name:
                        families.append(name)
        if rule.type in {"qualified-rule", "at-rule"}:
            urls.extend(_collect_urls(list(rule.prelude or []) + list(rule.content or [])))
    facts.font_families = _unique(families)
    facts.urls = _unique(urljoin(base_url, url) if base_url else url for url in urls)
    return facts


def _collect_urls(tokens: list[Any]) -> list[str]:
    found: list[str] = []
    stack = list(reversed(tokens))
    while stack:
        token = stack.pop()
        token_type = getattr(token, "type", "")
        if token_type == "url":
            found.append(token.value)
        elif token_type == "function":
            if token.lower_name == "url":
                for argument in token.arguments:
                    if argument.type == "string":
                        found.append(argument.value)
                        break
            else:
                stack.extend(reversed(token.arguments))
        elif token_type in {"() block", "[] block", "{} block"}:
            stack.extend(reversed(token.content))
    return [url for url in found if url and not url.startswith("data:")]


def fetch_stylesheets(
    urls: list[str],
    *,
    referer: str,
    user_agent: str,
    timeout_seconds: float = 15.0,
    enabled: bool = True,
) -> FetchedStylesheets:
    """Fetch stylesheets the page could not expose to script. Failures become warnings."""
    result = FetchedStylesheets()
    wanted = _unique(urls)
    if not wanted:
        return result
    if not enabled:
        for url in wanted:
            result.warnings.append(CaptureWarning("stylesheets", "stylesheet fetch disabled", url))
        return result

    chunks: list[str] = []
    with httpx.Client(
        follow_redirects=True,
        timeout=timeout_seconds,
        headers={"User-Agent": user_agent, "Referer": referer},
    ) as client:
        for url in wanted:
            try:
                response = client.get(url)
            except httpx.HTTPError as exc:
                logger.warning("stylesheet fetch failed for %s: %s", url, exc)
                result.warnings.append(
                    CaptureWarning("stylesheets", "stylesheet unavailable", f"{url}: {type(exc).__name__}")
                )
                continue
            if response.status_code >= 400:
                logger.warning("stylesheet fetch for %s returned HTTP %s", url, response.status_code)
                result.warnings.append(
                    CaptureWarning("stylesheets", "stylesheet unavailable", f"{url}: http_{response.status_code}")
                )
                continue
            chunks.append(response.text)
            result.sheets.append((str(response.url), response.text))
    result.text = "\n".join(chunks)
    return result


def merge_stylesheet_facts(bundle: AssetBundle, facts: StylesheetFacts) -> None:
    bundle.fonts = _unique([*bundle.fonts, *facts.font_families])
    known = {str(image.get("src")) for image in bundle.images}
    for url in facts.urls:
        if url not in known and _IMAGE_URL_RE.search(url):
            bundle.images.append({"src": url, "type": "stylesheet"})
            known.add(url)


def _unique(values) -> list[str]:  # noqa: ANN001
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out
