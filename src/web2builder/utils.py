from __future__ import annotations

import hashlib
import re
import secrets
import string
from pathlib import Path
from urllib.parse import urlparse

_SAFE_SEGMENT_RE = re.compile(r"[^a-zA-Z0-9._-]+")
_LEADING_NUMBER_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")
_ID_ALPHABET = string.ascii_lowercase + string.digits
ELEMENT_ID_LENGTH = 8
ELEMENT_ID_RE = re.compile(r"^[a-z0-9]{8}$")


class IdGenerator:
    """Hands out 8-character element ids, unique within one generator."""

    def __init__(self) -> None:
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            candidate = "".join(secrets.choice(_ID_ALPHABET) for _ in range(ELEMENT_ID_LENGTH))
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    @property
    def issued(self) -> int:
        return len(self._issued)


def parse_css_number(value: object) -> float | None:
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _LEADING_NUMBER_RE.match(value)
    if match is None:
        return None
    return float(match.group(1))


def parse_px(value: object) -> int:
    """Integer part of a CSS length, 0 when unparsable (like JS parseInt)."""
    number = parse_css_number(value)
    if number is None:
        return 0
    return int(number)


def slugify_url(url: str, max_length: int = 80) -> str:
    parsed = urlparse(url)
    host = (parsed.hostname or "page").lower()
    path = parsed.path.strip("/")
    path = path if path else "index"
    combined = f"{host}-{path}".replace("/", "-")
    combined = _SAFE_SEGMENT_RE.sub("-", combined).strip("-")
    if not combined:
        combined = "template"
    if len(combined) <= max_length:
        return combined
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:10]
    return f"{combined[: max_length - 11]}-{digest}".strip("-")


def unique_path(directory: Path, stem: str, suffix: str) -> Path:
    candidate = directory / f"{stem}{suffix}"
    index = 2
    while candidate.exists():
        candidate = directory / f"{stem}-{index}{suffix}"
        index += 1
    return candidate


def is_http_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
