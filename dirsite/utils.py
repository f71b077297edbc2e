from __future__ import annotations

import html
import re
from urllib.parse import quote

UNSAFE_URL_RE = re.compile(r"^(?:javascript|vbscript|data):", re.IGNORECASE)
URL_NOISE_RE = re.compile(r"[\x00-\x20]")


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return f"{base}/"
    return f"{base}/{path}"


def relative_root(page_path: str) -> str:
    depth = len([part for part in page_path.split("/") if part])
    return "/".join([".."] * depth) or "."


def whatsapp_link(explicit: str, number: str, message: str) -> str:
    if explicit:
        return safe_url(explicit)
    return f"https://wa.me/{number}?text={quote(message, safe='')}"


def safe_url(value: str) -> str:
    # browsers ignore whitespace and control characters inside the scheme
    if UNSAFE_URL_RE.match(URL_NOISE_RE.sub("", html.unescape(value))):
        return "#"
    return value
