from __future__ import annotations

import math
import re
import unicodedata
from typing import Optional

SLUG_MAX_LENGTH = 80
NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
PRICE_STRIP_RE = re.compile(r"[^0-9.,]")
QUERY_RE = re.compile(r"[?#]")


def slugify(text: object) -> str:
    if text is None:
        return ""
    text = unicodedata.normalize("NFD", str(text))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = NON_SLUG_RE.sub("-", text.lower()).strip("-")
    # the cut can land right after a hyphen
    return text[:SLUG_MAX_LENGTH].rstrip("-")


def parse_price(value: object) -> Optional[float]:
    # "$1.200.000" -> 1200000.0, "$12,50" -> 12.5
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = PRICE_STRIP_RE.sub("", str(value))
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def format_price(number: float) -> str:
    if float(number).is_integer():
        return str(int(number))
    return repr(float(number))


def encoded_segments(url: object, marker: str) -> list[str]:
    if not isinstance(url, str):
        return []
    needle = f"{marker}/"
    idx = url.find(needle)
    if idx == -1:
        return []
    rest = QUERY_RE.split(url[idx + len(needle) :], maxsplit=1)[0]
    return [part for part in rest.split("/") if part]
