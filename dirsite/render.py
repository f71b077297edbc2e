from __future__ import annotations

import html
import json
import re
from pathlib import Path

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
DEFAULT_TEMPLATES = Path(__file__).resolve().parent / "templates"


def esc(value: object) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def render_template(template: str, **context: str) -> str:
    def repl(match: re.Match) -> str:
        key = match.group(1)
        if key not in context:
            return match.group(0)
        return context[key]

    return PLACEHOLDER_RE.sub(repl, template)


def prune_empty(value: object) -> object:
    if isinstance(value, dict):
        cleaned = {key: prune_empty(item) for key, item in value.items()}
        return {key: item for key, item in cleaned.items() if item not in (None, "", [], {})}
    if isinstance(value, list):
        return [item for item in (prune_empty(item) for item in value) if item not in (None, "", [], {})]
    return value


def json_ld_script(data: dict) -> str:
    payload = json.dumps(prune_empty(data), ensure_ascii=False)
    # keep the payload from closing the script element
    for char, escaped in (("&", "\\u0026"), ("<", "\\u003c"), (">", "\\u003e")):
        payload = payload.replace(char, escaped)
    return f'<script type="application/ld+json">{payload}</script>'


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
