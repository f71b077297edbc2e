from __future__ import annotations

import html
import re
from typing import Iterator, Optional

from .utils import safe_url

FENCE = "```"
BULLET_RE = re.compile(r"^\s*[-*]\s+")
ORDERED_RE = re.compile(r"^\s*\d+\.\s+")
HEADING_RE = re.compile(r"^(#{1,3})\s+(.*)$")
SEPARATOR_RE = re.compile(r"^[\s|:-]*-[\s|:-]*$")
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
ITALIC_RE = re.compile(r"\*([^*]+)\*")
CODE_RE = re.compile(r"`([^`]+)`")


def _attr(value: str) -> str:
    return value.replace('"', "&quot;")


def _url(value: str) -> str:
    return _attr(safe_url(value.strip()))


def _image(match: re.Match) -> str:
    return (
        f'<img alt="{_attr(match.group(1))}" src="{_url(match.group(2))}"'
        ' loading="lazy" decoding="async" />'
    )


def _link(match: re.Match) -> str:
    return f'<a href="{_url(match.group(2))}">{match.group(1)}</a>'


def render_inline(text: str) -> str:
    text = html.escape(text, quote=False)
    text = IMAGE_RE.sub(_image, text)
    text = LINK_RE.sub(_link, text)
    text = BOLD_RE.sub(r"<strong>\1</strong>", text)
    text = ITALIC_RE.sub(r"<em>\1</em>", text)
    return CODE_RE.sub(r"<code>\1</code>", text)


def split_cells(line: str) -> list[str]:
    cells = line.strip().split("|")
    if cells and not cells[0].strip():
        cells = cells[1:]
    if cells and not cells[-1].strip():
        cells = cells[:-1]
    return [cell.strip() for cell in cells]


def render_table(rows: list[list[str]]) -> str:
    header, body = rows[0], rows[1:]
    head_cells = "".join(f"<th>{render_inline(cell)}</th>" for cell in header)
    parts = ["<table>", f"<thead><tr>{head_cells}</tr></thead>"]
    if body:
        body_rows = "".join(
            "<tr>" + "".join(f"<td>{render_inline(cell)}</td>" for cell in row) + "</tr>"
            for row in body
        )
        parts.append(f"<tbody>{body_rows}</tbody>")
    parts.append("</table>")
    return "".join(parts)


class _OpenBlocks:
    def __init__(self) -> None:
        self.list_kind: Optional[str] = None
        self.table_rows: list[list[str]] = []
        self.in_table = False

    def close_list(self) -> list[str]:
        if self.list_kind is None:
            return []
        kind, self.list_kind = self.list_kind, None
        return [f"</{kind}>"]

    def close_table(self) -> list[str]:
        if not self.in_table:
            return []
        rows, self.table_rows, self.in_table = self.table_rows, [], False
        if not rows:
            return []
        return [render_table(rows)]

    def close_all(self) -> list[str]:
        return self.close_list() + self.close_table()

    def list_item(self, kind: str, text: str) -> list[str]:
        out = self.close_table()
        if self.list_kind != kind:
            out += self.close_list()
            self.list_kind = kind
            out.append(f"<{kind}>")
        out.append(f"<li>{render_inline(text)}</li>")
        return out

    def table_line(self, line: str) -> list[str]:
        out = self.close_list()
        self.in_table = True
        if not SEPARATOR_RE.match(line):
            self.table_rows.append(split_cells(line))
        return out


def iter_markdown(text: Optional[str]) -> Iterator[str]:
    if not text:
        return
    lines = str(text).replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks = _OpenBlocks()
    code_lines: Optional[list[str]] = None

    for line in lines:
        if line.strip().startswith(FENCE):
            if code_lines is None:
                yield from blocks.close_all()
                code_lines = []
            else:
                yield "<pre><code>" + "\n".join(code_lines) + "</code></pre>"
                code_lines = None
            continue
        if code_lines is not None:
            code_lines.append(html.escape(line, quote=False))
            continue

        heading = HEADING_RE.match(line)
        if heading:
            yield from blocks.close_all()
            level = len(heading.group(1))
            yield f"<h{level}>{render_inline(heading.group(2).strip())}</h{level}>"
            continue
        if BULLET_RE.match(line):
            yield from blocks.list_item("ul", BULLET_RE.sub("", line, count=1))
            continue
        if ORDERED_RE.match(line):
            yield from blocks.list_item("ol", ORDERED_RE.sub("", line, count=1))
            continue
        if line.count("|") >= 2:
            yield from blocks.table_line(line)
            continue

        yield from blocks.close_all()
        rendered = render_inline(line)
        if not rendered.strip():
            yield "<br/>"
        else:
            yield f"<p>{rendered}</p>"

    yield from blocks.close_all()
    if code_lines is not None:
        yield "<pre><code>" + "\n".join(code_lines) + "</code></pre>"


def render_markdown(text: Optional[str]) -> str:
    return "\n".join(iter_markdown(text))
