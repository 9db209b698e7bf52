"""
HTML to Markdown conversion with cleanup rules.

The converter walks the BeautifulSoup tree and renders each element with a
small handler table. Script/style blocks and broken images (empty, too short,
``data:`` or ``#`` sources) never reach the output. Simple tables become pipe
tables; tables with spans, nesting or ragged rows degrade to plain text rows.

``clean_markdown`` is applied to every conversion and is idempotent.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)


_SKIP_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction, CData)
_DROP_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "form",
    "button",
    "input",
    "select",
    "textarea",
    "template",
    "object",
    "embed",
    "canvas",
    "head",
    "meta",
    "link",
}
_BLOCK_TAGS = {
    "p",
    "div",
    "section",
    "article",
    "main",
    "header",
    "footer",
    "aside",
    "nav",
    "figure",
    "address",
    "details",
    "summary",
    "dl",
    "dd",
    "dt",
    "body",
    "html",
    "center",
}
_WS_RE = re.compile(r"\s+")

_CITATION_RE = re.compile(r"\[\d+\](?!\()")
_READ_MORE_RE = re.compile(r"(?:Đọc thêm|Xem thêm|Read more|See also)\s*:.*$", re.IGNORECASE)
_ACCORDING_RE = re.compile(r"\*\*(?:Theo|According to)\b[^*\n]*\*\*", re.IGNORECASE)
_EMPTY_LINK_RE = re.compile(r"(?<!!)\[\]\([^)]*\)")
_EMPTY_PARENS_RE = re.compile(r"\(\s*\)")
_SPACES_RE = re.compile(r"[ \t]{2,}")
_EMPTY_HEADING_RE = re.compile(r"^#{1,6}$")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def is_valid_image_src(src: str | None) -> bool:
    """Return False for image sources that would render as broken images."""
    if not src:
        return False
    src = src.strip()
    if len(src) < 5:
        return False
    if src.lower().startswith("data:"):
        return False
    if src.startswith("#") or src == "//":
        return False
    return True


def to_markdown(html: str) -> str:
    """Convert an HTML fragment or document to cleaned Markdown.

    Args:
        html: Raw HTML

    Returns:
        Markdown text; empty string for empty input
    """
    if not html or not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()
    rendered = _MarkdownRenderer().render_children(soup)
    return clean_markdown(rendered)


def clean_markdown(text: str) -> str:
    """Normalize converter output.

    Removes citation markers, "read more" and "according to" fragments,
    empty links and parentheses, empty headings and runs of spaces, trims
    every line and collapses 3+ newlines into one blank line. Lines inside
    fenced code blocks keep their indentation.
    """
    if not text:
        return ""
    out: list[str] = []
    in_fence = False
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if line.strip().startswith("```"):
            in_fence = not in_fence
            out.append(line.strip())
            continue
        if in_fence:
            out.append(line.rstrip())
            continue
        line = _SPACES_RE.sub(" ", _strip_noise(line)).strip()
        if _EMPTY_HEADING_RE.match(line):
            line = ""
        out.append(line)
    result = "\n".join(out)
    result = _BLANK_RUN_RE.sub("\n\n", result)
    return result.strip()


def _strip_noise(line: str) -> str:
    # Removing one fragment can expose another, e.g. "(([1]))".
    while True:
        stripped = _CITATION_RE.sub("", line)
        stripped = _READ_MORE_RE.sub("", stripped)
        stripped = _ACCORDING_RE.sub("", stripped)
        stripped = _EMPTY_LINK_RE.sub("", stripped)
        stripped = _EMPTY_PARENS_RE.sub("", stripped)
        if stripped == line:
            return line
        line = stripped


class _MarkdownRenderer:
    def __init__(self) -> None:
        self._handlers = {
            "h1": self._heading,
            "h2": self._heading,
            "h3": self._heading,
            "h4": self._heading,
            "h5": self._heading,
            "h6": self._heading,
            "strong": self._wrap("**"),
            "b": self._wrap("**"),
            "em": self._wrap("*"),
            "i": self._wrap("*"),
            "del": self._wrap("~~"),
            "s": self._wrap("~~"),
            "strike": self._wrap("~~"),
            "a": self._link,
            "img": self._image,
            "ul": self._list,
            "ol": self._list,
            "blockquote": self._blockquote,
            "pre": self._pre,
            "code": self._code,
            "br": lambda node: "\n",
            "hr": lambda node: "\n\n---\n\n",
            "figcaption": self._figcaption,
            "table": self._table,
        }

    def render(self, node) -> str:
        if isinstance(node, _SKIP_STRINGS):
            return ""
        if isinstance(node, NavigableString):
            return _WS_RE.sub(" ", str(node))
        if not isinstance(node, Tag):
            return ""
        name = node.name.lower() if node.name else ""
        if name in _DROP_TAGS:
            return ""
        handler = self._handlers.get(name)
        if handler is not None:
            return handler(node)
        inner = self.render_children(node)
        if name in _BLOCK_TAGS or name == "li":
            return _block(inner)
        return inner

    def render_children(self, node) -> str:
        return "".join(self.render(child) for child in node.children)

    def _heading(self, node: Tag) -> str:
        level = int(node.name[1])
        text = _WS_RE.sub(" ", self.render_children(node)).strip()
        if not text:
            return ""
        return _block(f"{'#' * level} {text}")

    def _wrap(self, marker: str):
        def handler(node: Tag) -> str:
            inner = self.render_children(node)
            stripped = inner.strip()
            if not stripped:
                return inner
            lead = " " if inner[:1].isspace() else ""
            trail = " " if inner[-1:].isspace() else ""
            return f"{lead}{marker}{stripped}{marker}{trail}"

        return handler

    def _link(self, node: Tag) -> str:
        inner = self.render_children(node)
        text = inner.strip()
        href = (node.get("href") or "").strip()
        if not text:
            return ""
        if text.startswith("![") or "\n" in text:
            return inner
        if not href or href.lower().startswith("javascript:"):
            return inner
        return f"[{text}]({href})"

    def _image(self, node: Tag) -> str:
        src = node.get("src")
        if not is_valid_image_src(src):
            return ""
        alt = _WS_RE.sub(" ", node.get("alt") or "").replace("[", "").replace("]", "").strip()
        title = _WS_RE.sub(" ", node.get("title") or "").replace('"', "'").strip()
        if title:
            return _block(f'![{alt}]({src.strip()} "{title}")')
        return _block(f"![{alt}]({src.strip()})")

    def _list(self, node: Tag) -> str:
        ordered = node.name.lower() == "ol"
        lines: list[str] = []
        index = 1
        for child in node.children:
            if not isinstance(child, Tag) or child.name.lower() != "li":
                continue
            content = self.render_children(child).strip()
            content = re.sub(r"\n{2,}", "\n", content)
            if not content:
                continue
            prefix = f"{index}. " if ordered else "- "
            first, *rest = content.split("\n")
            lines.append(prefix + first.strip())
            lines.extend(line for line in rest if line.strip())
            index += 1
        return _block("\n".join(lines))

    def _blockquote(self, node: Tag) -> str:
        content = self.render_children(node).strip()
        if not content:
            return ""
        content = re.sub(r"\n{3,}", "\n\n", content)
        quoted = "\n".join(f"> {line.strip()}" if line.strip() else ">" for line in content.split("\n"))
        return _block(quoted)

    def _pre(self, node: Tag) -> str:
        code = node.find("code")
        lang = ""
        if isinstance(code, Tag):
            for cls in code.get("class") or []:
                if cls.startswith("language-"):
                    lang = cls[len("language-") :]
                    break
        text = node.get_text().strip("\n")
        if not text.strip():
            return ""
        return _block(f"```{lang}\n{text}\n```")

    def _code(self, node: Tag) -> str:
        text = node.get_text()
        if not text.strip():
            return ""
        return f"`{text.strip()}`"

    def _figcaption(self, node: Tag) -> str:
        text = _WS_RE.sub(" ", node.get_text(" ")).strip()
        if not text:
            return ""
        return _block(f"*{text}*")

    def _table(self, node: Tag) -> str:
        rows = _table_rows(node)
        if not rows:
            return ""
        if _is_simple_table(node, rows):
            width = len(rows[0])
            lines = [_pipe_row(rows[0]), _pipe_row(["---"] * width)]
            lines.extend(_pipe_row(row) for row in rows[1:])
            return _block("\n".join(lines))
        text_rows = [" ".join(cell for cell in row if cell) for row in rows]
        return _block("\n".join(row for row in text_rows if row))


def _block(content: str) -> str:
    stripped = content.strip()
    if not stripped:
        return ""
    return f"\n\n{stripped}\n\n"


def _table_rows(table: Tag) -> list[list[str]]:
    rows: list[list[str]] = []
    for tr in table.find_all("tr"):
        if tr.find_parent("table") is not table:
            continue
        cells = [
            _WS_RE.sub(" ", cell.get_text(" ")).strip()
            for cell in tr.find_all(["td", "th"], recursive=False)
        ]
        if cells:
            rows.append(cells)
    return rows


def _is_simple_table(table: Tag, rows: list[list[str]]) -> bool:
    if table.find("table") is not None:
        return False
    for cell in table.find_all(["td", "th"]):
        if _span(cell, "rowspan") > 1 or _span(cell, "colspan") > 1:
            return False
    width = len(rows[0])
    return all(len(row) == width for row in rows)


def _span(cell: Tag, attr: str) -> int:
    try:
        return int(cell.get(attr) or 1)
    except (TypeError, ValueError):
        return 1


def _pipe_row(cells: list[str]) -> str:
    escaped = [cell.replace("|", "\\|") for cell in cells]
    return "| " + " | ".join(escaped) + " |"
