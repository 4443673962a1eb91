"""Handlers for the text families: markdown, HTML and CSV.

Each handler takes the stored bytes, a normalized target extension and
the base source type, and returns the converted bytes. Targets a handler
does not know are passed through unchanged.
"""

from __future__ import annotations

import json
import re

from markdown_it import MarkdownIt

_markdown = MarkdownIt("commonmark")

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def convert_markdown(data: bytes, target: str, source_type: str) -> bytes:
    """Render markdown to an HTML fragment for ``html``.

    ``txt`` returns the markdown source unchanged; nothing is stripped.
    """
    if target == "html":
        return _markdown.render(data.decode("utf-8")).encode("utf-8")
    return data


def convert_html(data: bytes, target: str, source_type: str) -> bytes:
    """Strip tags for ``txt``, collapsing whitespace to single spaces."""
    if target == "txt":
        html = data.decode("utf-8")
        text = _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()
        return text.encode("utf-8")
    return data


def convert_csv(data: bytes, target: str, source_type: str) -> bytes:
    """Turn CSV into a JSON array of objects keyed by the header row.

    Splitting is on bare commas (no quoting rules) and every value stays
    a string. A row shorter than the header leaves the missing keys out
    of its object.
    """
    if target != "json":
        return data

    lines = data.decode("utf-8").strip().split("\n")
    headers = [header.strip() for header in lines[0].split(",")]

    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        values = [value.strip() for value in line.split(",")]
        row: dict[str, str] = {}
        for index, header in enumerate(headers):
            if index < len(values):
                row[header] = values[index]
        rows.append(row)

    return json.dumps(rows, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
