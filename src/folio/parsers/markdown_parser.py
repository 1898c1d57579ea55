"""Markdown parser that converts Markdown/MDX into a ParsedDocument.

Implementation note: we convert Markdown to HTML using the `markdown` library
(extensions enabled for tables and fenced code), then reuse `HTMLParser`
logic to extract text, headings, title and preview for consistency with
HTML collections.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import markdown as md  # type: ignore[import-untyped]

from folio.exceptions import ParsingError

from .base_parser import BaseParser, ParsedDocument
from .html_parser import HTMLParser


class MarkdownParser(BaseParser):
    """Parser for `.md` and `.mdx` files or content strings."""

    def __init__(self) -> None:
        # Reuse HTML parsing logic for headings/text
        self._html = HTMLParser()
        self._extensions = [
            "tables",
            "fenced_code",
            "sane_lists",
        ]

    def can_parse(self, path: Path) -> bool:
        return path.suffix.lower() in {".md", ".mdx"}

    def parse(self, path: Path, *, metadata: Optional[Dict[str, Any]] = None) -> ParsedDocument:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParsingError(f"Failed to read {path}: {exc}") from exc
        meta = {"source_path": str(path), **(metadata or {})}
        return self.parse_markdown_content(text, metadata=meta)

    def parse_markdown_content(
        self, markdown_text: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        html = md.markdown(markdown_text, extensions=self._extensions)
        return self._html.parse_html_content(html, metadata=metadata or {})
