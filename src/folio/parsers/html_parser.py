"""HTML parser for converting HTML pages into a `ParsedDocument` with
extracted text, heading sections, and a title/preview pair for search results.

File-based parsing is supported for `.html` and `.htm` files via `parse()`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup  # type: ignore[import-untyped]

from folio.exceptions import ParsingError

from .base_parser import BaseParser, ParsedDocument, SectionInfo

_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


class HTMLParser(BaseParser):
    """Parser for HTML content."""

    def can_parse(self, path: Path) -> bool:
        return path.suffix.lower() in {".html", ".htm"}

    def parse(self, path: Path, *, metadata: Optional[Dict[str, Any]] = None) -> ParsedDocument:
        """Parse an HTML file from disk."""
        try:
            html = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParsingError(f"Failed to read {path}: {exc}") from exc
        meta = {"source_path": str(path), **(metadata or {})}
        return self.parse_html_content(html, metadata=meta)

    def parse_html_content(
        self, html: str, *, metadata: Optional[Dict[str, Any]] = None
    ) -> ParsedDocument:
        """Parse HTML string content into a `ParsedDocument`.

        Headings (h1-h6) become sections in document order. The title comes from
        `<title>`, else the first heading; the preview from the description meta
        tag, else the first non-empty paragraph.
        """
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()

        sections: List[SectionInfo] = []
        for tag in soup.find_all(_HEADING_TAGS):
            title = tag.get_text(" ", strip=True)
            if title:
                sections.append(SectionInfo(title=title, level=int(tag.name[1])))

        title = ""
        title_tag = soup.find("title")
        if title_tag is not None:
            title = title_tag.get_text(" ", strip=True)
        if not title and sections:
            title = sections[0].title

        preview = ""
        description = soup.find("meta", attrs={"name": "description"})
        if description is not None and description.get("content"):
            preview = str(description["content"]).strip()
        if not preview:
            for para in soup.find_all("p"):
                preview = para.get_text(" ", strip=True)
                if preview:
                    break

        body = soup.body or soup
        text = body.get_text(" ", strip=True)

        return ParsedDocument(
            text=text,
            title=title,
            preview=preview,
            sections=sections,
            metadata=metadata or {},
        )
