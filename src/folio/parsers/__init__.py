"""Document parsers used by folder-based manifest sources."""

from .base_parser import BaseParser, ParsedDocument, SectionInfo
from .html_parser import HTMLParser
from .markdown_parser import MarkdownParser

__all__ = ["BaseParser", "ParsedDocument", "SectionInfo", "HTMLParser", "MarkdownParser"]
