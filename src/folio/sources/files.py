"""Filesystem manifest source (`dir:<path>`).

Top-level entries of the directory become collections:

* `<name>.json` is a manifest file whose documents are listed inline,
* `<name>/` is a folder of Markdown/HTML pages parsed into documents.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError

from folio.exceptions import ManifestError, ParsingError
from folio.parsers import BaseParser, HTMLParser, MarkdownParser, ParsedDocument

from .base import ManifestLoader, RawCollection, RawDocument, normalize_url

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 200


class ManifestDocumentModel(BaseModel):
    """One entry of a manifest's `documents` list."""

    model_config = ConfigDict(extra="ignore")

    slug: str
    title: str
    preview: str = ""
    text: str = ""
    headings: List[str] = []
    tags: str = ""


class ManifestModel(BaseModel):
    """A manifest file body."""

    model_config = ConfigDict(extra="ignore")

    url: str
    aliases: List[str] = []
    documents: List[ManifestDocumentModel] = []


def raw_document_from_parsed(parsed: ParsedDocument, *, url: str, fallback_title: str) -> RawDocument:
    """Map a parsed page onto the fields the index builder consumes."""
    preview = parsed.preview or parsed.text[:_PREVIEW_CHARS]
    return RawDocument(
        title=parsed.title or fallback_title,
        url=url,
        preview=preview,
        text=parsed.text,
        headings=tuple(parsed.headings()),
    )


class FileManifestLoader(ManifestLoader):
    """Loads manifests and document folders from a local directory."""

    def __init__(self, path: Path | str, *, parsers: Optional[Sequence[BaseParser]] = None) -> None:
        self.path = Path(path)
        self._parsers: Sequence[BaseParser] = parsers or (MarkdownParser(), HTMLParser())

    @property
    def selector(self) -> str:
        return f"dir:{self.path}"

    async def load(self) -> List[RawCollection]:
        return await asyncio.to_thread(self.load_sync)

    def load_sync(self) -> List[RawCollection]:
        if not self.path.is_dir():
            raise ManifestError(self.selector, "manifest directory does not exist")

        collections: List[RawCollection] = []
        for entry in sorted(self.path.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_file() and entry.suffix.lower() == ".json":
                collections.append(self._load_manifest(entry))
            elif entry.is_dir():
                collections.append(self._load_folder(entry))
        return collections

    def _load_manifest(self, path: Path) -> RawCollection:
        try:
            body = ManifestModel.model_validate_json(path.read_bytes())
        except OSError as exc:
            raise ManifestError(str(path), f"failed to read manifest: {exc}") from exc
        except (ValidationError, json.JSONDecodeError) as exc:
            raise ManifestError(str(path), f"failed to parse manifest: {exc}") from exc

        base_url = body.url.rstrip("/")
        documents = tuple(
            RawDocument(
                title=doc.title,
                url=normalize_url(f"{base_url}/{doc.slug.strip('/')}"),
                preview=doc.preview,
                text=doc.text,
                headings=tuple(doc.headings),
                tags=doc.tags,
            )
            for doc in body.documents
        )
        logger.debug("Loaded manifest %s (%d documents)", path, len(documents))
        return RawCollection(
            identifier=path.stem,
            documents=documents,
            aliases=tuple(body.aliases),
            source=self.selector,
        )

    def _parser_for(self, path: Path) -> Optional[BaseParser]:
        for parser in self._parsers:
            if parser.can_parse(path):
                return parser
        return None

    def _load_folder(self, folder: Path) -> RawCollection:
        documents: List[RawDocument] = []
        for path in sorted(p for p in folder.rglob("*") if p.is_file()):
            parser = self._parser_for(path)
            if parser is None:
                continue
            try:
                parsed = parser.parse(path)
            except ParsingError as exc:
                raise ManifestError(str(path), str(exc)) from exc
            documents.append(
                raw_document_from_parsed(
                    parsed, url=path.relative_to(folder).as_posix(), fallback_title=path.stem
                )
            )
        logger.debug("Loaded document folder %s (%d documents)", folder, len(documents))
        return RawCollection(identifier=folder.name, documents=tuple(documents), source=self.selector)
