"""Base abstractions for manifest sources.

A `ManifestLoader` turns one physical location (a directory, a repository)
into raw collections. The index builder only ever sees `RawCollection` and
`RawDocument`, never the source format.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

# Indexed fields of a raw document, in the order they are read
FIELDS = ("title", "headings", "tags", "text")


@dataclass(frozen=True, slots=True)
class RawDocument:
    """A document record as produced by a manifest source."""

    title: str
    url: str
    preview: str = ""
    text: str = ""
    headings: Tuple[str, ...] = ()
    tags: str = ""

    def field(self, name: str) -> str:
        """Return the text of an indexed field ('' for unknown fields)."""
        if name == "headings":
            return " ".join(self.headings)
        if name in ("title", "text", "tags"):
            return getattr(self, name) or ""
        return ""


@dataclass(frozen=True, slots=True)
class RawCollection:
    """An ordered set of raw documents under one collection identifier."""

    identifier: str
    documents: Tuple[RawDocument, ...] = ()
    aliases: Tuple[str, ...] = ()
    source: str = ""


def normalize_url(url: str) -> str:
    """Drop a trailing `index.html` component and ensure a trailing slash."""
    offset = url.rfind("/index.html")
    if offset != -1:
        url = url[: offset + 1]
    if not url.endswith("/"):
        url += "/"
    return url


class ManifestLoader(ABC):
    """Abstract manifest source.

    Implementations should be safe to construct without side effects and should
    not touch the filesystem or network until `load()` is awaited.
    """

    @property
    @abstractmethod
    def selector(self) -> str:
        """The selector string this loader was created from."""

    @abstractmethod
    async def load(self) -> List[RawCollection]:
        """Load every collection this source provides.

        Implementations should raise `folio.exceptions.ManifestError` on failure.
        """
        raise NotImplementedError
