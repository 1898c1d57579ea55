"""Immutable per-collection document storage.

A `DocumentStore` is created once by the index builder for one collection and
is never mutated afterwards; a refresh replaces it wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class Document:
    """A document as served to clients.

    Attributes
    ----------
    collection: str
        Canonical identifier of the owning collection.
    position: int
        Index of the document in its collection's source order.
    title, preview, url: str
        The fields returned in search results.
    """

    collection: str
    position: int
    title: str
    preview: str
    url: str

    def as_result(self) -> Dict[str, str]:
        return {"title": self.title, "preview": self.preview, "url": self.url}


class DocumentStore:
    """Ordered, read-only documents of one collection plus their searchable text.

    `texts[i]` is the lowercase, whitespace-normalized text of `documents[i]`
    used for phrase matching.
    """

    __slots__ = ("_collection", "_documents", "_texts", "_by_url")

    def __init__(
        self, collection: str, documents: Sequence[Document], texts: Sequence[str]
    ) -> None:
        if len(documents) != len(texts):
            raise ValueError("documents and texts must have the same length")
        self._collection = collection
        self._documents: Tuple[Document, ...] = tuple(documents)
        self._texts: Tuple[str, ...] = tuple(texts)
        self._by_url = {doc.url: doc.position for doc in self._documents}

    @property
    def collection(self) -> str:
        return self._collection

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def get(self, doc_id: int) -> Document:
        return self._documents[doc_id]

    def text(self, doc_id: int) -> str:
        return self._texts[doc_id]

    def find_url(self, url: str) -> Optional[Document]:
        position = self._by_url.get(url)
        return None if position is None else self._documents[position]
