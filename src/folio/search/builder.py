"""Index builder: turns raw collections into an immutable `IndexSnapshot`.

The builder is a pure function of its inputs (apart from the build timestamp).
Nothing it returns is ever mutated; a refresh builds a brand new snapshot and
publishes it in one reference swap.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set, Tuple

from folio.exceptions import BuildError
from folio.search.analysis import analyze, content_words, normalize_whitespace, tokenize
from folio.search.registry import CollectionRegistry
from folio.search.store import Document, DocumentStore
from folio.sources.base import FIELDS, RawCollection, RawDocument

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DEFAULT_FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {"text": 1.0, "headings": 5.0, "title": 10.0, "tags": 75.0}
)

# Keeps phrase matches from spanning two fields
_FIELD_SEPARATOR = " \x00 "


def utcnow() -> datetime:
    """Current UTC time truncated to milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


@dataclass(frozen=True, slots=True)
class CollectionIndex:
    """Term index and documents of one collection.

    Attributes
    ----------
    identifier: str
        Canonical collection identifier.
    store: DocumentStore
        The collection's documents, in source order.
    postings: Mapping[str, Tuple[int, ...]]
        Index term -> ascending ids of the documents containing it.
    weights: Tuple[Mapping[str, float], ...]
        Per document, index term -> field-weighted term frequency.
    vocabulary: Mapping[str, int]
        Surface word -> number of documents containing it (spelling source).
    """

    identifier: str
    store: DocumentStore
    postings: Mapping[str, Tuple[int, ...]]
    weights: Tuple[Mapping[str, float], ...]
    vocabulary: Mapping[str, int]

    def __len__(self) -> int:
        return len(self.store)

    def doc_ids(self, term: str) -> Tuple[int, ...]:
        return self.postings.get(term, ())

    def has_term(self, term: str) -> bool:
        return term in self.postings

    def score(self, doc_id: int, terms: List[str]) -> float:
        doc_weights = self.weights[doc_id]
        return sum(doc_weights.get(t, 0.0) for t in terms)


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """A fully built, immutable index over a fixed set of collections."""

    collections: Mapping[str, CollectionIndex]
    registry: CollectionRegistry
    built_at: datetime

    @classmethod
    def empty(cls) -> "IndexSnapshot":
        return cls(
            collections=MappingProxyType({}),
            registry=CollectionRegistry(()),
            built_at=EPOCH,
        )

    def manifests(self) -> Tuple[str, ...]:
        return self.registry.list_collections()

    def restamped(self, built_at: datetime) -> "IndexSnapshot":
        return replace(self, built_at=built_at)


def _check_document(collection: str, position: int, raw: object) -> RawDocument:
    if not isinstance(raw, RawDocument):
        raise BuildError(f"{collection}[{position}]: expected RawDocument, got {type(raw).__name__}")
    for name in ("title", "url", "preview", "text", "tags"):
        if not isinstance(getattr(raw, name), str):
            raise BuildError(f"{collection}[{position}]: field {name!r} must be a string")
    if not all(isinstance(h, str) for h in raw.headings):
        raise BuildError(f"{collection}[{position}]: headings must be strings")
    if not raw.url.strip():
        raise BuildError(f"{collection}[{position}]: document has an empty url")
    return raw


def build_collection(
    identifier: str,
    raw: RawCollection,
    field_weights: Mapping[str, float] = DEFAULT_FIELD_WEIGHTS,
) -> CollectionIndex:
    """Index the documents of one collection."""
    documents: List[Document] = []
    texts: List[str] = []
    weights: List[Mapping[str, float]] = []
    postings: Dict[str, List[int]] = defaultdict(list)
    vocabulary: Counter[str] = Counter()
    seen_urls: Set[str] = set()

    for position, item in enumerate(raw.documents):
        doc = _check_document(identifier, position, item)
        if doc.url in seen_urls:
            logger.warning("Skipping duplicate url %s in collection %s", doc.url, identifier)
            continue
        seen_urls.add(doc.url)

        doc_id = len(documents)
        term_weights: Dict[str, float] = defaultdict(float)
        words: Set[str] = set()
        field_texts: List[str] = []
        for name in FIELDS:
            text = doc.field(name)
            if not text:
                continue
            field_texts.append(normalize_whitespace(text))
            weight = float(field_weights.get(name, 0.0))
            for term in analyze(text, split_dotted=True):
                term_weights[term] += weight
            words.update(content_words(tokenize(text, split_dotted=True)))

        for term in term_weights:
            postings[term].append(doc_id)
        vocabulary.update(words)

        documents.append(
            Document(
                collection=identifier,
                position=doc_id,
                title=doc.title,
                preview=doc.preview,
                url=doc.url,
            )
        )
        texts.append(_FIELD_SEPARATOR.join(field_texts))
        weights.append(MappingProxyType(dict(term_weights)))

    return CollectionIndex(
        identifier=identifier,
        store=DocumentStore(identifier, documents, texts),
        postings=MappingProxyType({t: tuple(ids) for t, ids in postings.items()}),
        weights=tuple(weights),
        vocabulary=MappingProxyType(dict(vocabulary)),
    )


def build_snapshot(
    sources: Mapping[str, RawCollection],
    *,
    field_weights: Optional[Mapping[str, float]] = None,
    built_at: Optional[datetime] = None,
) -> IndexSnapshot:
    """Build a new snapshot from collection id -> raw collection.

    Raises `BuildError` when the sources are malformed; no partial snapshot is
    ever returned.
    """
    weights = field_weights if field_weights is not None else DEFAULT_FIELD_WEIGHTS
    registry = CollectionRegistry(
        sources.keys(), {cid: raw.aliases for cid, raw in sources.items()}
    )

    collections: Dict[str, CollectionIndex] = {}
    for identifier in registry.list_collections():
        collections[identifier] = build_collection(identifier, sources[identifier], weights)
        logger.debug(
            "Indexed collection %s: %d documents, %d terms",
            identifier,
            len(collections[identifier]),
            len(collections[identifier].postings),
        )

    return IndexSnapshot(
        collections=MappingProxyType(collections),
        registry=registry,
        built_at=built_at or utcnow(),
    )
