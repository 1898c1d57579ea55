"""Query evaluation against one index snapshot.

`QueryEngine.search()` resolves the requested scope, evaluates the query in
every scoped collection, merges the hits into one ranked list and computes
spelling corrections for query words that match nothing in scope.

The engine holds no index state; callers pass the snapshot they read from the
active index handle, so a whole query always runs against one snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union

from folio.config import SearchConfig
from folio.exceptions import CollectionNotFoundError
from folio.search.builder import CollectionIndex, IndexSnapshot
from folio.search.query import Query, parse_query
from folio.search.spelling import merge_vocabularies, suggest
from folio.search.store import Document

logger = logging.getLogger(__name__)

Scope = Union[str, Iterable[str], None]


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A matching document and its relevance score."""

    document: Document
    score: float

    def sort_key(self) -> Tuple[float, str, str, int]:
        doc = self.document
        return (-self.score, doc.url, doc.collection, doc.position)


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Ranked hits plus suggested corrections for unmatched query words."""

    hits: Tuple[SearchHit, ...] = ()
    spelling_corrections: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def results(self) -> List[Document]:
        return [hit.document for hit in self.hits]


def split_scope(scope: Scope) -> List[str]:
    """Turn a comma-separated string or an iterable into non-empty names."""
    if scope is None:
        return []
    names = scope.split(",") if isinstance(scope, str) else list(scope)
    return [n.strip() for n in names if n and n.strip()]


class QueryEngine:
    """Evaluates queries against index snapshots.

    Parameters
    ----------
    max_results: int
        Cap on the merged result list.
    max_query_length: int | None
        Raw queries are truncated to this many characters.
    max_edit_distance: int
        Largest edit distance considered for spelling suggestions.
    unknown_scope: "ignore" | "reject"
        Whether a scope entry naming no loaded collection contributes nothing
        ("ignore") or raises `CollectionNotFoundError` ("reject").
    """

    def __init__(
        self,
        *,
        max_results: int = 150,
        max_query_length: Optional[int] = 100,
        max_edit_distance: int = 2,
        unknown_scope: Literal["ignore", "reject"] = "ignore",
    ) -> None:
        self.max_results = max_results
        self.max_query_length = max_query_length
        self.max_edit_distance = max_edit_distance
        self.unknown_scope = unknown_scope

    @classmethod
    def from_config(cls, config: SearchConfig) -> "QueryEngine":
        return cls(
            max_results=config.max_results,
            max_query_length=config.max_query_length,
            max_edit_distance=config.max_edit_distance,
            unknown_scope=config.unknown_scope,
        )

    def resolve_scope(self, snapshot: IndexSnapshot, scope: Scope) -> Tuple[str, ...]:
        """Canonical identifiers to search, sorted and without duplicates.

        An empty scope means every loaded collection.
        """
        names = split_scope(scope)
        if not names:
            return snapshot.registry.list_collections()

        resolved = set()
        for name in names:
            try:
                resolved.add(snapshot.registry.resolve(name))
            except CollectionNotFoundError:
                if self.unknown_scope == "reject":
                    raise
                logger.debug("Ignoring unknown collection %r in search scope", name)
        return tuple(sorted(resolved))

    def search(self, snapshot: IndexSnapshot, raw_query: str, scope: Scope = None) -> SearchOutcome:
        query = parse_query(raw_query, max_length=self.max_query_length)
        if query.is_empty:
            return SearchOutcome()

        indexes = [snapshot.collections[cid] for cid in self.resolve_scope(snapshot, scope)]
        scoring_terms = query.scoring_terms()

        hits: List[SearchHit] = []
        for index in indexes:
            for doc_id in _matching_documents(index, query):
                hits.append(SearchHit(index.store.get(doc_id), index.score(doc_id, scoring_terms)))
        hits.sort(key=SearchHit.sort_key)

        return SearchOutcome(
            hits=tuple(hits[: self.max_results]),
            spelling_corrections=self._corrections(query, indexes),
        )

    def _corrections(
        self, query: Query, indexes: List[CollectionIndex]
    ) -> Dict[str, Optional[str]]:
        unmatched = [
            w for w in query.words if not any(index.has_term(w.term) for index in indexes)
        ]
        if not unmatched:
            return {}
        vocabulary = merge_vocabularies(index.vocabulary for index in indexes)
        return {
            w.text: suggest(w.text, vocabulary, max_distance=self.max_edit_distance)
            for w in unmatched
        }


def _matching_documents(index: CollectionIndex, query: Query) -> Iterable[int]:
    """Ids of the documents in `index` that satisfy every query term."""
    if query.words:
        postings = sorted((index.doc_ids(w.term) for w in query.words), key=len)
        if not postings[0]:
            return ()
        candidates = set(postings[0])
        for ids in postings[1:]:
            candidates.intersection_update(ids)
            if not candidates:
                return ()
        ordered: Iterable[int] = sorted(candidates)
    else:
        ordered = range(len(index))

    if not query.phrases:
        return ordered
    return [
        doc_id
        for doc_id in ordered
        if all(p.text in index.store.text(doc_id) for p in query.phrases)
    ]


def search(
    snapshot: IndexSnapshot,
    raw_query: str,
    scope: Scope = None,
    *,
    engine: Optional[QueryEngine] = None,
) -> SearchOutcome:
    """Search `snapshot` with a default-configured engine unless one is given."""
    return (engine or QueryEngine()).search(snapshot, raw_query, scope)
