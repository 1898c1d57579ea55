"""Query string parsing.

A query is a list of word terms and double-quoted phrase terms; a document
must satisfy all of them. Parsing never fails: an unterminated quote is
dropped and the text after it is read as plain words.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from folio.search.analysis import analyze, is_stop_word, normalize_whitespace, stem, tokenize

_PHRASE = re.compile(r'"([^"]*)"')


@dataclass(frozen=True, slots=True)
class WordTerm:
    """A single query word: the lowercase word as typed and its index term."""

    text: str
    term: str


@dataclass(frozen=True, slots=True)
class PhraseTerm:
    """A quoted phrase, matched as a case-insensitive substring."""

    text: str
    terms: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Query:
    words: Tuple[WordTerm, ...] = ()
    phrases: Tuple[PhraseTerm, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.phrases

    def scoring_terms(self) -> List[str]:
        """Index terms that contribute to a document's score."""
        terms = [w.term for w in self.words]
        for phrase in self.phrases:
            terms.extend(phrase.terms)
        return terms


def _split_phrases(raw: str) -> Tuple[List[str], List[str]]:
    segments: List[str] = []
    phrases: List[str] = []
    last = 0
    for match in _PHRASE.finditer(raw):
        segments.append(raw[last : match.start()])
        phrases.append(match.group(1))
        last = match.end()
    # Whatever is left may hold one unmatched quote
    segments.append(raw[last:].replace('"', " "))
    return segments, phrases


def parse_query(raw: str, *, max_length: Optional[int] = None) -> Query:
    """Parse a raw query string into a `Query`.

    Parameters
    ----------
    raw: str
        The query as sent by the client.
    max_length: int | None
        If given, only the first `max_length` characters are considered.
    """
    text = raw or ""
    if max_length is not None and len(text) > max_length:
        text = text[:max_length]

    segments, raw_phrases = _split_phrases(text)

    words: List[WordTerm] = []
    seen_terms: Set[str] = set()
    for segment in segments:
        for token in tokenize(segment):
            if is_stop_word(token):
                continue
            term = stem(token)
            if term in seen_terms:
                continue
            seen_terms.add(term)
            words.append(WordTerm(text=token, term=term))

    phrases: List[PhraseTerm] = []
    seen_phrases: Set[str] = set()
    for body in raw_phrases:
        phrase = normalize_whitespace(body)
        if not phrase or phrase in seen_phrases:
            continue
        seen_phrases.add(phrase)
        phrases.append(PhraseTerm(text=phrase, terms=tuple(analyze(phrase))))

    return Query(words=tuple(words), phrases=tuple(phrases))
