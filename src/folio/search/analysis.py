"""Tokenization and term normalization shared by indexing and querying.

Documents and queries must go through the same pipeline so that a query word
and the document word it refers to reduce to the same index term:

    text -> tokens (lowercase, split) -> drop stop words -> stem
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List

from nltk.stem.snowball import SnowballStemmer

_TOKEN_SEPARATOR = re.compile(r"[^\w$%.]+")
_EDGE_DOTS = re.compile(r"^\.+|\.+$")
_WHITESPACE = re.compile(r"\s+")

STOP_WORDS = frozenset(
    """
    a able about across after all almost also am among an and any are as at
    be because been but by can cannot could dear did do does either else ever
    every for from got had has have he her hers him his how however i i.e. if
    in into is it its just least let like likely may me might most must my
    neither no nor not of off often on only or other our own rather said say
    says she should since so some than that the their them then there these
    they this tis to too twas us wants was we were what when where which while
    who whom why will with would yet you your
    """.split()
)

_stemmer = SnowballStemmer("english")


def normalize_whitespace(text: str) -> str:
    """Lowercase `text` and collapse whitespace runs into single spaces."""
    return _WHITESPACE.sub(" ", text).strip().lower()


def tokenize(text: str, *, split_dotted: bool = False) -> List[str]:
    """Split text into lowercase word tokens.

    Tokens keep inner dots, `$` and `%` so identifiers such as
    `db.collection.find` or `$match` survive. With `split_dotted`, the
    dot-separated parts of a dotted token are emitted as well.
    Single-character tokens are dropped.
    """
    tokens: List[str] = []
    for raw in _TOKEN_SEPARATOR.split(text or ""):
        token = _EDGE_DOTS.sub("", raw).lower()
        if len(token) > 1:
            tokens.append(token)
        if split_dotted and "." in token:
            tokens.extend(part for part in token.split(".") if len(part) > 1)
    return tokens


def is_stop_word(token: str) -> bool:
    return token in STOP_WORDS


@lru_cache(maxsize=65536)
def stem(token: str) -> str:
    """Reduce a token to its index term."""
    # Operators like $match or %%name are matched verbatim
    if token.startswith(("$", "%")) or "." in token:
        return token
    return _stemmer.stem(token)


def content_words(tokens: Iterable[str]) -> List[str]:
    """Drop stop words, keeping the order of `tokens`."""
    return [t for t in tokens if not is_stop_word(t)]


def analyze(text: str, *, split_dotted: bool = False) -> List[str]:
    """Run the full pipeline and return index terms in text order."""
    return [stem(t) for t in content_words(tokenize(text, split_dotted=split_dotted))]
