"""Spelling suggestions drawn from the indexed vocabulary."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping, Optional, Tuple


def edit_distance(a: str, b: str, max_d: int = 2) -> int:
    """Levenshtein distance between `a` and `b`, capped at `max_d + 1`.

    Only a diagonal band of width `max_d` is computed, so the cost stays
    linear in the word length.
    """
    if a == b:
        return 0
    if abs(len(a) - len(b)) > max_d:
        return max_d + 1
    over = max_d + 1
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i] + [over] * len(b)
        start = max(1, i - max_d)
        end = min(len(b), i + max_d)
        for j in range(start, end + 1):
            cost = 0 if ca == b[j - 1] else 1
            cur[j] = min(cur[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost)
        prev = cur
        if min(prev) > max_d:
            return over
    return min(prev[-1], over)


def merge_vocabularies(vocabularies: Iterable[Mapping[str, int]]) -> Counter[str]:
    """Sum document frequencies of several collections' vocabularies."""
    merged: Counter[str] = Counter()
    for vocabulary in vocabularies:
        merged.update(vocabulary)
    return merged


def suggest(word: str, vocabulary: Mapping[str, int], *, max_distance: int = 2) -> Optional[str]:
    """Return the closest vocabulary word to `word`, or None.

    Candidates are ordered by edit distance, then by how many documents
    contain them (more is better), then alphabetically.
    """
    if max_distance <= 0:
        return None
    best: Optional[Tuple[int, int, str]] = None
    for candidate, frequency in vocabulary.items():
        if candidate == word or abs(len(candidate) - len(word)) > max_distance:
            continue
        distance = edit_distance(word, candidate, max_distance)
        if distance > max_distance:
            continue
        key = (distance, -frequency, candidate)
        if best is None or key < best:
            best = key
    return best[2] if best is not None else None
