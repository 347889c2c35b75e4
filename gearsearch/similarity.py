"""Pairwise string similarity providers.

The catalog repository exposes one of these as its fuzzy-matching primitive.
``TrigramSimilarity`` follows PostgreSQL ``pg_trgm`` semantics, which is what
the match thresholds were tuned against; ``RapidFuzzSimilarity`` is an
edit-distance based alternative.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Protocol

from rapidfuzz import fuzz

_WORD_RE = re.compile(r"[^\W_]+")


class Similarity(Protocol):
    def similarity(self, a: str, b: str) -> float: ...


@lru_cache(maxsize=65536)
def trigrams(text: str) -> frozenset[str]:
    """Trigram set of ``text``: each word lowercased and padded as ``"  word "``."""
    grams: set[str] = set()
    for word in _WORD_RE.findall((text or "").lower()):
        padded = f"  {word} "
        grams.update(padded[i : i + 3] for i in range(len(padded) - 2))
    return frozenset(grams)


class TrigramSimilarity:
    name = "trigram"

    def similarity(self, a: str, b: str) -> float:
        left = trigrams(a)
        right = trigrams(b)
        if not left or not right:
            return 0.0
        shared = len(left & right)
        return shared / (len(left) + len(right) - shared)


class RapidFuzzSimilarity:
    name = "rapidfuzz"

    def similarity(self, a: str, b: str) -> float:
        if not a or not b:
            return 0.0
        return fuzz.ratio(a.lower(), b.lower()) / 100.0


_BACKENDS: dict[str, type] = {
    TrigramSimilarity.name: TrigramSimilarity,
    RapidFuzzSimilarity.name: RapidFuzzSimilarity,
}


def get_similarity(backend: str = "trigram") -> Similarity:
    try:
        factory = _BACKENDS[backend.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown similarity backend {backend!r}; expected one of {sorted(_BACKENDS)}") from None
    return factory()
