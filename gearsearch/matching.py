"""Query normalization, the match predicate and relevance signals.

Matching has to tolerate punctuation and spacing noise in model names
(``Z6III`` / ``Z6 III`` / ``Z 6 III``) without letting a brand name or a short
number like ``70`` match half the catalog. Tactics:

* both sides are normalized by lowercasing and dropping whitespace,
  underscores, periods, hyphens and slashes;
* a brand-agnostic form of the item name has the item's own brand removed,
  so ``z6iii`` finds ``Nikon Z6III``;
* raw substring tests are only run for strong tokens (a letter and at least
  three characters);
* fuzzy similarity is gated by conservative thresholds and only used for
  ranking otherwise.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable

from .config import settings
from .models import CatalogItem
from .similarity import Similarity

_PUNCT_RUN_RE = re.compile(r"[\s_./-]+")
_QUERY_SPLIT_RE = re.compile(r"[\s_]+")
_LETTER_RE = re.compile(r"[a-z]")
_MM_AFTER_DIGIT_RE = re.compile(r"(\d)mm")
_F_BEFORE_DIGIT_RE = re.compile(r"f(\d)")

# Product-line words users routinely leave out, per brand.
BRAND_LINE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "nikon": ("nikkor",),
}


def normalize(text: str | None) -> str:
    """Lowercase and remove whitespace/underscore/period/hyphen/slash runs."""
    return _PUNCT_RUN_RE.sub("", (text or "").lower().strip())


def relax(normalized: str) -> str:
    """Drop lens glue between numbers: ``400mmf45`` -> ``40045``."""
    return _F_BEFORE_DIGIT_RE.sub(r"\1", _MM_AFTER_DIGIT_RE.sub(r"\1", normalized))


def strip_brand(search_name: str, brand: str | None) -> str:
    lowered = (search_name or "").lower()
    brand_lower = (brand or "").lower().strip()
    if not brand_lower:
        return lowered
    lowered = lowered.replace(brand_lower, "")
    for synonym in BRAND_LINE_SYNONYMS.get(brand_lower, ()):
        lowered = re.sub(rf"^\s*{re.escape(synonym)}\s+", "", lowered)
    return lowered


def brand_agnostic(search_name: str, brand: str | None) -> str:
    return normalize(strip_brand(search_name, brand))


def strip_brand_from_query(normalized_query: str, brand: str | None) -> str:
    brand_lower = (brand or "").lower().strip()
    if not brand_lower:
        return normalized_query
    stripped = normalized_query.replace(normalize(brand_lower), "")
    for synonym in BRAND_LINE_SYNONYMS.get(brand_lower, ()):
        stripped = stripped.replace(synonym, "")
    return stripped


def query_tokens(query: str) -> list[str]:
    """Split on whitespace/underscore only, so ``70-200`` stays whole."""
    return [part for part in _QUERY_SPLIT_RE.split((query or "").lower().strip()) if part]


def is_strong_token(token: str) -> bool:
    return len(token) >= 3 and bool(_LETTER_RE.search(token))


def strong_tokens(query: str) -> list[str]:
    return [token for token in query_tokens(query) if is_strong_token(token)]


@dataclass(frozen=True)
class ItemForms:
    raw: str
    normalized: str
    brand_agnostic: str
    relaxed: str
    relaxed_brand_agnostic: str


@lru_cache(maxsize=65536)
def item_forms(search_name: str, brand: str | None) -> ItemForms:
    normalized = normalize(search_name)
    agnostic = brand_agnostic(search_name, brand)
    return ItemForms(
        raw=(search_name or "").lower(),
        normalized=normalized,
        brand_agnostic=agnostic,
        relaxed=relax(normalized),
        relaxed_brand_agnostic=relax(agnostic),
    )


def forms_for(item: CatalogItem) -> ItemForms:
    return item_forms(item.searchName, item.brandName)


@dataclass
class QueryContext:
    """Per-query derived forms, computed once and shared by every item check."""

    raw: str
    normalized: str
    strong: list[str]
    _without_brand: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def build(cls, query: str) -> "QueryContext":
        normalized = normalize(query)
        return cls(
            raw=(query or "").lower().strip(),
            normalized=normalized,
            strong=strong_tokens(query),
        )

    @property
    def is_empty(self) -> bool:
        return not self.normalized

    def without_brand(self, brand: str | None) -> str:
        """Normalized query minus the item's brand, falling back to the full query."""
        key = (brand or "").lower()
        cached = self._without_brand.get(key)
        if cached is None:
            cached = strip_brand_from_query(self.normalized, brand) or self.normalized
            self._without_brand[key] = cached
        return cached

    def brand_agnostic_contains(self, item: CatalogItem, forms: ItemForms) -> bool:
        stripped = self.without_brand(item.brandName)
        return stripped in forms.brand_agnostic or self.normalized in forms.brand_agnostic

    def relaxed_contains(self, item: CatalogItem, forms: ItemForms) -> bool:
        return (
            self.without_brand(item.brandName) in forms.relaxed_brand_agnostic
            or self.normalized in forms.relaxed
        )


@dataclass(frozen=True)
class MatchThresholds:
    brand_agnostic_similarity: float = 0.4
    normalized_similarity: float = 0.5

    @classmethod
    def from_settings(cls) -> "MatchThresholds":
        return cls(
            brand_agnostic_similarity=settings.brand_agnostic_similarity,
            normalized_similarity=settings.normalized_similarity,
        )


def strong_token_match(ctx: QueryContext, forms: ItemForms) -> bool:
    if not ctx.strong:
        return False
    hits = sum(1 for token in ctx.strong if token in forms.raw)
    required = 2 if len(ctx.strong) >= 2 else 1
    return hits >= required


class MatchPredicate:
    """Decides whether a catalog item is a candidate for the query."""

    def __init__(self, ctx: QueryContext, similarity: Similarity, thresholds: MatchThresholds) -> None:
        self.ctx = ctx
        self.similarity = similarity
        self.thresholds = thresholds

    def __call__(self, item: CatalogItem) -> bool:
        ctx = self.ctx
        forms = forms_for(item)
        if strong_token_match(ctx, forms):
            return True
        if ctx.normalized in forms.normalized:
            return True
        if ctx.brand_agnostic_contains(item, forms):
            return True
        if ctx.relaxed_contains(item, forms):
            return True
        if self.similarity.similarity(forms.brand_agnostic, ctx.normalized) > self.thresholds.brand_agnostic_similarity:
            return True
        return self.similarity.similarity(forms.normalized, ctx.normalized) > self.thresholds.normalized_similarity


Measure = Callable[[QueryContext, CatalogItem, ItemForms, Similarity], float]


@dataclass(frozen=True)
class RelevanceSignal:
    """One weighted ranking signal; ``measure`` returns a value in ``[0, 1]``."""

    name: str
    weight: float
    measure: Measure


def _flag(value: bool) -> float:
    return 1.0 if value else 0.0


RELEVANCE_SIGNALS: tuple[RelevanceSignal, ...] = (
    RelevanceSignal("raw_contains", 2.0, lambda ctx, item, forms, sim: _flag(ctx.raw in forms.raw)),
    RelevanceSignal("normalized_contains", 1.8, lambda ctx, item, forms, sim: _flag(ctx.normalized in forms.normalized)),
    RelevanceSignal(
        "brand_agnostic_contains",
        1.0,
        lambda ctx, item, forms, sim: _flag(ctx.brand_agnostic_contains(item, forms)),
    ),
    RelevanceSignal("relaxed_contains", 1.0, lambda ctx, item, forms, sim: _flag(ctx.relaxed_contains(item, forms))),
    RelevanceSignal(
        "brand_agnostic_similarity",
        0.6,
        lambda ctx, item, forms, sim: sim.similarity(forms.brand_agnostic, ctx.normalized),
    ),
    RelevanceSignal(
        "normalized_similarity",
        0.4,
        lambda ctx, item, forms, sim: sim.similarity(forms.normalized, ctx.normalized),
    ),
    RelevanceSignal("raw_similarity", 0.3, lambda ctx, item, forms, sim: sim.similarity(item.searchName, ctx.normalized)),
)


def signal_values(
    ctx: QueryContext,
    item: CatalogItem,
    similarity: Similarity,
    signals: tuple[RelevanceSignal, ...] = RELEVANCE_SIGNALS,
) -> dict[str, float]:
    forms = forms_for(item)
    return {signal.name: signal.weight * signal.measure(ctx, item, forms, similarity) for signal in signals}


def relevance_score(
    ctx: QueryContext,
    item: CatalogItem,
    similarity: Similarity,
    signals: tuple[RelevanceSignal, ...] = RELEVANCE_SIGNALS,
) -> float:
    """Max (not sum) of the weighted signals, so one strong hit is never diluted."""
    values = signal_values(ctx, item, similarity, signals)
    return round(max(values.values(), default=0.0), 4)
