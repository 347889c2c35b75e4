"""Catalog search engine: query resolution, ranking and pagination."""
from __future__ import annotations

import asyncio
import logging
import math
from functools import partial
from time import perf_counter

from .brands import BrandVocabulary, get_brand_vocabulary
from .matching import (
    RELEVANCE_SIGNALS,
    MatchPredicate,
    MatchThresholds,
    QueryContext,
    RelevanceSignal,
    relevance_score,
)
from .models import SearchQuery, SearchResponse, Suggestion
from .repository import CatalogRepository, SearchPlan

logger = logging.getLogger(__name__)

GEAR_SUGGESTION_LIMIT = 5
BRAND_SUGGESTION_LIMIT = 3


class SearchError(RuntimeError):
    """The catalog repository failed while serving a search."""


def total_pages(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


class SearchEngine:
    def __init__(
        self,
        repository: CatalogRepository,
        thresholds: MatchThresholds | None = None,
        signals: tuple[RelevanceSignal, ...] = RELEVANCE_SIGNALS,
        vocabulary: BrandVocabulary | None = None,
    ) -> None:
        self.repository = repository
        self.thresholds = thresholds or MatchThresholds.from_settings()
        self.signals = signals
        self._vocabulary = vocabulary

    @property
    def vocabulary(self) -> BrandVocabulary:
        if self._vocabulary is None:
            self._vocabulary = get_brand_vocabulary()
        return self._vocabulary

    def build_plan(self, params: SearchQuery) -> SearchPlan:
        ctx = QueryContext.build(params.query or "") if params.has_text else None
        if ctx is not None and ctx.is_empty:
            # Punctuation-only input carries no signal.
            ctx = None

        predicate = MatchPredicate(ctx, self.repository, self.thresholds) if ctx else None
        relevance = None
        if ctx is not None and params.sort == "relevance":
            relevance = partial(relevance_score, ctx, similarity=self.repository, signals=self.signals)
        return SearchPlan(
            predicate=predicate,
            filters=params.filters,
            sort=params.sort,
            offset=(params.page - 1) * params.pageSize,
            limit=params.pageSize,
            relevance=relevance,
        )

    async def search(self, params: SearchQuery) -> SearchResponse:
        t0 = perf_counter()
        plan = self.build_plan(params)
        logger.debug(
            "search plan q=%r sort=%s offset=%s limit=%s filters=%s",
            params.query,
            plan.sort,
            plan.offset,
            plan.limit,
            plan.filters,
        )
        try:
            results, total = await asyncio.gather(
                self.repository.fetch(plan),
                self.repository.count(plan),
            )
        except Exception as exc:
            logger.error("search failed q=%r: %s", params.query, exc)
            raise SearchError(f"search failed for query {params.query!r}") from exc

        logger.info(
            "search q=%r sort=%s page=%s hits=%s total=%s took=%.2fms",
            params.query,
            params.sort,
            params.page,
            len(results),
            total,
            (perf_counter() - t0) * 1000,
        )
        return SearchResponse(
            results=results,
            total=total,
            totalPages=total_pages(total, params.pageSize),
            page=params.page,
            pageSize=params.pageSize,
        )

    def _brand_suggestions(self, query: str) -> list[Suggestion]:
        needle = query.lower().strip()
        matches = [brand for brand in self.vocabulary.brands if needle in brand.name.lower()]
        scored = sorted(
            ((brand, self.repository.similarity(brand.name, needle)) for brand in matches),
            key=lambda pair: -pair[1],
        )
        return [
            Suggestion(
                id=f"brand:{brand.slug}",
                label=f"{brand.name} (Brand)",
                href=f"/brand/{brand.slug}",
                type="brand",
                relevance=round(score, 4),
            )
            for brand, score in scored[:BRAND_SUGGESTION_LIMIT]
        ]

    async def suggest(self, query: str, limit: int = 8) -> list[Suggestion]:
        """Autocomplete: best gear matches and brands, merged by relevance."""
        if not query or len(query) < 2:
            return []
        response = await self.search(
            SearchQuery(query=query, sort="relevance", page=1, pageSize=GEAR_SUGGESTION_LIMIT)
        )
        suggestions = [
            Suggestion(
                id=f"gear:{item.id}",
                label=f"{item.name} ({item.brandName})" if item.brandName else item.name,
                href=f"/gear/{item.slug}",
                type="gear",
                relevance=item.relevance,
            )
            for item in response.results
        ]
        suggestions.extend(self._brand_suggestions(query))
        suggestions.sort(key=lambda s: -(s.relevance or 0.0))
        return suggestions[:limit]
