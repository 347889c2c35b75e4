"""Catalog repository interface and the in-memory adapter.

The search engine never touches storage directly. It hands the repository a
:class:`SearchPlan` (match predicate, structured filters, sort mode and
offset/limit) and issues two independent reads against it: ``count`` and
``fetch``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Protocol, Sequence

from .importer import load_catalog
from .models import CatalogItem, SearchFilters, SearchResult, SearchSort
from .similarity import Similarity, TrigramSimilarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchPlan:
    predicate: Callable[[CatalogItem], bool] | None
    filters: SearchFilters | None
    sort: SearchSort
    offset: int
    limit: int
    relevance: Callable[[CatalogItem], float] | None = None


class CatalogRepository(Protocol):
    def similarity(self, a: str, b: str) -> float: ...

    async def fetch(self, plan: SearchPlan) -> list[SearchResult]: ...

    async def count(self, plan: SearchPlan) -> int: ...


# Resolution specs are rounded differently across sources.
MEGAPIXEL_TOLERANCE = 0.9


def megapixel_bounds(filters: SearchFilters) -> tuple[float | None, float | None]:
    low = max(0.0, filters.megapixelsMin - MEGAPIXEL_TOLERANCE) if filters.megapixelsMin is not None else None
    high = filters.megapixelsMax + MEGAPIXEL_TOLERANCE if filters.megapixelsMax is not None else None
    return low, high


def filter_matches(item: CatalogItem, filters: SearchFilters | None) -> bool:
    """Structured filters, ANDed. Unset filters impose nothing."""
    if filters is None:
        return True
    if filters.brand and filters.brand.lower() not in (item.brandName or "").lower():
        return False
    if filters.mount and filters.mount.lower() not in (item.mountValue or "").lower():
        return False
    if filters.gearType and item.gearType != filters.gearType:
        return False
    if filters.sensorFormat and item.sensorFormat != filters.sensorFormat:
        return False
    if filters.lensType and item.isPrime != (filters.lensType == "prime"):
        return False
    low, high = megapixel_bounds(filters)
    if low is not None and (item.resolutionMp is None or item.resolutionMp < low):
        return False
    if high is not None and (item.resolutionMp is None or item.resolutionMp > high):
        return False
    if filters.priceMin is not None:
        # A lower bound requires a known price.
        if item.priceForMinCents is None or item.priceForMinCents < filters.priceMin * 100:
            return False
    if filters.priceMax is not None:
        if item.priceForMaxCents is not None and item.priceForMaxCents > filters.priceMax * 100:
            return False
    return True


def plan_matches(item: CatalogItem, plan: SearchPlan) -> bool:
    if not filter_matches(item, plan.filters):
        return False
    return plan.predicate is None or plan.predicate(item)


def _name_key(item: CatalogItem) -> tuple[str, str]:
    return (item.name.lower(), item.name)


def _sort_rows(rows: list[tuple[CatalogItem, float | None]], sort: SearchSort) -> None:
    if sort == "relevance":
        rows.sort(key=lambda row: (-(row[1] or 0.0), _name_key(row[0])))
    elif sort == "newest":
        rows.sort(
            key=lambda row: (
                row[0].releaseDate is None,
                -row[0].releaseDate.toordinal() if row[0].releaseDate else 0,
                _name_key(row[0]),
            )
        )
    elif sort == "price_asc":
        rows.sort(key=lambda row: (row[0].priceCents is None, row[0].priceCents or 0, _name_key(row[0])))
    elif sort == "price_desc":
        rows.sort(key=lambda row: (row[0].priceCents is None, -(row[0].priceCents or 0), _name_key(row[0])))
    else:
        rows.sort(key=lambda row: _name_key(row[0]))


def select_page(items: Iterable[CatalogItem], plan: SearchPlan) -> list[SearchResult]:
    """Filter, rank, sort and slice ``items`` according to ``plan``."""
    rows: list[tuple[CatalogItem, float | None]] = [
        (item, plan.relevance(item) if plan.relevance else None) for item in items if plan_matches(item, plan)
    ]
    _sort_rows(rows, plan.sort)
    page = rows[plan.offset : plan.offset + plan.limit]
    return [SearchResult.from_item(item, relevance) for item, relevance in page]


def count_matches(items: Iterable[CatalogItem], plan: SearchPlan) -> int:
    return sum(1 for item in items if plan_matches(item, plan))


class InMemoryCatalogRepository:
    """Catalog held in process memory; plans are evaluated in a worker thread."""

    def __init__(self, items: Sequence[CatalogItem], similarity: Similarity | None = None) -> None:
        self._items = tuple(items)
        self._similarity = similarity or TrigramSimilarity()

    @classmethod
    def from_file(cls, path: str | Path, similarity: Similarity | None = None) -> "InMemoryCatalogRepository":
        items = load_catalog(path)
        logger.info("Loaded %s catalog items from %s", len(items), path)
        return cls(items, similarity)

    def __len__(self) -> int:
        return len(self._items)

    def similarity(self, a: str, b: str) -> float:
        return self._similarity.similarity(a, b)

    async def fetch(self, plan: SearchPlan) -> list[SearchResult]:
        return await asyncio.to_thread(select_page, self._items, plan)

    async def count(self, plan: SearchPlan) -> int:
        return await asyncio.to_thread(count_matches, self._items, plan)
