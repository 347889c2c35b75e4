"""Elasticsearch-backed catalog repository.

Structured filters are pushed down to Elasticsearch as a ``bool.filter``
query; the match predicate and relevance ranking run in Python over the
scanned documents, exactly like the in-memory adapter. The blocking client
calls are wrapped with ``asyncio.to_thread``.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any

from elasticsearch import Elasticsearch, helpers

from .config import settings
from .models import CatalogItem, SearchFilters, SearchResult
from .repository import SearchPlan, count_matches, megapixel_bounds, select_page
from .similarity import Similarity, TrigramSimilarity

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", settings.es_host)
    return Elasticsearch(settings.es_host)


def _contains(field: str, value: str) -> dict:
    escaped = value.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")
    return {"wildcard": {field: {"value": f"*{escaped}*", "case_insensitive": True}}}


def _missing(field: str) -> dict:
    return {"bool": {"must_not": {"exists": {"field": field}}}}


def build_filter_query(filters: SearchFilters | None) -> dict[str, Any]:
    clauses: list[dict] = []
    if filters is not None:
        if filters.brand:
            clauses.append(_contains("brandName", filters.brand))
        if filters.mount:
            clauses.append(_contains("mountValue", filters.mount))
        if filters.gearType:
            clauses.append({"term": {"gearType": filters.gearType}})
        if filters.sensorFormat:
            clauses.append({"term": {"sensorFormat": filters.sensorFormat}})
        if filters.lensType:
            clauses.append({"term": {"isPrime": filters.lensType == "prime"}})
        low, high = megapixel_bounds(filters)
        if low is not None or high is not None:
            bounds = {}
            if low is not None:
                bounds["gte"] = low
            if high is not None:
                bounds["lte"] = high
            clauses.append({"range": {"resolutionMp": bounds}})
        if filters.priceMin is not None:
            clauses.append({"range": {"priceForMinCents": {"gte": filters.priceMin * 100}}})
        if filters.priceMax is not None:
            clauses.append(
                {
                    "bool": {
                        "should": [
                            {"range": {"priceForMaxCents": {"lte": filters.priceMax * 100}}},
                            _missing("priceForMaxCents"),
                        ],
                        "minimum_should_match": 1,
                    }
                }
            )
    if not clauses:
        return {"query": {"match_all": {}}}
    return {"query": {"bool": {"filter": clauses}}}


def _hit_to_item(hit: dict) -> CatalogItem:
    source = dict(hit.get("_source", {}))
    source.setdefault("id", hit.get("_id"))
    return CatalogItem.model_validate(source)


class ElasticsearchCatalogRepository:
    """Catalog read from an Elasticsearch index.

    Text searches scan the filtered index once per plan: ``fetch`` and
    ``count`` share the same in-flight scan.
    """

    def __init__(self, es: Elasticsearch, index: str | None = None, similarity: Similarity | None = None) -> None:
        self._es = es
        self._index = index or settings.es_index
        self._similarity = similarity or TrigramSimilarity()
        self._scans: dict[int, asyncio.Future[list[CatalogItem]]] = {}

    def similarity(self, a: str, b: str) -> float:
        return self._similarity.similarity(a, b)

    def _scan(self, plan: SearchPlan) -> list[CatalogItem]:
        body = build_filter_query(plan.filters)
        logger.debug("ES scan index=%s body=%s", self._index, body)
        return [_hit_to_item(hit) for hit in helpers.scan(self._es, query=body, index=self._index)]

    def _shared_scan(self, plan: SearchPlan) -> asyncio.Future[list[CatalogItem]]:
        key = id(plan)
        scan = self._scans.get(key)
        if scan is None:
            scan = asyncio.ensure_future(asyncio.to_thread(self._scan, plan))
            self._scans[key] = scan
            scan.add_done_callback(lambda _: self._scans.pop(key, None))
        return scan

    async def fetch(self, plan: SearchPlan) -> list[SearchResult]:
        items = await self._shared_scan(plan)
        return select_page(items, plan)

    async def count(self, plan: SearchPlan) -> int:
        if plan.predicate is None:
            body = build_filter_query(plan.filters)
            response = await asyncio.to_thread(self._es.count, index=self._index, body=body)
            return int(response.get("count", 0))
        items = await self._shared_scan(plan)
        return count_matches(items, plan)
