"""Catalog importer: turns raw catalog dumps into CatalogItem documents."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from elasticsearch import Elasticsearch, helpers

from .config import settings
from .data_files import load_json_records
from .models import CatalogItem

logger = logging.getLogger(__name__)


def _alias_names(raw: dict) -> list[str]:
    names: list[str] = []
    for alias in raw.get("aliases") or raw.get("regionalAliases") or []:
        if isinstance(alias, str):
            names.append(alias)
        elif isinstance(alias, dict) and alias.get("name"):
            names.append(str(alias["name"]))
    return names


def build_search_name(name: str, aliases: Iterable[str]) -> str:
    """Fold aliases into the search name, skipping ones already contained in it."""
    parts = [name]
    lowered = name.lower()
    for alias in aliases:
        alias = alias.strip()
        if alias and alias.lower() not in lowered:
            parts.append(alias)
            lowered = f"{lowered} {alias.lower()}"
    return " ".join(part for part in parts if part)


def _first_present(raw: dict, *keys: str):
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def prepare_item(raw: dict) -> CatalogItem:
    """Map a catalog dump record onto CatalogItem.

    Effective filter prices fall back from the current MSRP to the used-market
    or launch price (see ``CatalogItem``).
    """
    name = str(raw.get("name") or raw.get("title") or "").strip()
    search_name = raw.get("searchName") or raw.get("search_name") or build_search_name(name, _alias_names(raw))
    return CatalogItem(
        id=str(raw.get("id") or raw.get("slug") or name),
        name=name,
        slug=str(raw.get("slug") or ""),
        searchName=search_name,
        brandName=raw.get("brandName") or raw.get("brand"),
        mountValue=raw.get("mountValue") or raw.get("mount"),
        gearType=str(raw.get("gearType") or raw.get("gear_type") or ""),
        priceCents=_first_present(raw, "priceCents", "msrpNowUsdCents"),
        launchPriceCents=_first_present(raw, "launchPriceCents", "msrpAtLaunchUsdCents"),
        usedPriceCents=_first_present(raw, "usedPriceCents", "mpbMaxPriceUsdCents"),
        sensorFormat=raw.get("sensorFormat") or raw.get("sensorFormatSlug"),
        isPrime=raw.get("isPrime"),
        resolutionMp=_first_present(raw, "resolutionMp", "megapixels"),
        thumbnailUrl=raw.get("thumbnailUrl"),
        releaseDate=raw.get("releaseDate") or None,
    )


def load_catalog(path: str | Path | None = None) -> list[CatalogItem]:
    records = load_json_records(path or settings.catalog_path)
    return [prepare_item(record) for record in records]


def _iter_actions(index: str, items: Iterable[CatalogItem]) -> Iterable[dict]:
    for item in items:
        yield {
            "_index": index,
            "_id": item.id,
            "_source": item.model_dump(mode="json"),
        }


async def import_catalog(es: Elasticsearch, path: str | Path | None = None, index: str | None = None) -> int:
    items = load_catalog(path)
    if not items:
        return 0
    actions = list(_iter_actions(index or settings.es_index, items))
    await asyncio.to_thread(helpers.bulk, es, actions)
    logger.info("Imported %s catalog items into %s", len(actions), index or settings.es_index)
    return len(actions)


async def import_if_empty(es: Elasticsearch, path: str | Path | None = None) -> int:
    from .indexing import index_is_empty

    if not await index_is_empty(es):
        return 0
    return await import_catalog(es, path)


async def reindex_catalog(es: Elasticsearch, path: str | Path | None = None) -> int:
    from .indexing import drop_index, ensure_index

    await drop_index(es)
    await ensure_index(es)
    return await import_catalog(es, path)


async def bootstrap_index(es: Elasticsearch, path: str | Path | None = None) -> int:
    """Create the index when missing and seed it from the catalog file if it is empty."""
    from .indexing import ensure_index

    await ensure_index(es)
    imported = await import_if_empty(es, path)
    if imported:
        logger.info("Seeded %s with %s catalog items", settings.es_index, imported)
    return imported
