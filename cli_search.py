"""Terminal client for the gear search engine and the candidate extractor."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable

from gearsearch.config import settings
from gearsearch.extractor import extract_candidates
from gearsearch.models import SearchFilters, SearchQuery, SearchResponse
from gearsearch.repository import InMemoryCatalogRepository
from gearsearch.resolver import resolve_gear_from_message
from gearsearch.search import SearchEngine, SearchError
from gearsearch.similarity import get_similarity

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_engine(args: argparse.Namespace) -> SearchEngine:
    similarity = get_similarity(args.similarity)
    if args.es:
        from gearsearch.es_repository import ElasticsearchCatalogRepository, get_client
        from gearsearch.importer import bootstrap_index

        es = get_client()
        if settings.load_on_startup:
            asyncio.run(bootstrap_index(es, args.catalog))
        repository = ElasticsearchCatalogRepository(es, settings.es_index, similarity)
    else:
        repository = InMemoryCatalogRepository.from_file(args.catalog, similarity)
    return SearchEngine(repository)


async def reindex(catalog_path: str) -> int:
    from gearsearch.es_repository import get_client
    from gearsearch.importer import reindex_catalog

    return await reindex_catalog(get_client(), catalog_path)


def build_query(text: str, args: argparse.Namespace) -> SearchQuery:
    filters = SearchFilters(
        brand=args.brand,
        mount=args.mount,
        gearType=args.gear_type,
        priceMin=args.price_min,
        priceMax=args.price_max,
        sensorFormat=args.sensor_format,
        lensType=args.lens_type,
        megapixelsMin=args.megapixels_min,
        megapixelsMax=args.megapixels_max,
    )
    has_filters = any(value is not None for value in filters.model_dump().values())
    return SearchQuery(
        query=text or None,
        sort=args.sort,
        page=args.page,
        pageSize=args.page_size,
        filters=filters if has_filters else None,
    )


def pretty_print_response(query: str, payload: SearchResponse) -> None:
    print(
        f"Query: {query} | total: {payload.total} | page {payload.page}/{payload.totalPages} "
        f"(size {payload.pageSize})"
    )
    for idx, item in enumerate(payload.results, start=1):
        score = item.relevance
        score_repr = f"{score:.2f}" if isinstance(score, (int, float)) else "-"
        color = GREEN if (score or 0) >= 1.0 else RED
        print(f"  {idx:02d}. {color}{score_repr}{RESET} | {item.brandName or '-'} | {item.gearType} | {item.name}")


def print_candidates(message: str) -> None:
    candidates = extract_candidates(message)
    print(f"Message: {message!r} | candidates: {len(candidates)}")
    for idx, candidate in enumerate(candidates, start=1):
        print(f"  {idx:02d}. {candidate}")


async def run_one(engine: SearchEngine, text: str, args: argparse.Namespace) -> None:
    if args.resolve:
        result = await resolve_gear_from_message(engine, text)
        if result.ok and result.item is not None:
            print(f"{GREEN}{result.item.name}{RESET} via {result.usedQuery!r} (tried {result.tried})")
        else:
            print(f"{RED}{result.code}{RESET} (tried {result.tried})")
        return
    if args.suggest:
        for suggestion in await engine.suggest(text):
            print(f"  {suggestion.type:5s} {suggestion.relevance or 0:.2f} {suggestion.label} -> {suggestion.href}")
        return
    try:
        response = await engine.search(build_query(text, args))
    except SearchError as exc:
        print(f"{RED}{exc}{RESET}")
        return
    pretty_print_response(text, response)


def handle(engine: SearchEngine | None, text: str, args: argparse.Namespace) -> None:
    """Without an engine only candidate extraction is available."""
    if engine is None:
        print_candidates(text)
        return
    asyncio.run(run_one(engine, text, args))


def interactive_shell(engine: SearchEngine | None, args: argparse.Namespace) -> None:
    print("Interactive gear search. Type 'exit' to quit.")
    while True:
        try:
            text = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not text:
            continue
        if text.lower() in {"exit", "quit"}:
            return
        handle(engine, text, args)


def batch_mode(engine: SearchEngine | None, file_path: Path, args: argparse.Namespace) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            text = line.strip()
            if text:
                handle(engine, text, args)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the gear search engine")
    parser.add_argument("query", nargs="?", help="Query or message. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--extract", action="store_true", help="Print query candidates extracted from the text")
    mode.add_argument("--resolve", action="store_true", help="Resolve a chat message to a single item")
    mode.add_argument("--suggest", action="store_true", help="Print autocomplete suggestions")
    parser.add_argument("--es", action="store_true", help="Search the Elasticsearch index instead of a JSON file")
    parser.add_argument("--reindex", action="store_true", help="Rebuild the Elasticsearch index from --catalog and exit")
    parser.add_argument("--catalog", default=settings.catalog_path, help="Catalog JSON file; with --es it seeds an empty index")
    parser.add_argument("--similarity", default=settings.similarity_backend, choices=["trigram", "rapidfuzz"])
    parser.add_argument("--sort", default="relevance", choices=["relevance", "name", "newest", "price_asc", "price_desc"])
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=settings.default_page_size)
    parser.add_argument("--brand")
    parser.add_argument("--mount")
    parser.add_argument("--gear-type")
    parser.add_argument("--price-min", type=float)
    parser.add_argument("--price-max", type=float)
    parser.add_argument("--sensor-format", help="Sensor format slug, e.g. full-frame")
    parser.add_argument("--lens-type", choices=["prime", "zoom"])
    parser.add_argument("--megapixels-min", type=float)
    parser.add_argument("--megapixels-max", type=float)
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.getLevelName(settings.log_level.upper()), format=LOG_FORMAT, force=True)
    logging.getLogger("elastic_transport").setLevel(logging.WARNING)

    if args.reindex:
        count = asyncio.run(reindex(args.catalog))
        print(f"Indexed {count} catalog items into {settings.es_index}")
        return 0

    engine = None if args.extract else build_engine(args)
    if args.batch:
        batch_mode(engine, args.batch, args)
        return 0
    if args.query:
        handle(engine, args.query, args)
        return 0
    interactive_shell(engine, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
