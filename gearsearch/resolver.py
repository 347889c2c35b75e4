"""Resolve a free-form chat message to a single catalog item.

Candidates from the extractor are tried in order against a one-result
relevance search; the first hit wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .extractor import ExtractOptions, extract_candidates
from .models import ResolveResult, SearchQuery
from .search import SearchEngine, SearchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveOptions:
    extract: ExtractOptions | None = None
    max_queries: int = 6


async def resolve_gear_from_message(
    engine: SearchEngine,
    message: str,
    options: ResolveOptions | None = None,
) -> ResolveResult:
    opts = options or ResolveOptions()
    trimmed = (message or "").strip()
    if not trimmed:
        return ResolveResult(ok=False, code="EMPTY_MESSAGE")

    candidates = extract_candidates(trimmed, opts.extract)
    if not candidates:
        return ResolveResult(ok=False, code="NO_CANDIDATES")

    tried: list[str] = []
    for query in candidates[: max(1, min(opts.max_queries, len(candidates)))]:
        tried.append(query)
        try:
            response = await engine.search(SearchQuery(query=query, sort="relevance", page=1, pageSize=1))
        except SearchError as exc:
            # Move on to the next candidate.
            logger.warning("resolve candidate %r failed: %s", query, exc)
            continue
        if response.results:
            logger.info("resolved message via %r after %s attempt(s)", query, len(tried))
            return ResolveResult(ok=True, item=response.results[0], tried=tried, usedQuery=query)

    return ResolveResult(ok=False, code="NOT_FOUND", tried=tried)
