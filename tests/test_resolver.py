"""Tests for resolving chat messages to a single catalog item."""

import pytest

from gearsearch.extractor import ExtractOptions
from gearsearch.repository import InMemoryCatalogRepository
from gearsearch.resolver import ResolveOptions, resolve_gear_from_message
from gearsearch.search import SearchEngine


@pytest.fixture
def resolve_options(vocabulary):
    return ResolveOptions(extract=ExtractOptions(vocabulary=vocabulary))


@pytest.mark.asyncio
async def test_resolves_best_candidate(engine, resolve_options):
    result = await resolve_gear_from_message(engine, "anyone tried the canon rf 70-200 f2.8 yet?", resolve_options)

    assert result.ok
    assert result.item.id == "rf70200"
    assert result.usedQuery == "canon rf 70-200 f2.8"
    assert result.tried == ["canon rf 70-200 f2.8"]


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "   "])
async def test_empty_message(engine, resolve_options, message):
    result = await resolve_gear_from_message(engine, message, resolve_options)

    assert not result.ok
    assert result.code == "EMPTY_MESSAGE"


@pytest.mark.asyncio
async def test_message_without_candidates(engine, resolve_options):
    result = await resolve_gear_from_message(engine, "i think so", resolve_options)

    assert result.code == "NO_CANDIDATES"
    assert result.tried == []


@pytest.mark.asyncio
async def test_unknown_gear_is_not_found(engine, resolve_options):
    result = await resolve_gear_from_message(engine, "anyone tried the zx-9000 yet", resolve_options)

    assert not result.ok
    assert result.code == "NOT_FOUND"
    assert result.tried == ["zx-9000"]
    assert result.item is None


class BrokenRepository(InMemoryCatalogRepository):
    async def count(self, plan):
        raise TimeoutError("slow catalog")


@pytest.mark.asyncio
async def test_search_failures_move_on_to_next_candidate(catalog, vocabulary, resolve_options):
    engine = SearchEngine(BrokenRepository(catalog), vocabulary=vocabulary)

    result = await resolve_gear_from_message(engine, "thinking about the sony a7 iv", resolve_options)

    assert result.code == "NOT_FOUND"
    assert result.tried == ["sony a7 iv", "sony a7", "sony iv", "a7", "iv"]


@pytest.mark.asyncio
async def test_max_queries_limits_attempts(catalog, vocabulary):
    engine = SearchEngine(BrokenRepository(catalog), vocabulary=vocabulary)
    options = ResolveOptions(extract=ExtractOptions(vocabulary=vocabulary), max_queries=2)

    result = await resolve_gear_from_message(engine, "thinking about the sony a7 iv", options)

    assert result.tried == ["sony a7 iv", "sony a7"]
