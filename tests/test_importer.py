"""Tests for catalog loading, data files and index maintenance."""

import json

import pytest

from gearsearch.data_files import LFS_POINTER_PREFIX, load_json_records
from gearsearch.importer import (
    bootstrap_index,
    build_search_name,
    import_catalog,
    import_if_empty,
    load_catalog,
    prepare_item,
    reindex_catalog,
)
from gearsearch.indexing import ensure_index, load_mapping


def test_build_search_name_skips_contained_aliases():
    assert build_search_name("Sony a7 IV", ["ILCE-7M4", "a7 iv", " "]) == "Sony a7 IV ILCE-7M4"


def test_prepare_item_accepts_legacy_keys():
    item = prepare_item(
        {
            "id": 7,
            "title": "Nikon Z6II",
            "brand": "Nikon",
            "mount": "Nikon Z",
            "msrpNowUsdCents": 199995,
            "regionalAliases": [{"name": "Z 6II"}],
            "releaseDate": "2020-10-14",
        }
    )

    assert item.id == "7"
    assert item.name == "Nikon Z6II"
    assert item.searchName == "Nikon Z6II Z 6II"
    assert item.brandName == "Nikon"
    assert item.mountValue == "Nikon Z"
    assert item.priceCents == 199995
    assert item.releaseDate.year == 2020


def test_prepare_item_reads_sensor_details_and_fallback_prices():
    item = prepare_item(
        {
            "id": "d850",
            "name": "Nikon D850",
            "msrpAtLaunchUsdCents": 329695,
            "mpbMaxPriceUsdCents": 149900,
            "sensorFormatSlug": "full-frame",
            "resolutionMp": 45.7,
            "isPrime": None,
        }
    )

    assert item.priceCents is None
    assert item.priceForMinCents == 329695
    assert item.priceForMaxCents == 149900
    assert item.sensorFormat == "full-frame"
    assert item.resolutionMp == 45.7
    assert item.isPrime is None


def test_current_msrp_wins_for_both_bounds():
    item = prepare_item({"id": "a", "name": "A", "msrpNowUsdCents": 100, "msrpAtLaunchUsdCents": 200, "mpbMaxPriceUsdCents": 50})

    assert (item.priceForMinCents, item.priceForMaxCents) == (100, 100)


def test_search_name_defaults_to_name():
    assert prepare_item({"id": "x", "name": "Fujifilm X100VI"}).searchName == "Fujifilm X100VI"


def test_load_catalog_reads_json_array(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a7iv", "name": "Sony a7 IV", "brandName": "Sony"}, "junk"]), encoding="utf-8")

    items = load_catalog(path)

    assert [item.id for item in items] == ["a7iv"]


def test_lfs_pointer_reads_as_empty(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(f"{LFS_POINTER_PREFIX}\noid sha256:abc\nsize 12\n", encoding="utf-8")

    assert load_json_records(path) == []


def test_non_array_payload_is_rejected(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"items": []}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_json_records(path)


def test_missing_file_without_url(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_json_records(tmp_path / "absent.json")


@pytest.mark.asyncio
async def test_import_catalog_bulk_indexes_documents(tmp_path, monkeypatch):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a7iv", "name": "Sony a7 IV", "releaseDate": "2021-10-21"}]), encoding="utf-8")
    captured = {}

    def fake_bulk(es, actions):
        captured["actions"] = list(actions)
        return len(captured["actions"]), []

    monkeypatch.setattr("gearsearch.importer.helpers.bulk", fake_bulk)

    count = await import_catalog(object(), path, index="gear-test")

    assert count == 1
    action = captured["actions"][0]
    assert action["_index"] == "gear-test"
    assert action["_id"] == "a7iv"
    assert action["_source"]["releaseDate"] == "2021-10-21"


class FakeIndices:
    def __init__(self, exists):
        self._exists = exists
        self.created = []

    def exists(self, index):
        return self._exists

    def create(self, index, body):
        self.created.append(index)


class FakeClient:
    def __init__(self, exists):
        self.indices = FakeIndices(exists)


def test_packaged_mapping_has_search_fields():
    properties = load_mapping()["mappings"]["properties"]

    assert properties["searchName"]["type"] == "text"
    assert properties["priceCents"]["type"] == "integer"


@pytest.mark.asyncio
async def test_ensure_index_creates_only_when_missing():
    missing = FakeClient(exists=False)
    present = FakeClient(exists=True)

    assert await ensure_index(missing, "gear-test") is True
    assert missing.indices.created == ["gear-test"]
    assert await ensure_index(present, "gear-test") is False
    assert present.indices.created == []


class CountingClient(FakeClient):
    def __init__(self, exists, documents):
        super().__init__(exists)
        self.documents = documents
        self.deleted = []
        self.indices.delete = lambda index: self.deleted.append(index)

    def count(self, index):
        return {"count": self.documents}


@pytest.mark.asyncio
async def test_import_if_empty_skips_populated_index(tmp_path, monkeypatch):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a7iv", "name": "Sony a7 IV"}]), encoding="utf-8")
    monkeypatch.setattr("gearsearch.importer.helpers.bulk", lambda es, actions: (len(actions), []))

    assert await import_if_empty(CountingClient(exists=True, documents=3), path) == 0
    assert await import_if_empty(CountingClient(exists=True, documents=0), path) == 1


@pytest.mark.asyncio
async def test_reindex_drops_and_recreates(tmp_path, monkeypatch):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a7iv", "name": "Sony a7 IV"}]), encoding="utf-8")
    monkeypatch.setattr("gearsearch.importer.helpers.bulk", lambda es, actions: (len(actions), []))
    client = CountingClient(exists=False, documents=0)

    assert await reindex_catalog(client, path) == 1
    assert client.deleted == ["gear"]
    assert client.indices.created == ["gear"]


@pytest.mark.asyncio
async def test_bootstrap_creates_and_seeds_empty_index(tmp_path, monkeypatch):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([{"id": "a7iv", "name": "Sony a7 IV"}]), encoding="utf-8")
    monkeypatch.setattr("gearsearch.importer.helpers.bulk", lambda es, actions: (len(actions), []))
    fresh = CountingClient(exists=False, documents=0)
    seeded = CountingClient(exists=True, documents=5)

    assert await bootstrap_index(fresh, path) == 1
    assert fresh.indices.created == ["gear"]
    assert await bootstrap_index(seeded, path) == 0
    assert seeded.indices.created == []
