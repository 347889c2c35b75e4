"""Smoke tests for the command line client."""

import json
from dataclasses import replace

import cli_search
from cli_search import main


def test_extract_mode_prints_candidates(capsys):
    assert main(["--extract", "anyone tried the rf 70-200 f2.8 yet"]) == 0

    out = capsys.readouterr().out
    assert "01. rf 70-200 f2.8" in out


def test_search_over_catalog_file(tmp_path, capsys):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            [
                {"id": "z6iii", "name": "Nikon Z6 III", "brandName": "Nikon", "gearType": "camera"},
                {"id": "a7iv", "name": "Sony a7 IV", "brandName": "Sony", "gearType": "camera"},
            ]
        ),
        encoding="utf-8",
    )

    assert main(["--catalog", str(path), "z6iii"]) == 0

    out = capsys.readouterr().out
    assert "total: 1" in out
    assert "Nikon Z6 III" in out
    assert "Sony a7 IV" not in out


class InMemoryIndexClient:
    """Just enough of the Elasticsearch client for index bootstrap and counting."""

    def __init__(self):
        self.documents = []
        self.indices = self
        self.created = []

    def exists(self, index):
        return bool(self.created)

    def create(self, index, body):
        self.created.append(index)

    def count(self, index, body=None):
        return {"count": len(self.documents)}


def test_es_mode_seeds_empty_index_before_searching(tmp_path, monkeypatch, capsys):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            [
                {"id": "z6iii", "name": "Nikon Z6 III", "brandName": "Nikon"},
                {"id": "a7iv", "name": "Sony a7 IV", "brandName": "Sony"},
            ]
        ),
        encoding="utf-8",
    )
    client = InMemoryIndexClient()

    def fake_bulk(es, actions):
        es.documents.extend({"_id": action["_id"], "_source": action["_source"]} for action in actions)
        return len(actions), []

    def fake_scan(es, query, index):
        return iter(es.documents)

    monkeypatch.setattr(cli_search, "settings", replace(cli_search.settings, load_on_startup=True))
    monkeypatch.setattr("gearsearch.es_repository.get_client", lambda: client)
    monkeypatch.setattr("gearsearch.importer.helpers.bulk", fake_bulk)
    monkeypatch.setattr("gearsearch.es_repository.helpers.scan", fake_scan)

    assert main(["--es", "--catalog", str(path), "z6iii"]) == 0

    assert client.created
    assert len(client.documents) == 2
    out = capsys.readouterr().out
    assert "total: 1" in out
    assert "Nikon Z6 III" in out
