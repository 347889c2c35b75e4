"""Tests for the brand vocabulary."""

import json

from gearsearch.brands import compact_token, get_brand_vocabulary, load_brands


def test_compact_token_folds_accents_and_punctuation():
    assert compact_token("Voigtländer") == "voigtlander"
    assert compact_token("7Artisans") == "7artisans"
    assert compact_token(None) == ""


def test_lookup_by_name_slug_and_compact_form(vocabulary):
    assert vocabulary.lookup("SONY") == "sony"
    assert vocabulary.lookup("Voigtländer") == "voigtländer"
    assert vocabulary.lookup("voigtlander") == "voigtlander"
    assert vocabulary.lookup("Fuji-film") == "fujifilm"
    assert vocabulary.lookup("pentax") is None
    assert vocabulary.lookup("") is None


def test_detect_returns_first_brand(vocabulary):
    assert vocabulary.detect(["my", "old", "nikon", "and", "canon"]) == "nikon"
    assert vocabulary.detect(["no", "brands", "here"]) is None


def test_load_brands_skips_blank_rows(tmp_path):
    path = tmp_path / "brands.json"
    path.write_text(json.dumps([{"name": "Leica", "slug": "leica"}, {"name": ""}, {"name": "Phase One"}]), encoding="utf-8")

    brands = load_brands(path)

    assert [(b.name, b.slug) for b in brands] == [("Leica", "leica"), ("Phase One", "phaseone")]


def test_packaged_vocabulary_knows_major_brands():
    vocabulary = get_brand_vocabulary()

    for token in ("canon", "nikon", "sony", "fujifilm", "voigtlander"):
        assert vocabulary.is_brand_token(token), token
