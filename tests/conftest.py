"""Shared fixtures: a small gear catalog and a fixed brand vocabulary."""
from __future__ import annotations

from datetime import date

import pytest

from gearsearch.brands import BrandVocabulary
from gearsearch.models import Brand, CatalogItem
from gearsearch.repository import InMemoryCatalogRepository
from gearsearch.search import SearchEngine


def make_item(item_id: str, name: str, brand: str | None = None, **extra) -> CatalogItem:
    slug = name.lower().replace(" ", "-")
    return CatalogItem(id=item_id, name=name, slug=slug, brandName=brand, **extra)


@pytest.fixture
def vocabulary() -> BrandVocabulary:
    return BrandVocabulary.from_brands(
        [
            Brand(name="Canon", slug="canon"),
            Brand(name="Nikon", slug="nikon"),
            Brand(name="Sony", slug="sony"),
            Brand(name="Fujifilm", slug="fujifilm"),
            Brand(name="Sigma", slug="sigma"),
            Brand(name="Voigtländer", slug="voigtlander"),
        ]
    )


@pytest.fixture
def catalog() -> list[CatalogItem]:
    return [
        make_item("z6iii", "Nikon Z6 III", "Nikon", gearType="camera", mountValue="Nikon Z",
                  priceCents=249995, releaseDate=date(2024, 6, 17), sensorFormat="full-frame", resolutionMp=24.5),
        make_item("z6ii", "Nikon Z6II", "Nikon", gearType="camera", mountValue="Nikon Z",
                  priceCents=199995, releaseDate=date(2020, 10, 14), sensorFormat="full-frame", resolutionMp=24.5),
        make_item("a7iv", "Sony a7 IV", "Sony", gearType="camera", mountValue="Sony E",
                  priceCents=249800, releaseDate=date(2021, 10, 21), sensorFormat="full-frame", resolutionMp=33.0),
        make_item("fe70200", "Sony FE 70-200mm F2.8 GM OSS II", "Sony", gearType="lens", mountValue="Sony E",
                  priceCents=279800, releaseDate=date(2021, 10, 26), isPrime=False),
        make_item("rf70200", "Canon RF 70-200mm F2.8 L IS USM", "Canon", gearType="lens", mountValue="Canon RF",
                  priceCents=279900, releaseDate=date(2019, 10, 24), isPrime=False),
        make_item("r6ii", "Canon EOS R6 Mark II", "Canon", gearType="camera", mountValue="Canon RF",
                  releaseDate=date(2022, 11, 2), sensorFormat="full-frame", resolutionMp=24.2),
        make_item("x100vi", "Fujifilm X100VI", "Fujifilm", gearType="camera",
                  priceCents=159900, releaseDate=date(2024, 2, 20), sensorFormat="aps-c", isPrime=True,
                  resolutionMp=40.2),
        make_item("sigma2470", "Sigma 24-70mm F2.8 DG DN Art", "Sigma", gearType="lens", mountValue="Sony E",
                  priceCents=109900, isPrime=False),
    ]


@pytest.fixture
def repository(catalog) -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository(catalog)


@pytest.fixture
def engine(repository, vocabulary) -> SearchEngine:
    return SearchEngine(repository, vocabulary=vocabulary)
