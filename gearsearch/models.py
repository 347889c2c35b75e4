"""Pydantic models for catalog records and search request/response payloads."""
from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

SearchSort = Literal["relevance", "name", "newest", "price_asc", "price_desc"]
LensType = Literal["prime", "zoom"]


class Brand(BaseModel):
    name: str
    slug: str


def first_known(*values: int | None) -> int | None:
    return next((value for value in values if value is not None), None)


class CatalogItem(BaseModel):
    id: str
    name: str
    slug: str = ""
    searchName: str = Field("", description="Search-optimized name with aliases folded in")
    brandName: str | None = None
    mountValue: str | None = None
    gearType: str = ""
    priceCents: int | None = Field(None, description="Current MSRP; used for price sorting")
    launchPriceCents: int | None = None
    usedPriceCents: int | None = Field(None, description="Highest used-market price")
    # Effective prices for range filters; derived from the three prices above when absent.
    priceForMinCents: int | None = None
    priceForMaxCents: int | None = None
    sensorFormat: str | None = Field(None, description="Sensor format slug, e.g. full-frame")
    isPrime: bool | None = None
    resolutionMp: float | None = None
    thumbnailUrl: str | None = None
    releaseDate: date | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @model_validator(mode="after")
    def _fill_derived(self) -> "CatalogItem":
        if not self.searchName:
            self.searchName = self.name
        if self.priceForMinCents is None:
            self.priceForMinCents = first_known(self.priceCents, self.launchPriceCents, self.usedPriceCents)
        if self.priceForMaxCents is None:
            self.priceForMaxCents = first_known(self.priceCents, self.usedPriceCents, self.launchPriceCents)
        return self


class SearchFilters(BaseModel):
    brand: str | None = None
    mount: str | None = None
    gearType: str | None = None
    priceMin: float | None = Field(None, ge=0, description="Lower price bound in whole currency units")
    priceMax: float | None = Field(None, ge=0, description="Upper price bound in whole currency units")
    sensorFormat: str | None = Field(None, description="Sensor format slug")
    lensType: LensType | None = None
    megapixelsMin: float | None = Field(None, ge=0)
    megapixelsMax: float | None = Field(None, ge=0)


class SearchQuery(BaseModel):
    query: str | None = Field(None, description="Free-text gear query")
    sort: SearchSort = "relevance"
    page: int = Field(1, ge=1)
    pageSize: int = Field(24, ge=1)
    filters: SearchFilters | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.query and self.query.strip())


class SearchResult(BaseModel):
    id: str
    name: str
    slug: str = ""
    searchName: str = ""
    brandName: str | None = None
    mountValue: str | None = None
    gearType: str = ""
    thumbnailUrl: str | None = None
    priceCents: int | None = None
    launchPriceCents: int | None = None
    usedPriceCents: int | None = None
    releaseDate: date | None = None
    relevance: float | None = None

    @classmethod
    def from_item(cls, item: CatalogItem, relevance: float | None = None) -> "SearchResult":
        return cls(**item.model_dump(), relevance=relevance)


class SearchResponse(BaseModel):
    results: list[SearchResult]
    total: int
    totalPages: int
    page: int
    pageSize: int


class Suggestion(BaseModel):
    id: str
    label: str
    href: str
    type: Literal["gear", "brand"]
    relevance: float | None = None


class ResolveResult(BaseModel):
    ok: bool
    code: Literal["EMPTY_MESSAGE", "NO_CANDIDATES", "NOT_FOUND"] | None = None
    item: SearchResult | None = None
    tried: list[str] = Field(default_factory=list)
    usedQuery: str | None = None
