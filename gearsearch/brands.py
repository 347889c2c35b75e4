"""Brand vocabulary used for brand detection and brand-agnostic matching."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence

from unidecode import unidecode

from .config import settings
from .data_files import load_json_records
from .models import Brand

logger = logging.getLogger(__name__)

_NON_ALPHA_RE = re.compile(r"[^a-z]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def compact_token(raw: str | None) -> str:
    """Lowercase, fold accents and drop everything but ascii letters and digits."""
    if not raw:
        return ""
    return _NON_ALNUM_RE.sub("", unidecode(raw).lower())


def _word_parts(text: str) -> Iterable[str]:
    for part in _NON_ALPHA_RE.split(unidecode(text)):
        if part:
            yield part


@dataclass(frozen=True)
class BrandVocabulary:
    """Immutable lookup table of brand tokens.

    ``tokens`` holds lowercased names, slugs and every alphabetic word of a
    name; ``compact`` holds the punctuation-stripped forms of names and slugs.
    """

    brands: tuple[Brand, ...]
    tokens: frozenset[str]
    compact: frozenset[str]

    @classmethod
    def from_brands(cls, brands: Sequence[Brand]) -> "BrandVocabulary":
        tokens: set[str] = set()
        compact: set[str] = set()
        for brand in brands:
            name = (brand.name or "").strip().lower()
            slug = (brand.slug or "").strip().lower()
            if name:
                tokens.add(name)
                tokens.update(_word_parts(name))
                compact.add(compact_token(name))
            if slug:
                tokens.add(slug)
                compact.add(compact_token(slug))
        compact.discard("")
        return cls(brands=tuple(brands), tokens=frozenset(tokens), compact=frozenset(compact))

    def lookup(self, token: str) -> str | None:
        """Return the vocabulary form ``token`` matched under, if any."""
        lower = (token or "").lower()
        if not lower:
            return None
        if lower in self.tokens or lower in self.compact:
            return lower
        squeezed = compact_token(lower)
        if squeezed and (squeezed in self.compact or squeezed in self.tokens):
            return squeezed
        return None

    def is_brand_token(self, token: str) -> bool:
        return self.lookup(token) is not None

    def detect(self, tokens: Iterable[str]) -> str | None:
        """First brand hit in left-to-right token order."""
        for token in tokens:
            hit = self.lookup(token)
            if hit:
                return hit
        return None


def load_brands(path: str | Path | None = None, source_url: str | None = None) -> list[Brand]:
    records = load_json_records(path or settings.brands_path, source_url or settings.brands_source_url or None)
    brands: list[Brand] = []
    for record in records:
        name = str(record.get("name") or "").strip()
        slug = str(record.get("slug") or "").strip()
        if not name and not slug:
            continue
        brands.append(Brand(name=name or slug, slug=slug or compact_token(name)))
    return brands


@lru_cache(maxsize=1)
def get_brand_vocabulary() -> BrandVocabulary:
    vocabulary = BrandVocabulary.from_brands(load_brands())
    logger.info(
        "Initialized brand vocabulary with %s brands, %s tokens and %s compact forms",
        len(vocabulary.brands),
        len(vocabulary.tokens),
        len(vocabulary.compact),
    )
    return vocabulary
