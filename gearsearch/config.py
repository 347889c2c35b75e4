"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DATA_DIR = Path(__file__).resolve().parent / "data"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "gear")
    mapping_path: str = _get_env("MAPPING_PATH", str(DATA_DIR / "gear-mapping.json"))
    catalog_path: str = _get_env("CATALOG_PATH", "catalog.json")
    brands_path: str = _get_env("BRANDS_PATH", str(DATA_DIR / "brands.json"))
    brands_source_url: str = _get_env("BRANDS_SOURCE_URL", "")
    similarity_backend: str = _get_env("SIMILARITY_BACKEND", "trigram")
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    default_page_size: int = int(_get_env("DEFAULT_PAGE_SIZE", "24"))
    # Empirically tuned gates for the fuzzy arms of the match predicate.
    brand_agnostic_similarity: float = float(_get_env("MATCH_BRAND_AGNOSTIC_SIMILARITY", "0.4"))
    normalized_similarity: float = float(_get_env("MATCH_NORMALIZED_SIMILARITY", "0.5"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
