"""Helpers for locating and reading the static JSON data files.

The brand vocabulary and the catalog dump are plain JSON arrays shipped next to
the code (or fetched once from a URL when the deployment provides one).
"""
from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any
from urllib.error import URLError
from urllib.request import urlopen

logger = logging.getLogger(__name__)

LFS_POINTER_PREFIX = "version https://git-lfs.github.com/spec/v1"


def ensure_data_file(path: str | Path, source_url: str | None = None) -> Path:
    """Return ``path`` as a Path, downloading it first when missing and a URL is known."""
    file_path = Path(path)
    if file_path.exists():
        return file_path
    if not source_url:
        raise FileNotFoundError(f"Data file {file_path} is missing and no download URL is configured")
    logger.info("Fetching %s from %s", file_path, source_url)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with urlopen(source_url) as response, file_path.open("wb") as handle:
            shutil.copyfileobj(response, handle)
    except (OSError, URLError) as exc:
        raise RuntimeError(f"Failed to download {source_url} -> {file_path}") from exc
    return file_path


def load_json_records(path: str | Path, source_url: str | None = None) -> list[dict[str, Any]]:
    """Read a JSON array of objects.

    A Git LFS pointer checked out in place of the real file yields an empty
    list with a warning instead of a decode error.
    """
    file_path = ensure_data_file(path, source_url)
    with file_path.open("r", encoding="utf-8") as fh:
        first_line = fh.readline()
        if first_line.startswith(LFS_POINTER_PREFIX):
            logger.warning("%s is a Git LFS pointer; real data not downloaded", file_path)
            return []
        fh.seek(0)
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"{file_path} must contain a JSON array, got {type(payload).__name__}")
    return [item for item in payload if isinstance(item, dict)]
