"""Helpers for reading dataset sources that may be local paths or URLs."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


def is_url(source: str | Path) -> bool:
    text = str(source)
    return text.startswith("http://") or text.startswith("https://")


def read_json_source(source: str | Path, *, timeout: float = DEFAULT_TIMEOUT_S) -> object:
    """Load a JSON document from a file path or an http(s) URL."""
    if is_url(source):
        logger.debug("Fetching JSON from %s", source)
        response = requests.get(str(source), timeout=timeout)
        response.raise_for_status()
        return response.json()
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"JSON source not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def open_csv_source(source: str | Path, *, timeout: float = DEFAULT_TIMEOUT_S) -> str | io.StringIO:
    """Return something ``pd.read_csv`` accepts for a CSV path or http(s) URL.

    URLs are fetched through requests so both datasets share the same timeout
    and HTTP error handling.
    """
    if is_url(source):
        logger.debug("Fetching CSV from %s", source)
        response = requests.get(str(source), timeout=timeout)
        response.raise_for_status()
        return io.StringIO(response.text)
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"CSV source not found at {path}")
    return str(path)
