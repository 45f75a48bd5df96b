"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_SOURCE1_URL = "https://anime-sama.fr"
DEFAULT_SOURCE2_URL = "https://vostfree.tv"
DEFAULT_SOURCE3_URL = "https://www.adkami.com"

DEFAULT_SESSION_RETENTION_SECONDS = 300.0
DEFAULT_SESSION_MAX_ENTRIES = 256

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "visionlink",
    "environment": "dev",
    "sources": {
        "source1_url": DEFAULT_SOURCE1_URL,
        "source2_url": DEFAULT_SOURCE2_URL,
        "source3_url": DEFAULT_SOURCE3_URL,
    },
    "playwright": {
        "headless": True,
        "timeout_ms": 30_000,
        "stealth": False,
    },
    "probe": {
        "timeout_seconds": 60.0,
    },
    "http": {
        "timeout_seconds": 15.0,
    },
    "sessions": {
        "retention_seconds": DEFAULT_SESSION_RETENTION_SECONDS,
        "max_entries": DEFAULT_SESSION_MAX_ENTRIES,
    },
    "tmdb": {
        "api_key": None,
        "language": None,
    },
    "player": {
        "command": "mpv",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
