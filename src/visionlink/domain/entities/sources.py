"""Validation rule shared by every place a source base URL enters the system."""

from __future__ import annotations

from visionlink.domain.exceptions import StepUrlInvalid


def normalize_base_url(url: str) -> str:
    """Strip whitespace and trailing slashes; reject non-http(s) values."""
    cleaned = url.strip().rstrip("/")
    if not cleaned.startswith(("http://", "https://")):
        raise StepUrlInvalid(f"base URL must be absolute http(s): {url!r}")
    return cleaned
