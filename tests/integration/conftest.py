"""Shared fixtures for integration tests.

These tests exercise the real configuration loader against files in
tmp_path and a scrubbed process environment.
"""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _clean_visionlink_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove any VISIONLINK_* variables leaking in from the host."""
    for key in list(os.environ):
        if key.upper().startswith("VISIONLINK_"):
            monkeypatch.delenv(key, raising=False)
