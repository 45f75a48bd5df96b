from __future__ import annotations

from collections.abc import Iterator
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS: frozenset[str] = frozenset({"app_name", "environment"})

# Flat key (env / CLI spelling) -> (section, key inside section)
_FLAT_MAP: dict[str, tuple[str, str]] = {
    "source1_url": ("sources", "source1_url"),
    "source2_url": ("sources", "source2_url"),
    "source3_url": ("sources", "source3_url"),
    "playwright_headless": ("playwright", "headless"),
    "playwright_timeout_ms": ("playwright", "timeout_ms"),
    "playwright_user_agent": ("playwright", "user_agent"),
    "playwright_stealth": ("playwright", "stealth"),
    "probe_timeout_seconds": ("probe", "timeout_seconds"),
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "session_retention_seconds": ("sessions", "retention_seconds"),
    "session_max_entries": ("sessions", "max_entries"),
    "tmdb_api_key": ("tmdb", "api_key"),
    "tmdb_language": ("tmdb", "language"),
    "player_command": ("player", "command"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}

_SECTIONS: frozenset[str] = frozenset(section for section, _ in _FLAT_MAP.values())


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Overlay *layer* onto *target* in place; nested mappings merge key by key."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring one layer into the sectioned shape AppConfig validates.

    Section blocks (``sources: {...}``) are copied, flat spellings such as
    ``source1_url`` or ``log_level`` are moved into their section, unknown
    keys are dropped.
    """
    out: dict[str, Any] = {k: data[k] for k in _TOP_LEVEL_KEYS if k in data}
    for section in _SECTIONS:
        block = data.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)
    for flat_key, (section, key) in _FLAT_MAP.items():
        if flat_key in data:
            out.setdefault(section, {})[key] = data[flat_key]
    return out


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(_require_file(config_path).read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _drop_unset(layer: dict[str, Any]) -> dict[str, Any]:
    # Default sections carry explicit Nones (e.g. tmdb.api_key); an unset
    # value must not shadow the model default.
    return {
        key: _drop_unset(value) if isinstance(value, dict) else value
        for key, value in layer.items()
        if value is not None
    }


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterator[Mapping[str, Any]]:
    """Yield raw layers from lowest to highest precedence."""
    yield deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        yield _read_yaml_config(config_path)
    yield EnvOverrides().to_update_dict()
    yield cli_overrides


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated AppConfig from defaults < YAML < env < CLI.

    A ``.env`` file is loaded into the process environment first (existing
    variables win) and therefore counts as the env layer. Nothing is
    written to disk.
    """
    if dotenv_path is not None:
        load_dotenv(_require_file(dotenv_path), override=False)

    merged: dict[str, Any] = {}
    for layer in _layers(config_path, cli_overrides or {}):
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(_drop_unset(merged))
