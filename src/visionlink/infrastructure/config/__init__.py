from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, SourcesConfig

__all__ = ["AppConfig", "EnvOverrides", "SourcesConfig", "load_config"]
