"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from visionlink.domain.entities.sources import normalize_base_url
from visionlink.domain.exceptions import StepUrlInvalid
from visionlink.infrastructure.probing.matchers import DEFAULT_USER_AGENT

from .defaults import (
    DEFAULT_SESSION_MAX_ENTRIES,
    DEFAULT_SESSION_RETENTION_SECONDS,
    DEFAULT_SOURCE1_URL,
    DEFAULT_SOURCE2_URL,
    DEFAULT_SOURCE3_URL,
)

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class SourcesConfig(BaseModel):
    """Base hosts of the three scrapable sources (YAML section: sources.*)."""

    source1_url: str = Field(
        default=DEFAULT_SOURCE1_URL,
        description="Catalogue site, probed first.",
    )
    source2_url: str = Field(
        default=DEFAULT_SOURCE2_URL,
        description="Episode-search site, probed second.",
    )
    source3_url: str = Field(
        default=DEFAULT_SOURCE3_URL,
        description="Site with a query-string search, probed third.",
    )

    @field_validator("source1_url", "source2_url", "source3_url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        try:
            return normalize_base_url(v)
        except StepUrlInvalid as exc:
            raise ValueError(str(exc)) from exc


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned
      (sources/playwright/probe/http/sessions/tmdb/player/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="visionlink", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Sources (YAML section: sources.*)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)

    # Playwright (YAML section: playwright.*)
    playwright_headless: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_headless",
            AliasPath("playwright", "headless"),
        ),
        description="Run Chromium headless.",
    )
    playwright_timeout_ms: int = Field(
        default=30_000,
        validation_alias=AliasChoices(
            "playwright_timeout_ms",
            AliasPath("playwright", "timeout_ms"),
        ),
        description="Navigation timeout in milliseconds.",
    )
    playwright_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "playwright_user_agent",
            AliasPath("playwright", "user_agent"),
        ),
        description="User-Agent presented by probe pages.",
    )
    playwright_stealth: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "playwright_stealth",
            AliasPath("playwright", "stealth"),
        ),
        description="Apply playwright-stealth evasions to probe contexts.",
    )

    # Probe (YAML section: probe.*)
    probe_timeout_seconds: float = Field(
        default=60.0,
        validation_alias=AliasChoices(
            "probe_timeout_seconds",
            AliasPath("probe", "timeout_seconds"),
        ),
        description="Overall deadline of a single probe (load + DOM polling).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for metadata lookups.",
    )

    # Sessions (YAML section: sessions.*)
    session_retention_seconds: float = Field(
        default=DEFAULT_SESSION_RETENTION_SECONDS,
        validation_alias=AliasChoices(
            "session_retention_seconds",
            AliasPath("sessions", "retention_seconds"),
        ),
        description="How long a finished HTTP session stays readable.",
    )
    session_max_entries: int = Field(
        default=DEFAULT_SESSION_MAX_ENTRIES,
        validation_alias=AliasChoices(
            "session_max_entries",
            AliasPath("sessions", "max_entries"),
        ),
        description="Finished sessions are evicted oldest-first above this count.",
    )

    # TMDB (YAML section: tmdb.*)
    tmdb_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("tmdb", "api_key"),
        ),
        description="TMDB API key for title search and episode listings.",
    )
    tmdb_language: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_language",
            AliasPath("tmdb", "language"),
        ),
        description="TMDB response language (e.g. 'fr-FR'). Unset = TMDB default.",
    )

    # Player (YAML section: player.*)
    player_command: str = Field(
        default="mpv",
        validation_alias=AliasChoices(
            "player_command",
            AliasPath("player", "command"),
        ),
        description="Executable that receives the resolved video URL.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("playwright_timeout_ms")
    @classmethod
    def _validate_playwright_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("playwright_timeout_ms must be > 0")
        return v

    @field_validator("session_max_entries")
    @classmethod
    def _validate_max_entries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("session_max_entries must be >= 1")
        return v

    @field_validator(
        "probe_timeout_seconds", "http_timeout_seconds", "session_retention_seconds"
    )
    @classmethod
    def _validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "sources": self.sources.model_dump(),
            "playwright": {
                "headless": self.playwright_headless,
                "timeout_ms": self.playwright_timeout_ms,
                "user_agent": self.playwright_user_agent,
                "stealth": self.playwright_stealth,
            },
            "probe": {"timeout_seconds": self.probe_timeout_seconds},
            "http": {"timeout_seconds": self.http_timeout_seconds},
            "sessions": {
                "retention_seconds": self.session_retention_seconds,
                "max_entries": self.session_max_entries,
            },
            "tmdb": {"language": self.tmdb_language},
            "player": {"command": self.player_command},
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - VISIONLINK_SOURCE1_URL
    - VISIONLINK_PLAYWRIGHT_HEADLESS
    - VISIONLINK_TMDB_API_KEY
    - VISIONLINK_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="VISIONLINK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    source1_url: Optional[str] = None
    source2_url: Optional[str] = None
    source3_url: Optional[str] = None

    playwright_headless: Optional[bool] = None
    playwright_timeout_ms: Optional[int] = None
    playwright_user_agent: Optional[str] = None
    playwright_stealth: Optional[bool] = None

    probe_timeout_seconds: Optional[float] = None
    http_timeout_seconds: Optional[float] = None

    session_retention_seconds: Optional[float] = None
    session_max_entries: Optional[int] = None

    tmdb_api_key: Optional[str] = None
    tmdb_language: Optional[str] = None

    player_command: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
