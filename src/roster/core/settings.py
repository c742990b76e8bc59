"""Settings for roster.

Configuration is explicit, validated and environment-driven: every field can
be set through a ``ROSTER_*`` environment variable or a ``.env`` file.

Examples:
    >>> from roster.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.cache_key
    'managementAppUsers'

Tags:
    settings, configuration, pydantic, environment, roster

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .logging import LEVELS


class CacheBackendKind(str, Enum):
    """Where the collection snapshot is persisted."""

    FILE = "file"
    MEMORY = "memory"
    REDIS = "redis"


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class RosterSettings(BaseSettings):
    """Roster configuration.

    Fields
    ──────
    api_base_url     : Root URL of the remote directory (``/users`` is appended)
    request_timeout  : Per-request timeout in seconds (``None`` disables it)
    cache_backend    : Snapshot backend (file / memory / redis)
    data_dir         : Directory holding file-backend snapshots
    cache_key        : Name of the snapshot slot
    redis_url        : Redis connection URL for the redis backend
    username_prefix  : Prefix for usernames derived from names
    log_level        : Structlog log level
    log_format       : console or json
    """

    model_config = SettingsConfigDict(
        env_prefix="ROSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Remote directory ─────────────────────────────────────────
    api_base_url: str = Field(default="https://jsonplaceholder.typicode.com")
    request_timeout: float | None = Field(default=10.0, gt=0)

    # ── Snapshot ─────────────────────────────────────────────────
    cache_backend: CacheBackendKind = Field(default=CacheBackendKind.FILE)
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".roster",
        description="Directory holding file-backend snapshots",
    )
    cache_key: str = Field(default="managementAppUsers", min_length=1)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # ── Engine ───────────────────────────────────────────────────
    username_prefix: str = Field(default="USER-")

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="WARNING")
    log_format: LogFormat = Field(default=LogFormat.CONSOLE)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> RosterSettings:
    """Load, validate and cache the process-wide settings.

    Raises:
        ConfigError: If an environment value fails validation.
    """
    try:
        return RosterSettings()
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid roster settings ({exc.error_count()} error(s)): {exc}", cause=exc
        ) from exc


def clear_settings_cache() -> None:
    """Drop the cached settings (tests and ``--reload`` style callers)."""
    get_settings.cache_clear()


__all__ = [
    "CacheBackendKind",
    "LogFormat",
    "RosterSettings",
    "get_settings",
    "clear_settings_cache",
]
