"""Environment-based configuration using pydantic-settings.

Example:
    >>> from tracelog.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # TRACELOG_LOG_PROJECT_ID=my-project
    # TRACELOG_LOG_SERVICE_NAME=billing
    # TRACELOG_LOG_LEVEL=DEBUG
    # TRACELOG_HTTP_ERROR_STATUS_LEVEL=ERROR
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LevelName = Literal["DEBUG", "INFO", "WARN", "ERROR", "DPANIC", "PANIC", "FATAL"]


def _normalize_level(v: object) -> object:
    if isinstance(v, str):
        v = v.strip().upper()
        return "WARN" if v == "WARNING" else v
    return v


class LoggingSettings(BaseSettings):
    """Logger construction settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_LOG_",
        extra="ignore",
    )

    project_id: str = Field(default="", description="Google Cloud project used to qualify trace IDs")
    service_name: str = Field(default="", description="Value of serviceContext.service")
    level: LevelName = "INFO"
    add_source: bool = True
    development: bool = Field(default=False, description="DPANIC records raise PanicError")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize(cls, v: object) -> object:
        return _normalize_level(v)


class HttpLoggingSettings(BaseSettings):
    """Logging transport settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_HTTP_",
        extra="ignore",
    )

    error_status_level: LevelName = Field(
        default="INFO",
        description="Level for responses with status >= 400",
    )

    @field_validator("error_status_level", mode="before")
    @classmethod
    def _normalize(cls, v: object) -> object:
        return _normalize_level(v)


class SqlLoggingSettings(BaseSettings):
    """SQLAlchemy adapter settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_SQL_",
        extra="ignore",
    )

    level: Literal["SILENT", "ERROR", "WARN", "INFO"] = "WARN"
    slow_threshold_ms: NonNegativeFloat = Field(default=200.0, description="Slow query threshold, 0 disables")
    ignore_record_not_found: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _normalize(cls, v: object) -> object:
        return _normalize_level(v)


class TracelogSettings(BaseSettings):
    """Root settings.

    Loads configuration from environment variables with the TRACELOG_ prefix
    and an optional .env file.

    Example environment variables:
        TRACELOG_LOG_LEVEL=DEBUG
        TRACELOG_SQL_SLOW_THRESHOLD_MS=500
    """

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpLoggingSettings = Field(default_factory=HttpLoggingSettings)
    sql: SqlLoggingSettings = Field(default_factory=SqlLoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> TracelogSettings:
    """Get the global settings instance (cached)."""
    return TracelogSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
