"""Configuration management using pydantic-settings."""

from .settings import (
    HttpLoggingSettings,
    LoggingSettings,
    SqlLoggingSettings,
    TracelogSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "HttpLoggingSettings",
    "LoggingSettings",
    "SqlLoggingSettings",
    "TracelogSettings",
    "clear_settings_cache",
    "get_settings",
]
