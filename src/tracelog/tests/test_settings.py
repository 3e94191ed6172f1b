"""Tests for environment-based settings."""

from __future__ import annotations

import io
from collections.abc import Iterator

import orjson
import pytest
from pydantic import ValidationError

from tracelog import configure_logging
from tracelog.core import Level
from tracelog.foundation.config import (
    HttpLoggingSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)
from tracelog.io.http import LoggingOptions
from tracelog.runtime import LoggerConfig


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Reset cached settings around each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    settings = LoggingSettings()
    assert settings.level == "INFO"
    assert settings.add_source is True
    assert settings.development is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACELOG_LOG_PROJECT_ID", "my-project")
    monkeypatch.setenv("TRACELOG_LOG_LEVEL", "warning")
    monkeypatch.setenv("TRACELOG_SQL_SLOW_THRESHOLD_MS", "500")

    settings = get_settings()
    assert settings.logging.project_id == "my-project"
    assert settings.logging.level == "WARN"
    assert settings.sql.slow_threshold_ms == 500
    assert get_settings() is settings


def test_invalid_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACELOG_LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError):
        LoggingSettings()


def test_logger_config_from_settings() -> None:
    config = LoggerConfig.from_settings(LoggingSettings(level="debug", service_name="billing", development=True))
    assert config.min_level is Level.DEBUG
    assert config.service_name == "billing"
    assert config.development is True


def test_logging_options_from_settings() -> None:
    options = LoggingOptions.from_settings(HttpLoggingSettings(error_status_level="error"))
    assert options.error_status_level is Level.ERROR


def test_configure_logging_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACELOG_LOG_SERVICE_NAME", "billing")
    buf = io.StringIO()
    log = configure_logging(output=buf)
    log.info("ready")

    out = orjson.loads(buf.getvalue())
    assert out["serviceContext"] == {"service": "billing"}
    assert out["severity"] == "INFO"
