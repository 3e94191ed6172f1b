"""Severity levels and their Cloud Logging names.

Levels are spaced apart so custom in-between values still order
correctly. DPANIC, PANIC and FATAL sit above ERROR and carry side effects in
the logger facade (see tracelog.runtime.logger).
"""

from __future__ import annotations

from enum import IntEnum

from tracelog.foundation.errors import ConfigurationError


class Level(IntEnum):
    """Logging priority. Higher levels are more important."""

    DEBUG = -4    # voluminous, usually disabled in production
    INFO = 0      # default priority
    WARN = 4      # important, no individual review needed
    ERROR = 8     # high priority, a healthy service emits none
    DPANIC = 9    # particularly important errors, panics in development
    PANIC = 16    # logs, then raises PanicError
    FATAL = 32    # logs, then exits the process

    @classmethod
    def parse(cls, name: str | int | Level) -> Level:
        """Parse a level name (case-insensitive, WARNING accepted) or number."""
        try:
            if isinstance(name, int):
                return cls(name)
            key = name.strip().upper()
            return _ALIASES.get(key) or cls[key]
        except (KeyError, ValueError):
            raise ConfigurationError(f"Unknown log level: {name!r}") from None


_ALIASES: dict[str, Level] = {"WARNING": Level.WARN, "CRITICAL": Level.PANIC}

# https://cloud.google.com/logging/docs/reference/v2/rest/v2/LogEntry#LogSeverity
_SEVERITY: dict[int, str] = {
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO",
    Level.WARN: "WARNING",
    Level.ERROR: "ERROR",
    Level.DPANIC: "ERROR",
    Level.PANIC: "CRITICAL",
    Level.FATAL: "EMERGENCY",
}

# Base names for levels without an exact match, rendered as offsets ("INFO+2")
_BASES: tuple[tuple[int, str], ...] = (
    (Level.ERROR, "ERROR"),
    (Level.WARN, "WARN"),
    (Level.INFO, "INFO"),
    (Level.DEBUG, "DEBUG"),
)


def severity_name(level: int) -> str:
    """Map a level to the Cloud Logging severity vocabulary."""
    if (name := _SEVERITY.get(level)) is not None:
        return name
    for base, label in _BASES:
        if level >= base:
            return f"{label}+{level - base}"
    return f"DEBUG{level - Level.DEBUG}"
