"""Exceptions raised by the logging facade.

Logging itself never fails on bad field values (see tracelog.core.attrs.proto).
The exceptions here cover the two intentional outcomes that must reach the
caller and misconfiguration detected while building a logger.
"""

from __future__ import annotations


class TracelogError(Exception):
    """Base class for all tracelog errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PanicError(TracelogError):
    """Raised after a record is written at PANIC level.

    Must unwind the caller's stack; never caught inside tracelog.
    """


class ConfigurationError(TracelogError, ValueError):
    """Invalid logger configuration (e.g. an unknown level name)."""
