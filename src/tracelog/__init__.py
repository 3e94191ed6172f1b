"""tracelog - Structured JSON logging for Google Cloud Logging.

Writes one JSON line per record in the Cloud Logging structured format, with
trace/span IDs taken from the active OpenTelemetry context, stack traces on
WARN and above, and PANIC/FATAL levels that stop the caller after logging.

Quick Start:
    >>> from tracelog import LoggerConfig, new_logger, attrs
    >>>
    >>> log = new_logger(LoggerConfig(project_id="my-project", service_name="billing"))
    >>> log.info("invoice created", attrs.string("invoice_id", "inv_1"), attrs.label("team", "payments"))

From the environment (TRACELOG_LOG_*):
    >>> from tracelog import configure_logging
    >>> log = configure_logging()

Ambient fields:
    >>> from tracelog import log_fields
    >>> with log_fields(request_id="r-42"):
    ...     log.info("handled")   # carries request_id

Masking PII before logging:
    >>> from tracelog import mask_pii
    >>> log.info(mask_pii("call +46701234567"))

Outbound HTTP:
    >>> import httpx
    >>> from tracelog import LoggingTransport
    >>> client = httpx.Client(transport=LoggingTransport(None, log))

Adapters for SQLAlchemy, message routers and the `logging` module live in
`tracelog.integrations`.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Core
from .core import (
    LABELS_KEY,
    Attr,
    FanoutHandler,
    Handler,
    JsonHandler,
    Kind,
    Level,
    MemoryHandler,
    Record,
    SourceLocation,
    attrs,
    severity_name,
)

# Errors
from .foundation.errors import ConfigurationError, PanicError, TracelogError

# Settings
from .foundation.config import TracelogSettings, clear_settings_cache, get_settings

# Masking
from .masking import is_date_like, mask_attr, mask_email, mask_phone, mask_pii, mask_ssn, mask_string

# Runtime
from .runtime import (
    ContextLogger,
    Logger,
    LoggerConfig,
    SpanContextHandler,
    configure_logging,
    context_with_fields,
    context_with_logger,
    fields_from_context,
    log_fields,
    logger_from_context,
    new_logger,
)

# HTTP
from .io.http import AsyncLoggingTransport, LoggingOptions, LoggingTransport

__all__ = [
    "__version__",
    # Logger
    "Logger", "ContextLogger", "LoggerConfig", "new_logger", "configure_logging",
    # Context
    "context_with_logger", "logger_from_context", "context_with_fields", "fields_from_context", "log_fields",
    # Core
    "attrs", "Attr", "Kind", "LABELS_KEY", "Level", "severity_name", "Record", "SourceLocation",
    "Handler", "JsonHandler", "MemoryHandler", "FanoutHandler", "SpanContextHandler",
    # Masking
    "mask_phone", "mask_email", "mask_ssn", "mask_string", "mask_pii", "mask_attr", "is_date_like",
    # HTTP
    "LoggingTransport", "AsyncLoggingTransport", "LoggingOptions",
    # Settings
    "TracelogSettings", "get_settings", "clear_settings_cache",
    # Errors
    "TracelogError", "PanicError", "ConfigurationError",
]
