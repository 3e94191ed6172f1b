"""Logging transports for httpx clients."""

from .transport import (
    CONTEXT_EXTENSION,
    FAILURE_MESSAGE,
    HTTP_STATUS_CODE_LABEL,
    LOG_TYPE_EXTERNAL_REQUEST,
    LOG_TYPE_LABEL,
    SUCCESS_MESSAGE,
    AsyncLoggingTransport,
    LoggingOptions,
    LoggingTransport,
    dump_request,
    dump_response,
)

__all__ = [
    "LoggingTransport", "AsyncLoggingTransport", "LoggingOptions", "dump_request", "dump_response",
    "CONTEXT_EXTENSION", "LOG_TYPE_LABEL", "LOG_TYPE_EXTERNAL_REQUEST", "HTTP_STATUS_CODE_LABEL",
    "SUCCESS_MESSAGE", "FAILURE_MESSAGE",
]
