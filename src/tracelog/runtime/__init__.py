"""Runtime: logger facade, context binders and the trace-context decorator."""

from .context import (
    context_with_fields,
    context_with_logger,
    fields_from_context,
    log_fields,
    logger_from_context,
)
from .decorator import (
    SPAN_ID_KEY,
    STACK_SKIP_PREFIXES,
    STACKTRACE_KEY,
    TRACE_KEY,
    TRACE_SAMPLED_KEY,
    SpanContextHandler,
    capture_stack,
    cloud_replace_attr,
    trim_stack,
)
from .logger import ContextLogger, Logger, LoggerConfig, configure_logging, new_logger

__all__ = [
    # Logger
    "Logger", "ContextLogger", "LoggerConfig", "new_logger", "configure_logging",
    # Context
    "context_with_logger", "logger_from_context", "context_with_fields", "fields_from_context", "log_fields",
    # Decorator
    "SpanContextHandler", "cloud_replace_attr", "capture_stack", "trim_stack",
    "TRACE_KEY", "SPAN_ID_KEY", "TRACE_SAMPLED_KEY", "STACKTRACE_KEY", "STACK_SKIP_PREFIXES",
]
