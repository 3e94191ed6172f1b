"""Context-scoped structured logger for Cloud Logging.

Records are written as JSON lines in the Cloud Logging structured format,
enriched with the trace context of the call and with ambient fields bound to
that context.

Quick Start:
    >>> from tracelog import LoggerConfig, new_logger, attrs
    >>>
    >>> log = new_logger(LoggerConfig(project_id="my-project", service_name="billing"))
    >>> log.info("invoice created", attrs.string("invoice_id", "inv_1"), amount=120)

    >>> # Bind permanent fields (returns a new logger)
    >>> log = log.bind(region="eu-north-1")

    >>> # Bind to a context: trace IDs and ambient fields are read from it
    >>> clog = log.with_context(ctx)
    >>> clog.warning("retrying", attempt=2)

PANIC and FATAL are irreversible: `panic` raises PanicError after the record
is written, `fatal` flushes the output and ends the process immediately.
"""

from __future__ import annotations

import os
import sys
import traceback
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, NoReturn, TextIO

from opentelemetry import context as otel_context

from tracelog.core import attrs as a
from tracelog.core.attrs import Attr, from_fields
from tracelog.core.handler import Handler, JsonHandler, flush_handler
from tracelog.core.levels import Level
from tracelog.core.record import Record
from tracelog.foundation.errors import PanicError

from .decorator import SpanContextHandler, cloud_replace_attr, find_caller

if TYPE_CHECKING:
    from opentelemetry.context import Context

    from tracelog.foundation.config import LoggingSettings


@dataclass(slots=True)
class LoggerConfig:
    """Settings for `new_logger`.

    Attributes:
        project_id: Google Cloud project for qualified trace IDs (optional)
        service_name: Reported as serviceContext.service on every record
        min_level: Records below this level are dropped before any work
        output: Destination stream, defaults to sys.stdout
        add_source: Include the caller's source location
        development: DPANIC records raise PanicError
    """

    project_id: str = ""
    service_name: str = ""
    min_level: Level = Level.INFO
    output: TextIO | None = None
    add_source: bool = True
    development: bool = False

    @classmethod
    def from_settings(cls, settings: LoggingSettings, output: TextIO | None = None) -> LoggerConfig:
        return cls(
            project_id=settings.project_id,
            service_name=settings.service_name,
            min_level=Level.parse(settings.level),
            output=output,
            add_source=settings.add_source,
            development=settings.development,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Logger:
    """Leveled logger over a Handler. Immutable: bind() returns a new logger.

    Every leveled method takes call-site attributes positionally, dynamic
    fields as keywords, and an optional `ctx` (defaults to the current
    OpenTelemetry context).
    """

    handler: Handler
    development: bool = False

    def bind(self, *attrs: Attr, **fields: object) -> Logger:
        """Create new logger with additional permanent attributes."""
        added = [*attrs, *from_fields(fields)]
        return replace(self, handler=self.handler.with_attrs(added)) if added else self

    def with_group(self, name: str) -> Logger:
        """Create new logger whose subsequent attributes nest under name."""
        return replace(self, handler=self.handler.with_group(name))

    def with_context(self, ctx: Context, *attrs: Attr, **fields: object) -> ContextLogger:
        """Pair this logger (plus extra attributes) with a fixed context."""
        return ContextLogger(ctx, self.bind(*attrs, **fields))

    def enabled(self, level: int, ctx: Context | None = None) -> bool:
        return self.handler.enabled(otel_context.get_current() if ctx is None else ctx, level)

    def log(self, level: int, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        self._log(level, msg, attrs, fields, ctx)

    def debug(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        self._log(Level.DEBUG, msg, attrs, fields, ctx)

    def info(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        self._log(Level.INFO, msg, attrs, fields, ctx)

    def warning(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        self._log(Level.WARN, msg, attrs, fields, ctx)

    def error(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        self._log(Level.ERROR, msg, attrs, fields, ctx)

    def exception(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        """Log at ERROR with the exception currently being handled."""
        if (exc := sys.exc_info()[1]) is not None:
            attrs = (*attrs, a.error(exc), a.string("exc_info", traceback.format_exc()))
        self._log(Level.ERROR, msg, attrs, fields, ctx)

    def dpanic(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> None:
        """Log at DPANIC; in development mode, then raise PanicError."""
        self._log(Level.DPANIC, msg, attrs, fields, ctx)
        if self.development:
            raise PanicError(msg)

    def panic(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> NoReturn:
        """Log at PANIC, then raise PanicError."""
        self._log(Level.PANIC, msg, attrs, fields, ctx)
        raise PanicError(msg)

    def fatal(self, msg: str, *attrs: Attr, ctx: Context | None = None, **fields: object) -> NoReturn:
        """Log at FATAL, flush the output, then end the process with status 1.

        The exit is immediate (os._exit): it cannot be caught, works from any
        thread, and skips cleanup handlers.
        """
        self._log(Level.FATAL, msg, attrs, fields, ctx)
        self.flush()
        os._exit(1)

    def flush(self) -> None:
        flush_handler(self.handler)

    def _log(self, level: int, msg: str, attrs: tuple[Attr, ...], fields: dict[str, object],
             ctx: Context | None) -> None:
        if ctx is None:
            ctx = otel_context.get_current()
        if not self.handler.enabled(ctx, level):
            return
        record = Record(level, msg, [*attrs, *from_fields(fields)], source=find_caller())
        self.handler.handle(ctx, record)


# ─────────────────────────────────────────────────────────────────────────────
# Context-bound Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ContextLogger:
    """Logger paired with a context; every record is logged against that context."""

    ctx: Context
    logger: Logger

    @property
    def context(self) -> Context:
        return self.ctx

    def bind(self, *attrs: Attr, **fields: object) -> ContextLogger:
        return ContextLogger(self.ctx, self.logger.bind(*attrs, **fields))

    def debug(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.debug(msg, *attrs, ctx=self.ctx, **fields)

    def info(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.info(msg, *attrs, ctx=self.ctx, **fields)

    def warning(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.warning(msg, *attrs, ctx=self.ctx, **fields)

    def error(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.error(msg, *attrs, ctx=self.ctx, **fields)

    def exception(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.exception(msg, *attrs, ctx=self.ctx, **fields)

    def dpanic(self, msg: str, *attrs: Attr, **fields: object) -> None:
        self.logger.dpanic(msg, *attrs, ctx=self.ctx, **fields)

    def panic(self, msg: str, *attrs: Attr, **fields: object) -> NoReturn:
        self.logger.panic(msg, *attrs, ctx=self.ctx, **fields)

    def fatal(self, msg: str, *attrs: Attr, **fields: object) -> NoReturn:
        self.logger.fatal(msg, *attrs, ctx=self.ctx, **fields)


# ─────────────────────────────────────────────────────────────────────────────
# Construction
# ─────────────────────────────────────────────────────────────────────────────


def new_logger(config: LoggerConfig | None = None) -> Logger:
    """Build a Cloud Logging JSON logger with trace-context decoration.

    Every record carries serviceContext.service = config.service_name.
    """
    config = config or LoggerConfig()
    base = JsonHandler(
        output=config.output or sys.stdout,
        level=config.min_level,
        add_source=config.add_source,
        replace_attr=cloud_replace_attr,
    )
    handler = SpanContextHandler(base, project_id=config.project_id)
    log = Logger(handler, development=config.development)
    return log.bind(a.group("serviceContext", a.string("service", config.service_name)))


def configure_logging(settings: LoggingSettings | None = None, *, output: TextIO | None = None) -> Logger:
    """Build a logger from LoggingSettings (read from the environment when omitted)."""
    if settings is None:
        from tracelog.foundation.config import get_settings
        settings = get_settings().logging
    return new_logger(LoggerConfig.from_settings(settings, output))
