"""Logger and ambient fields carried on an OpenTelemetry context.

Contexts are immutable: every attach returns a new context and the parent is
left untouched. Fields are copy-on-extend, so a derived context sees its
parent's fields followed by its own.

Example:
    >>> ctx = context_with_fields(None, attrs.string("request_id", "abc"))
    >>> log.info("handled", ctx=ctx)        # record includes request_id
    >>>
    >>> with log_fields(tenant="acme"):      # scoped to the current context
    ...     log.info("processing")           # includes tenant
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import context as otel_context

from tracelog.core.attrs import Attr, from_fields

if TYPE_CHECKING:
    from types import TracebackType

    from opentelemetry.context import Context

    from .logger import Logger

_LOGGER_KEY = otel_context.create_key("tracelog-logger")
_FIELDS_KEY = otel_context.create_key("tracelog-fields")


def context_with_logger(ctx: Context | None, logger: Logger) -> Context:
    """Return a context carrying logger. None means the current context."""
    return otel_context.set_value(_LOGGER_KEY, logger, ctx)


def logger_from_context(ctx: Context | None = None) -> Logger | None:
    """Logger bound to ctx, or None when none was bound."""
    return otel_context.get_value(_LOGGER_KEY, ctx)  # type: ignore[return-value]


def context_with_fields(ctx: Context | None, *attrs: Attr, **fields: object) -> Context:
    """Return a context whose ambient fields are the parent's plus the given ones."""
    added = (*attrs, *from_fields(fields))
    return otel_context.set_value(_FIELDS_KEY, fields_from_context(ctx) + added, ctx)


def fields_from_context(ctx: Context | None = None) -> tuple[Attr, ...]:
    """Ambient fields attached to ctx (empty when there are none)."""
    return otel_context.get_value(_FIELDS_KEY, ctx) or ()  # type: ignore[return-value]


class log_fields:
    """Context manager attaching ambient fields to the current context for a block."""

    __slots__ = ("_attrs", "_token")

    def __init__(self, *attrs: Attr, **fields: object) -> None:
        self._attrs: tuple[Attr, ...] = (*attrs, *from_fields(fields))
        self._token: object | None = None

    def __enter__(self) -> Context:
        ctx = context_with_fields(None, *self._attrs)
        self._token = otel_context.attach(ctx)
        return ctx

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            otel_context.detach(self._token)  # type: ignore[arg-type]
            self._token = None
