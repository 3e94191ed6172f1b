"""httpx transports that log every outbound request/response pair.

Example:
    >>> transport = LoggingTransport(httpx.HTTPTransport(), log)
    >>> with httpx.Client(transport=transport) as client:
    ...     client.get("https://api.example.com/users")
    # => {"severity": "INFO", "message": "called external service", "url": ..., "http_status_code": 200, ...}

The logger is resolved from the request's context first (see
`logger_from_context`), falling back to the transport's own. The context is
taken from the "tracelog.context" request extension, or the current context
when absent, so records carry the caller's trace fields automatically.

Transport failures, including a failure while reading the response body, are
logged at ERROR and re-raised. Responses, including 4xx/5xx ones, are
returned to the caller unread; their level is a policy of
LoggingOptions.error_status_level. The duration covers the body read.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

import httpx
from opentelemetry import context as otel_context

from tracelog.core import attrs as a
from tracelog.core.levels import Level
from tracelog.runtime.context import logger_from_context

if TYPE_CHECKING:
    from opentelemetry.context import Context

    from tracelog.core.attrs import Attr
    from tracelog.foundation.config import HttpLoggingSettings
    from tracelog.runtime.logger import Logger

LOG_TYPE_LABEL = "log_type"
LOG_TYPE_EXTERNAL_REQUEST = "external_request"
HTTP_STATUS_CODE_LABEL = "http_status_code"
CONTEXT_EXTENSION = "tracelog.context"

SUCCESS_MESSAGE = "called external service"
FAILURE_MESSAGE = "call to external service FAILED"


# ─────────────────────────────────────────────────────────────────────────────
# Dumps
# ─────────────────────────────────────────────────────────────────────────────


def _dump(start_line: str, headers: httpx.Headers, body: bytes) -> str:
    lines = [start_line, *(f"{k}: {v}" for k, v in headers.multi_items()), "", body.decode("utf-8", errors="replace")]
    return "\r\n".join(lines)


def dump_request(request: httpx.Request) -> str:
    """Request line, headers and body as sent on the wire (HTTP/1.1 framing)."""
    try:
        body = request.read()
    except Exception as e:  # noqa: BLE001
        return f"Error dumping request: {e}"
    return _dump(f"{request.method} {request.url.raw_path.decode('ascii')} HTTP/1.1", request.headers, body)


def dump_response(response: httpx.Response) -> str:
    """Status line, headers and decoded body."""
    try:
        body = response.read()
    except Exception as e:  # noqa: BLE001
        return f"Error dumping response: {e}"
    return _dump(f"{response.http_version} {response.status_code} {response.reason_phrase}", response.headers, body)


@dataclass(frozen=True, slots=True)
class LoggingOptions:
    """How requests and responses are dumped and logged.

    Attributes:
        dump_request: Renders the request for the "request" field
        dump_response: Renders the response for the "response" field
        error_status_level: Level for responses with status >= 400
    """

    dump_request: Callable[[httpx.Request], str] = dump_request
    dump_response: Callable[[httpx.Response], str] = dump_response
    error_status_level: Level = Level.INFO

    @classmethod
    def from_settings(cls, settings: HttpLoggingSettings) -> LoggingOptions:
        return cls(error_status_level=Level.parse(settings.error_status_level))


# ─────────────────────────────────────────────────────────────────────────────
# Transports
# ─────────────────────────────────────────────────────────────────────────────


class _LoggingMixin:
    _logger: Logger
    _options: LoggingOptions

    def _resolve(self, request: httpx.Request) -> tuple[Logger, Context]:
        ctx = request.extensions.get(CONTEXT_EXTENSION)
        if ctx is None:
            ctx = otel_context.get_current()
        return logger_from_context(ctx) or self._logger, ctx

    def _fields(self, request: httpx.Request, dumped: str, elapsed: float) -> list[Attr]:
        return [
            a.string("url", str(request.url)),
            a.string("request", dumped),
            a.string(LOG_TYPE_LABEL, LOG_TYPE_EXTERNAL_REQUEST),
            a.duration("duration", elapsed),
            a.int_("duration_ms", int(elapsed * 1000)),
        ]

    def _log_failure(self, request: httpx.Request, dumped: str, elapsed: float, exc: Exception) -> None:
        log, ctx = self._resolve(request)
        log.error(FAILURE_MESSAGE, *self._fields(request, dumped, elapsed), a.error(exc), ctx=ctx)

    def _log_success(self, request: httpx.Request, dumped: str, elapsed: float, response: httpx.Response,
                     dumped_response: str) -> None:
        log, ctx = self._resolve(request)
        level = self._options.error_status_level if response.status_code >= 400 else Level.INFO
        log.log(
            level,
            SUCCESS_MESSAGE,
            *self._fields(request, dumped, elapsed),
            a.string("response", dumped_response),
            a.int_(HTTP_STATUS_CODE_LABEL, response.status_code),
            ctx=ctx,
        )


def _buffered(response: httpx.Response, request: httpx.Request, raw: bytes) -> httpx.Response:
    """Unread copy of response backed by its already-received raw body."""
    return httpx.Response(
        response.status_code,
        headers=response.headers,
        stream=httpx.ByteStream(raw),
        extensions=response.extensions,
        request=request,
    )


class LoggingTransport(_LoggingMixin, httpx.BaseTransport):
    """Synchronous transport decorator logging each call.

    Args:
        transport: Wrapped transport (defaults to httpx.HTTPTransport())
        logger: Default logger when the request context carries none
        options: Dump functions and status-level policy
    """

    def __init__(self, transport: httpx.BaseTransport | None, logger: Logger,
                 options: LoggingOptions | None = None) -> None:
        self._transport = transport or httpx.HTTPTransport()
        self._logger = logger
        self._options = options or LoggingOptions()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        dumped = self._options.dump_request(request)
        start = time.perf_counter()
        try:
            response = self._transport.handle_request(request)
        except Exception as e:
            self._log_failure(request, dumped, time.perf_counter() - start, e)
            raise
        if response.is_stream_consumed:
            self._log_success(request, dumped, time.perf_counter() - start, response,
                              self._options.dump_response(response))
            return response
        try:
            raw = b"".join(response.iter_raw())
        except Exception as e:
            response.close()
            self._log_failure(request, dumped, time.perf_counter() - start, e)
            raise
        elapsed = time.perf_counter() - start
        self._log_success(request, dumped, elapsed, response, self._options.dump_response(_buffered(response, request, raw)))
        return _buffered(response, request, raw)

    def close(self) -> None:
        self._transport.close()


class AsyncLoggingTransport(_LoggingMixin, httpx.AsyncBaseTransport):
    """Async counterpart of LoggingTransport."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None, logger: Logger,
                 options: LoggingOptions | None = None) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._logger = logger
        self._options = options or LoggingOptions()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        dumped = self._options.dump_request(request)
        start = time.perf_counter()
        try:
            response = await self._transport.handle_async_request(request)
        except Exception as e:
            self._log_failure(request, dumped, time.perf_counter() - start, e)
            raise
        if response.is_stream_consumed:
            self._log_success(request, dumped, time.perf_counter() - start, response,
                              self._options.dump_response(response))
            return response
        try:
            raw = b"".join([chunk async for chunk in response.aiter_raw()])
        except Exception as e:
            await response.aclose()
            self._log_failure(request, dumped, time.perf_counter() - start, e)
            raise
        elapsed = time.perf_counter() - start
        self._log_success(request, dumped, elapsed, response, self._options.dump_response(_buffered(response, request, raw)))
        return _buffered(response, request, raw)

    async def aclose(self) -> None:
        await self._transport.aclose()
