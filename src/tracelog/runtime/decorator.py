"""Trace-context decorator for record handlers.

`SpanContextHandler` wraps any Handler and, for every record:

1. prepends the ambient fields bound to the call's context
2. attaches a trimmed stack trace when the level is WARN or above
3. attaches Cloud Logging trace, span and sampling fields when the context
   carries a valid OpenTelemetry span context
4. delegates to the wrapped handler

Stack traces and trace fields are root attributes of the record, so they stay
at the top level of the output when the logger has groups open.

`cloud_replace_attr` renames the built-in keys to the Cloud Logging
structured-log schema; JsonHandler applies it while rendering.
"""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from typing import TYPE_CHECKING

from opentelemetry import trace

from tracelog.core import attrs as a
from tracelog.core.attrs import Attr, Kind
from tracelog.core.handler import LEVEL_KEY, MESSAGE_KEY, SOURCE_KEY, TIME_KEY, Handler, flush_handler
from tracelog.core.levels import Level, severity_name
from tracelog.core.record import SourceLocation

from .context import fields_from_context

if TYPE_CHECKING:
    from collections.abc import Sequence

    from opentelemetry.context import Context

    from tracelog.core.record import Record

TRACE_KEY = "logging.googleapis.com/trace"
SPAN_ID_KEY = "logging.googleapis.com/spanId"
TRACE_SAMPLED_KEY = "logging.googleapis.com/trace_sampled"
SOURCE_LOCATION_KEY = "logging.googleapis.com/sourceLocation"
STACKTRACE_KEY = "stacktrace"

# Frames from the facade itself and the libraries it sits under
STACK_SKIP_PREFIXES: tuple[str, ...] = (
    "tracelog.runtime.",
    "tracelog.core.",
    "tracelog.io.",
    "tracelog.integrations.",
    "tracelog.foundation.",
    "traceback.",
    "logging.",
    "contextlib.",
    "opentelemetry.",
    "httpx.",
    "httpcore.",
    "sqlalchemy.",
)

StackFrame = tuple[str, traceback.FrameSummary]  # (module name, frame)


@dataclass(frozen=True, slots=True)
class SpanContextHandler:
    """Handler decorator adding ambient fields, stack traces and trace context.

    Args:
        base: Handler that renders and writes the record
        project_id: Google Cloud project; when set, trace IDs are qualified as
            projects/<project_id>/traces/<trace_id>
    """

    base: Handler
    project_id: str = ""

    def enabled(self, ctx: Context, level: int) -> bool:
        return self.base.enabled(ctx, level)

    def handle(self, ctx: Context, record: Record) -> None:
        if ambient := fields_from_context(ctx):
            record.prepend_attrs(ambient)
        if record.level >= Level.WARN:
            record.add_root_attrs(a.string(STACKTRACE_KEY, capture_stack()))
        if (sc := trace.get_current_span(ctx).get_span_context()).is_valid:
            trace_id = trace.format_trace_id(sc.trace_id)
            record.add_root_attrs(
                a.string(TRACE_KEY, f"projects/{self.project_id}/traces/{trace_id}" if self.project_id else trace_id),
                a.string(SPAN_ID_KEY, trace.format_span_id(sc.span_id)),
                a.bool_(TRACE_SAMPLED_KEY, sc.trace_flags.sampled),
            )
        self.base.handle(ctx, record)

    def with_attrs(self, attrs: Sequence[Attr]) -> SpanContextHandler:
        return SpanContextHandler(self.base.with_attrs(attrs), self.project_id)

    def with_group(self, name: str) -> SpanContextHandler:
        return SpanContextHandler(self.base.with_group(name), self.project_id)

    def flush(self) -> None:
        flush_handler(self.base)


# ─────────────────────────────────────────────────────────────────────────────
# Stack Traces
# ─────────────────────────────────────────────────────────────────────────────


def capture_stack() -> str:
    """Stack of the current call with facade and library frames trimmed."""
    frames = [
        (frame.f_globals.get("__name__", ""), traceback.FrameSummary(frame.f_code.co_filename, lineno, frame.f_code.co_name))
        for frame, lineno in traceback.walk_stack(sys._getframe())
    ]
    return trim_stack(frames)


def find_caller() -> SourceLocation | None:
    """Location of the first frame outside the facade and the libraries it wraps."""
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if not f"{module}.".startswith(STACK_SKIP_PREFIXES):
            code = frame.f_code
            return SourceLocation(f"{module}.{code.co_qualname}", code.co_filename, frame.f_lineno)
        frame = frame.f_back
    return None


def trim_stack(frames: Sequence[StackFrame], skip: Sequence[str] = STACK_SKIP_PREFIXES) -> str:
    """Render frames (newest first), dropping the leading noisy ones.

    If every frame matches a skip prefix the whole stack is kept: an empty
    trace would hide where the record came from.
    """
    prefixes = tuple(skip)
    start = next((i for i, (module, _) in enumerate(frames) if not f"{module}.".startswith(prefixes)), 0)
    kept = list(reversed(frames[start:]))
    return "Stack (most recent call last):\n" + "".join(traceback.format_list([f for _, f in kept]))


# ─────────────────────────────────────────────────────────────────────────────
# Cloud Logging Key Mapping
# ─────────────────────────────────────────────────────────────────────────────


_RENAMES: dict[str, str] = {
    TIME_KEY: "timestamp",
    MESSAGE_KEY: "message",
    SOURCE_KEY: SOURCE_LOCATION_KEY,
}


def cloud_replace_attr(groups: tuple[str, ...], attr: Attr) -> Attr:
    """Rename built-in keys to match the Cloud Logging structured log format."""
    if groups:
        return attr
    if attr.key == LEVEL_KEY and attr.kind is Kind.INT:
        return a.string("severity", severity_name(attr.value))  # type: ignore[arg-type]
    if (key := _RENAMES.get(attr.key)) is not None:
        return Attr(key, attr.kind, attr.value)
    return attr
