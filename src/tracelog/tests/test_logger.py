"""Tests for the logger facade, trace-context decoration and context binders."""

from __future__ import annotations

import io
import os
import subprocess
import sys
import textwrap
import traceback

import orjson
import pytest
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from tracelog.core import Level, MemoryHandler, attrs
from tracelog.foundation.errors import PanicError
from tracelog.runtime import (
    SPAN_ID_KEY,
    STACKTRACE_KEY,
    TRACE_KEY,
    TRACE_SAMPLED_KEY,
    Logger,
    LoggerConfig,
    SpanContextHandler,
    context_with_fields,
    context_with_logger,
    fields_from_context,
    log_fields,
    logger_from_context,
    new_logger,
    trim_stack,
)

TRACE_ID = 0x0102030405060708090A0B0C0D0E0F10
SPAN_ID = 0x0102030405060708


def _span_context(sampled: bool = True) -> Context:
    flags = TraceFlags(TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT)
    sc = SpanContext(trace_id=TRACE_ID, span_id=SPAN_ID, is_remote=False, trace_flags=flags)
    return trace.set_span_in_context(NonRecordingSpan(sc), Context())


def _json_logger(**config: object) -> tuple[Logger, io.StringIO]:
    buf = io.StringIO()
    cfg = LoggerConfig(project_id="test-project", service_name="test-service", output=buf, **config)  # type: ignore[arg-type]
    return new_logger(cfg), buf


def _lines(buf: io.StringIO) -> list[dict[str, object]]:
    return [orjson.loads(line) for line in buf.getvalue().splitlines()]


def _memory_logger() -> tuple[Logger, MemoryHandler]:
    mem = MemoryHandler()
    return Logger(SpanContextHandler(mem, project_id="test-project")), mem


# ═════════════════════════════════════════════════════════════════════════════
# Cloud Logging Output
# ═════════════════════════════════════════════════════════════════════════════


def test_trace_fields_are_injected() -> None:
    log, buf = _json_logger(min_level=Level.DEBUG)
    log.info("This is a test log message", attrs.string("key", "value"), ctx=_span_context())

    (out,) = _lines(buf)
    assert out[TRACE_KEY] == "projects/test-project/traces/0102030405060708090a0b0c0d0e0f10"
    assert out[SPAN_ID_KEY] == "0102030405060708"
    assert out[TRACE_SAMPLED_KEY] is True
    assert out["key"] == "value"


def test_trace_id_is_bare_without_project() -> None:
    buf = io.StringIO()
    log = new_logger(LoggerConfig(output=buf))
    log.info("m", ctx=_span_context(sampled=False))

    (out,) = _lines(buf)
    assert out[TRACE_KEY] == "0102030405060708090a0b0c0d0e0f10"
    assert out[TRACE_SAMPLED_KEY] is False


def test_no_trace_fields_without_span() -> None:
    log, buf = _json_logger()
    log.info("m", ctx=Context())

    (out,) = _lines(buf)
    assert TRACE_KEY not in out
    assert SPAN_ID_KEY not in out


def test_cloud_key_mapping() -> None:
    log, buf = _json_logger()
    log.warning("careful")

    (out,) = _lines(buf)
    assert out["severity"] == "WARNING"
    assert out["message"] == "careful"
    assert "timestamp" in out
    assert out["serviceContext"] == {"service": "test-service"}
    source = out["logging.googleapis.com/sourceLocation"]
    assert source["function"].endswith("test_cloud_key_mapping")  # type: ignore[index]
    assert source["file"].endswith("test_logger.py")  # type: ignore[index]
    assert not {"level", "msg", "time", "source"} & out.keys()


def test_below_floor_writes_nothing() -> None:
    """Disabled calls return before converting any fields."""

    class Unprintable:
        def __str__(self) -> str:
            raise AssertionError("converted a disabled field")

    log, buf = _json_logger(min_level=Level.INFO)
    log.debug("hidden", thing=Unprintable())

    assert buf.getvalue() == ""
    assert not log.enabled(Level.DEBUG)


def test_bind_returns_new_logger() -> None:
    log, mem = _memory_logger()
    bound = log.bind(region="eu")
    log.info("plain")
    bound.info("bound")

    assert mem.records[0].get("region") is None
    assert mem.records[1].get("region") == attrs.string("region", "eu")


def test_user_attrs_cannot_overwrite_builtins() -> None:
    log, buf = _json_logger()
    log.error("boom", level=3, time="5s", severity="DEBUG", message="spoofed")

    (out,) = _lines(buf)
    assert out["severity"] == "ERROR"
    assert out["message"] == "boom"
    assert out["timestamp"] != "5s"
    assert out["level"] == 3
    assert out["time"] == "5s"


def test_trace_fields_stay_at_root_inside_group() -> None:
    log, buf = _json_logger()
    log.with_group("req").warning("slow", attrs.string("path", "/v1"), ctx=_span_context())

    (out,) = _lines(buf)
    assert out["req"] == {"path": "/v1"}
    assert out[TRACE_KEY] == "projects/test-project/traces/0102030405060708090a0b0c0d0e0f10"
    assert out[SPAN_ID_KEY] == "0102030405060708"
    assert out[TRACE_SAMPLED_KEY] is True
    assert out[STACKTRACE_KEY].startswith("Stack (most recent call last):\n")  # type: ignore[union-attr]
    assert out["serviceContext"] == {"service": "test-service"}


# ═════════════════════════════════════════════════════════════════════════════
# Stack Traces
# ═════════════════════════════════════════════════════════════════════════════


def test_stacktrace_on_warn_and_above() -> None:
    log, mem = _memory_logger()
    log.info("fine")
    log.warning("careful")
    log.error("broken")

    info, warn, err = mem.records
    assert info.get(STACKTRACE_KEY) is None
    for record in (warn, err):
        stack = record.get(STACKTRACE_KEY).value  # type: ignore[union-attr]
        assert stack.startswith("Stack (most recent call last):\n")
        assert "test_stacktrace_on_warn_and_above" in stack
        assert "runtime/logger.py" not in stack


def test_trim_stack_skips_leading_noisy_frames() -> None:
    frames = [
        ("tracelog.runtime.logger", traceback.FrameSummary("logger.py", 10, "_log")),
        ("app.service", traceback.FrameSummary("service.py", 20, "handle")),
        ("app.main", traceback.FrameSummary("main.py", 30, "main")),
    ]
    stack = trim_stack(frames)

    assert "_log" not in stack
    assert stack.index("main.py") < stack.index("service.py")


def test_trim_stack_keeps_everything_when_all_noisy() -> None:
    frames = [
        ("tracelog.runtime.logger", traceback.FrameSummary("logger.py", 10, "_log")),
        ("httpx._client", traceback.FrameSummary("_client.py", 20, "send")),
    ]
    stack = trim_stack(frames)

    assert "logger.py" in stack
    assert "_client.py" in stack


# ═════════════════════════════════════════════════════════════════════════════
# Panic & Fatal
# ═════════════════════════════════════════════════════════════════════════════


def test_panic_logs_then_raises() -> None:
    log, buf = _json_logger()
    with pytest.raises(PanicError, match="unrecoverable"):
        log.panic("unrecoverable")

    (out,) = _lines(buf)
    assert out["severity"] == "CRITICAL"


class _Exited(Exception):
    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def test_fatal_logs_flushes_then_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_exit(code: int) -> None:
        raise _Exited(code)

    monkeypatch.setattr(os, "_exit", fake_exit)
    log, buf = _json_logger()
    with pytest.raises(_Exited) as exc:
        log.fatal("goodbye")

    assert exc.value.code == 1
    (out,) = _lines(buf)
    assert out["severity"] == "EMERGENCY"


def test_fatal_ends_process_from_worker_thread() -> None:
    script = textwrap.dedent("""
        import sys
        import threading

        from tracelog import LoggerConfig, new_logger

        log = new_logger(LoggerConfig(output=sys.stdout))
        worker = threading.Thread(target=log.fatal, args=("worker died",))
        worker.start()
        worker.join()
        print("still running")
    """)
    done = subprocess.run([sys.executable, "-c", script], capture_output=True, text=True, timeout=30)

    assert done.returncode == 1
    assert "still running" not in done.stdout
    (line,) = done.stdout.splitlines()
    out = orjson.loads(line)
    assert out["severity"] == "EMERGENCY"
    assert out["message"] == "worker died"


def test_dpanic_raises_only_in_development() -> None:
    log, buf = _json_logger()
    log.dpanic("odd")
    assert _lines(buf)[-1]["severity"] == "ERROR"

    dev, _ = _json_logger(development=True)
    with pytest.raises(PanicError):
        dev.dpanic("odd")


# ═════════════════════════════════════════════════════════════════════════════
# Context Binders
# ═════════════════════════════════════════════════════════════════════════════


def test_context_fields_are_copy_on_extend() -> None:
    parent = context_with_fields(Context(), attrs.string("a", "1"))
    child = context_with_fields(parent, b="2")

    assert fields_from_context(parent) == (attrs.string("a", "1"),)
    assert fields_from_context(child) == (attrs.string("a", "1"), attrs.string("b", "2"))
    assert fields_from_context(Context()) == ()


def test_call_site_attrs_override_ambient() -> None:
    log, mem = _memory_logger()
    ctx = context_with_fields(Context(), user="ambient", request_id="r-1")
    log.info("m", ctx=ctx, user="call-site")

    record = mem.last
    assert record.get("user").value == "call-site"  # type: ignore[union-attr]
    assert record.get("request_id").value == "r-1"  # type: ignore[union-attr]


def test_logger_from_context() -> None:
    log, _ = _memory_logger()
    ctx = context_with_logger(Context(), log)

    assert logger_from_context(ctx) is log
    assert logger_from_context(Context()) is None


def test_log_fields_scopes_current_context() -> None:
    log, mem = _memory_logger()
    with log_fields(tenant="acme"):
        log.info("inside")
    log.info("outside")

    inside, outside = mem.records
    assert inside.get("tenant") == attrs.string("tenant", "acme")
    assert outside.get("tenant") is None


def test_context_logger_uses_fixed_context() -> None:
    log, buf = _json_logger()
    clog = log.with_context(_span_context(), attrs.string("component", "worker"))
    clog.info("tick")

    (out,) = _lines(buf)
    assert out[SPAN_ID_KEY] == "0102030405060708"
    assert out["component"] == "worker"
    assert clog.context is clog.ctx
