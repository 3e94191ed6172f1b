"""Record sinks.

A `Handler` is the capability every sink implements: a level check, a write,
and two derivation operations that return new handlers with attributes or a
group baked in. Decorators (tracelog.runtime.decorator) implement the same
protocol around a base handler.

Concrete sinks:
- JsonHandler: one JSON object per line on a text stream (orjson)
- MemoryHandler: keeps records in a list, for tests
- FanoutHandler: writes each record to several handlers
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Callable, Protocol, TextIO, runtime_checkable

import orjson

from . import attrs as a
from .attrs import Attr, Kind
from .levels import Level

if TYPE_CHECKING:
    from collections.abc import Sequence

    from opentelemetry.context import Context

    from .record import Record

# Built-in keys, renamed by a ReplaceAttr function if one is configured
TIME_KEY = "time"
LEVEL_KEY = "level"
MESSAGE_KEY = "msg"
SOURCE_KEY = "source"

ReplaceAttr = Callable[[tuple[str, ...], Attr], "Attr | None"]


@runtime_checkable
class Handler(Protocol):
    """Capability of a record sink."""

    def enabled(self, ctx: Context, level: int) -> bool: ...
    def handle(self, ctx: Context, record: Record) -> None: ...
    def with_attrs(self, attrs: Sequence[Attr]) -> Handler: ...
    def with_group(self, name: str) -> Handler: ...


def flush_handler(handler: Handler) -> None:
    """Flush a handler's output if it buffers."""
    if (flush := getattr(handler, "flush", None)) is not None:
        flush()


# ─────────────────────────────────────────────────────────────────────────────
# JSON Lines
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class JsonHandler:
    """Writes each record as a single JSON line.

    Attributes bound with `with_attrs` are nested under whatever groups were
    open when they were bound; record attributes go under all open groups.
    Groups sharing a key are merged, so repeated label attributes end up in
    one object. Empty groups are omitted.

    Example:
        >>> h = JsonHandler(io.StringIO(), level=Level.DEBUG)
        >>> h.with_group("req").with_attrs([attrs.string("id", "abc")])
    """

    output: TextIO = field(default_factory=lambda: sys.stdout)
    level: int = Level.INFO
    add_source: bool = False
    replace_attr: ReplaceAttr | None = None
    _groups: tuple[str, ...] = ()
    _preset: tuple[tuple[tuple[str, ...], Attr], ...] = ()
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def enabled(self, ctx: Context, level: int) -> bool:
        return level >= self.level

    def with_attrs(self, attrs: Sequence[Attr]) -> JsonHandler:
        if not attrs:
            return self
        return replace(self, _preset=self._preset + tuple((self._groups, x) for x in attrs))

    def with_group(self, name: str) -> JsonHandler:
        return replace(self, _groups=(*self._groups, name)) if name else self

    def handle(self, ctx: Context, record: Record) -> None:
        line = orjson.dumps(self.render(record), default=str, option=orjson.OPT_NON_STR_KEYS)
        with self._lock:
            self.output.write(line.decode() + "\n")

    def flush(self) -> None:
        with self._lock:
            self.output.flush()

    def render(self, record: Record) -> dict[str, object]:
        """Build the JSON object for a record.

        Order: built-ins, preset attrs, record attrs under the open groups,
        then root attrs. Only the built-ins pass through `replace_attr`, and
        user attributes can never overwrite them.
        """
        out: dict[str, object] = {}
        builtins = [a.string(TIME_KEY, record.time.isoformat()), a.int_(LEVEL_KEY, record.level)]
        if self.add_source and record.source is not None:
            src = record.source
            builtins.append(a.group(SOURCE_KEY, a.string("function", src.function),
                                    a.string("file", src.file), a.int_("line", src.line)))
        builtins.append(a.string(MESSAGE_KEY, record.message))
        for attr in builtins:
            self._put(out, (), attr, replace=True)
        reserved = dict(out)

        for groups, attr in self._preset:
            self._put(_descend(out, groups), groups, attr)
        if record.attrs:
            target = _descend(out, self._groups)
            for attr in record.attrs:
                self._put(target, self._groups, attr)
        for attr in record.root_attrs:
            self._put(out, (), attr)
        out.update(reserved)
        return out

    def _put(self, target: dict[str, object], groups: tuple[str, ...], attr: Attr, replace: bool = False) -> None:
        if replace and self.replace_attr is not None:
            replaced = self.replace_attr(groups, attr)
            if replaced is None:
                return
            attr = replaced
        if attr.kind is Kind.GROUP:
            if not attr.value:
                return
            sub = target if not attr.key else _child(target, attr.key)
            path = groups if not attr.key else (*groups, attr.key)
            for child in attr.attrs:
                self._put(sub, path, child, replace)
            if attr.key and not sub:
                del target[attr.key]
            return
        if attr.key:
            target[attr.key] = attr.value


def _child(target: dict[str, object], key: str) -> dict[str, object]:
    sub = target.get(key)
    if not isinstance(sub, dict):
        sub = target[key] = {}
    return sub


def _descend(out: dict[str, object], groups: tuple[str, ...]) -> dict[str, object]:
    for name in groups:
        out = _child(out, name)
    return out


# ─────────────────────────────────────────────────────────────────────────────
# In-Memory (testing)
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MemoryHandler:
    """Collects records in memory. Derived handlers share the same list.

    Stored records carry bound attributes first, with open groups applied as
    nested group attributes, so assertions see what a real sink would render.
    """

    level: int = Level.DEBUG
    records: list[Record] = field(default_factory=list)
    _groups: tuple[str, ...] = ()
    _preset: tuple[Attr, ...] = ()

    def enabled(self, ctx: Context, level: int) -> bool:
        return level >= self.level

    def handle(self, ctx: Context, record: Record) -> None:
        stored = record.clone()
        stored.attrs = [*self._preset, *_nest(self._groups, stored.attrs)]
        self.records.append(stored)

    def with_attrs(self, attrs: Sequence[Attr]) -> MemoryHandler:
        return replace(self, _preset=(*self._preset, *_nest(self._groups, list(attrs))))

    def with_group(self, name: str) -> MemoryHandler:
        return replace(self, _groups=(*self._groups, name)) if name else self

    @property
    def messages(self) -> list[str]:
        return [r.message for r in self.records]

    @property
    def last(self) -> Record | None:
        return self.records[-1] if self.records else None

    def clear(self) -> None:
        self.records.clear()


def _nest(groups: tuple[str, ...], attrs: list[Attr]) -> list[Attr]:
    for name in reversed(groups):
        attrs = [a.group(name, *attrs)] if attrs else []
    return attrs


# ─────────────────────────────────────────────────────────────────────────────
# Fan-out
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class FanoutHandler:
    """Writes each record to every enabled handler.

    Every handler gets its own copy of the record and is tried even if an
    earlier one failed; failures are re-raised afterwards (a single exception
    as-is, several as an ExceptionGroup).
    """

    handlers: tuple[Handler, ...]

    def enabled(self, ctx: Context, level: int) -> bool:
        return any(h.enabled(ctx, level) for h in self.handlers)

    def handle(self, ctx: Context, record: Record) -> None:
        errors: list[Exception] = []
        for h in self.handlers:
            if not h.enabled(ctx, record.level):
                continue
            try:
                h.handle(ctx, record.clone())
            except Exception as e:
                errors.append(e)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup("multiple handlers failed", errors)

    def with_attrs(self, attrs: Sequence[Attr]) -> FanoutHandler:
        return FanoutHandler(tuple(h.with_attrs(attrs) for h in self.handlers))

    def with_group(self, name: str) -> FanoutHandler:
        return FanoutHandler(tuple(h.with_group(name) for h in self.handlers))

    def flush(self) -> None:
        for h in self.handlers:
            flush_handler(h)
