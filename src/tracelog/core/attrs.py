"""Typed log attributes.

All log fields in the codebase are built with these constructors instead of
raw dicts so call sites stay uniform and redaction or unit normalization can
be layered in centrally. Values form a closed set of kinds (see `Kind`), which
keeps rendering and masking total over every value an attribute can hold.

Example:
    >>> from tracelog.core import attrs
    >>> attrs.string("user_id", "123")
    Attr(key='user_id', kind=<Kind.STRING: 'string'>, value='123')
    >>> attrs.labels("team", "payments", "tier", "gold")  # Cloud Logging labels
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from google.protobuf import json_format

if TYPE_CHECKING:
    from google.protobuf.message import Message

LABELS_KEY = "logging.googleapis.com/labels"


class Kind(StrEnum):
    """Closed set of attribute value kinds."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"      # integer nanoseconds
    ERROR = "error"            # string representation of the error
    STRUCTURED = "structured"  # JSON-compatible payload
    GROUP = "group"            # tuple[Attr, ...]
    NULL = "null"


@dataclass(frozen=True, slots=True)
class Attr:
    """Immutable key/value pair attached to a log record."""

    key: str
    kind: Kind
    value: object

    @property
    def attrs(self) -> tuple[Attr, ...]:
        """Nested attributes of a group (empty for other kinds)."""
        return self.value if self.kind is Kind.GROUP else ()  # type: ignore[return-value]


# ─────────────────────────────────────────────────────────────────────────────
# Scalar Constructors
# ─────────────────────────────────────────────────────────────────────────────


def string(key: str, value: str) -> Attr:
    return Attr(key, Kind.STRING, value)


def int_(key: str, value: int) -> Attr:
    return Attr(key, Kind.INT, int(value))


int64 = int_


def float_(key: str, value: float) -> Attr:
    return Attr(key, Kind.FLOAT, float(value))


def bool_(key: str, value: bool) -> Attr:
    return Attr(key, Kind.BOOL, bool(value))


def duration(key: str, value: timedelta | float) -> Attr:
    """Duration attribute. Floats are seconds (as returned by perf_counter deltas)."""
    seconds = value.total_seconds() if isinstance(value, timedelta) else value
    return Attr(key, Kind.DURATION, round(seconds * 1_000_000_000))


def error(err: BaseException | str, key: str = "error") -> Attr:
    """Error attribute under the conventional "error" key."""
    return Attr(key, Kind.ERROR, str(err))


def null(key: str) -> Attr:
    return Attr(key, Kind.NULL, None)


# ─────────────────────────────────────────────────────────────────────────────
# Structured Payloads
# ─────────────────────────────────────────────────────────────────────────────


def structured(key: str, payload: object) -> Attr:
    """Opaque JSON-compatible payload, rendered as-is."""
    return Attr(key, Kind.STRUCTURED, payload)


def proto(key: str, message: Message) -> Attr:
    """Serialize a protobuf message to its canonical JSON form.

    Logging must never fail logging: a message that cannot be serialized
    yields an error attribute carrying the serialization error instead.
    """
    try:
        payload = json_format.MessageToDict(message)
    except Exception as e:  # noqa: BLE001
        return error(e)
    return Attr(key, Kind.STRUCTURED, payload)


# ─────────────────────────────────────────────────────────────────────────────
# Groups & Labels
# ─────────────────────────────────────────────────────────────────────────────


def group(key: str, *attrs: Attr) -> Attr:
    return Attr(key, Kind.GROUP, tuple(attrs))


def label(key: str, value: str) -> Attr:
    """Single Cloud Logging label."""
    return group(LABELS_KEY, string(key, value))


def labels(*args: str) -> Attr:
    """Cloud Logging labels from flat key/value pairs.

    Example:
        >>> labels("user_id", "123", "role", "admin")

    An odd number of arguments is not rejected: the dangling key is kept with
    a null value.
    """
    pairs = [string(args[i], args[i + 1]) for i in range(0, len(args) - 1, 2)]
    if len(args) % 2:
        pairs.append(null(args[-1]))
    return group(LABELS_KEY, *pairs)


# ─────────────────────────────────────────────────────────────────────────────
# Dynamic Values
# ─────────────────────────────────────────────────────────────────────────────


def any_(key: str, value: object) -> Attr:
    """Map an arbitrary Python value onto the closed kind set.

    Prefer the typed constructors above where the type is known.
    """
    match value:
        case Attr():
            return value if value.key == key else Attr(key, value.kind, value.value)
        case None: return null(key)
        case bool(): return bool_(key, value)
        case int(): return int_(key, value)
        case float(): return float_(key, value)
        case str(): return string(key, value)
        case timedelta(): return duration(key, value)
        case BaseException(): return error(value, key)
        case Mapping() | list() | tuple(): return structured(key, value)
        case _: return string(key, str(value))


def from_fields(fields: Mapping[str, object]) -> list[Attr]:
    """Convert keyword-style fields into attributes, preserving order."""
    return [any_(k, v) for k, v in fields.items()]
