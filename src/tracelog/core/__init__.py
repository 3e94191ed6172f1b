"""Core types: levels, attributes, records and record sinks."""

from . import attrs
from .attrs import LABELS_KEY, Attr, Kind
from .handler import (
    FanoutHandler,
    Handler,
    JsonHandler,
    MemoryHandler,
    ReplaceAttr,
    flush_handler,
)
from .levels import Level, severity_name
from .record import Record, SourceLocation

__all__ = [
    # Attributes
    "attrs", "Attr", "Kind", "LABELS_KEY",
    # Levels
    "Level", "severity_name",
    # Records
    "Record", "SourceLocation",
    # Handlers
    "Handler", "JsonHandler", "MemoryHandler", "FanoutHandler", "ReplaceAttr", "flush_handler",
]
