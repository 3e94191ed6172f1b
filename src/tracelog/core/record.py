"""Log record passed through the handler chain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .attrs import Attr


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Call site of a log statement."""

    function: str
    file: str
    line: int


@dataclass(slots=True)
class Record:
    """One log call. Decorated in place by handlers, then rendered and discarded.

    `root_attrs` always render at the top level of the output, whatever
    groups the handler has open. Decorators use them for reserved keys such
    as the trace fields.
    """

    level: int
    message: str
    attrs: list[Attr] = field(default_factory=list)
    time: datetime = field(default_factory=lambda: datetime.now(UTC))
    source: SourceLocation | None = None
    root_attrs: list[Attr] = field(default_factory=list)

    def add_attrs(self, *attrs: Attr) -> None:
        self.attrs.extend(attrs)

    def add_root_attrs(self, *attrs: Attr) -> None:
        self.root_attrs.extend(attrs)

    def prepend_attrs(self, attrs: Iterable[Attr]) -> None:
        """Insert attrs before the existing ones so existing keys take precedence."""
        self.attrs[:0] = attrs

    def clone(self) -> Record:
        """Copy whose attr lists can be decorated without touching this record."""
        return Record(self.level, self.message, list(self.attrs), self.time, self.source, list(self.root_attrs))

    def get(self, key: str) -> Attr | None:
        """Attribute with the given top-level key as rendered (root attrs win), if any."""
        return next((a for a in (*reversed(self.root_attrs), *reversed(self.attrs)) if a.key == key), None)
