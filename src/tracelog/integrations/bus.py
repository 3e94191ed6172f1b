"""Message-bus logger adapter.

Message routers expect a small logger interface taking a field map per call.
BusLogger presents a tracelog Logger through that interface; trace-level
router output is logged at INFO.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Protocol, runtime_checkable

from tracelog.core import attrs as a
from tracelog.core.attrs import from_fields

if TYPE_CHECKING:
    from tracelog.runtime.logger import Logger

LogFields = Mapping[str, object]


@runtime_checkable
class BusLoggerAdapter(Protocol):
    """Logger interface consumed by message routers."""

    def error(self, msg: str, err: BaseException | None, fields: LogFields) -> None: ...
    def info(self, msg: str, fields: LogFields) -> None: ...
    def debug(self, msg: str, fields: LogFields) -> None: ...
    def trace(self, msg: str, fields: LogFields) -> None: ...
    def with_fields(self, fields: LogFields) -> BusLoggerAdapter: ...


@dataclass(frozen=True, slots=True)
class BusLogger:
    """BusLoggerAdapter backed by a tracelog Logger."""

    logger: Logger

    def error(self, msg: str, err: BaseException | None, fields: LogFields) -> None:
        attrs = from_fields(fields)
        if err is not None:
            attrs.append(a.error(err))
        self.logger.error(msg, *attrs)

    def info(self, msg: str, fields: LogFields) -> None:
        self.logger.info(msg, *from_fields(fields))

    def debug(self, msg: str, fields: LogFields) -> None:
        self.logger.debug(msg, *from_fields(fields))

    def trace(self, msg: str, fields: LogFields) -> None:
        self.logger.info(msg, *from_fields(fields))

    def with_fields(self, fields: LogFields) -> BusLogger:
        return BusLogger(self.logger.bind(*from_fields(fields)))
