"""Bridge from the standard library `logging` module into a tracelog Logger.

Example:
    >>> logging.getLogger().addHandler(BridgeHandler(log))
    >>> logging.getLogger("urllib3").warning("retrying %s", url)

Third-party libraries logging through `logging` then emit Cloud Logging
records with trace context and stack traces like any other tracelog record.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING

from tracelog.core import attrs as a
from tracelog.core.levels import Level

if TYPE_CHECKING:
    from tracelog.core.attrs import Attr
    from tracelog.runtime.logger import Logger

# LogRecord attributes that are not user extras
_STANDARD_LOGRECORD_ATTRS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName",
    "levelname", "levelno", "lineno", "message", "module", "msecs", "msg", "name",
    "pathname", "process", "processName", "relativeCreated", "stack_info",
    "taskName", "thread", "threadName",
})


def level_from_stdlib(levelno: int) -> Level:
    """Map a `logging` level number onto the nearest tracelog Level at or below it."""
    if levelno >= logging.CRITICAL:
        return Level.PANIC
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class BridgeHandler(logging.Handler):
    """logging.Handler forwarding each record to a tracelog Logger.

    CRITICAL records are written at PANIC severity but never raise.
    """

    def __init__(self, logger: Logger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._logger.log(level_from_stdlib(record.levelno), record.getMessage(), *self._attrs(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def _attrs(self, record: logging.LogRecord) -> list[Attr]:
        attrs = [a.string("logger", record.name)]
        attrs += [a.any_(k, v) for k, v in record.__dict__.items() if k not in _STANDARD_LOGRECORD_ATTRS]
        if record.exc_info and (exc := record.exc_info[1]) is not None:
            attrs.append(a.error(exc))
            attrs.append(a.string("exc_info", "".join(traceback.format_exception(*record.exc_info))))
        return attrs
