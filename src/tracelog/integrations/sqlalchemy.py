"""SQLAlchemy query logging through the tracelog Logger.

Example:
    >>> engine = create_engine("postgresql+psycopg://...")
    >>> SQLAlchemyLogger(log, level=SqlLogLevel.INFO).instrument(engine)

Every cursor execution is traced: failed statements log at ERROR, statements
slower than `slow_threshold` at WARN, and everything else at DEBUG when the
adapter level is INFO. For async engines pass the AsyncEngine; its sync
engine is instrumented.

NoResultFound is raised by the ORM (`Result.one()` and friends) after the
statement ran, so engine events never see it. `ignore_record_not_found`
filters errors handed to `trace` directly, e.g. from a session wrapper:

    >>> try:
    ...     row = session.execute(stmt).scalar_one()
    ... except NoResultFound as e:
    ...     sql_log.trace(begin, lambda: (str(stmt), 0), e)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import timedelta
from enum import IntEnum
from typing import TYPE_CHECKING, Callable

from sqlalchemy import event
from sqlalchemy.exc import NoResultFound

from tracelog.core import attrs as a

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from sqlalchemy.engine import Connection, Engine, ExceptionContext
    from sqlalchemy.ext.asyncio import AsyncEngine

    from tracelog.foundation.config import SqlLoggingSettings
    from tracelog.runtime.logger import Logger

_START_KEY = "tracelog_query_start"


class SqlLogLevel(IntEnum):
    """Adapter verbosity; each level includes the ones below it."""

    SILENT = 1
    ERROR = 2
    WARN = 3
    INFO = 4


@dataclass(frozen=True, slots=True)
class SQLAlchemyLogger:
    """Presents a Logger through an ORM-style logging interface.

    Args:
        logger: Destination logger
        level: Adapter verbosity
        slow_threshold: Statements slower than this log at WARN (zero disables)
        ignore_record_not_found: Do not log NoResultFound errors passed to `trace`
    """

    logger: Logger
    level: SqlLogLevel = SqlLogLevel.WARN
    slow_threshold: timedelta = timedelta(milliseconds=200)
    ignore_record_not_found: bool = True

    @classmethod
    def from_settings(cls, logger: Logger, settings: SqlLoggingSettings) -> SQLAlchemyLogger:
        return cls(
            logger,
            level=SqlLogLevel[settings.level],
            slow_threshold=timedelta(milliseconds=settings.slow_threshold_ms),
            ignore_record_not_found=settings.ignore_record_not_found,
        )

    def log_mode(self, level: SqlLogLevel) -> SQLAlchemyLogger:
        """Copy of this adapter at another verbosity."""
        return replace(self, level=level)

    def info(self, msg: str, *args: object, ctx: Context | None = None) -> None:
        if self.level >= SqlLogLevel.INFO:
            self.logger.debug(msg % args if args else msg, ctx=ctx)

    def warn(self, msg: str, *args: object, ctx: Context | None = None) -> None:
        if self.level >= SqlLogLevel.WARN:
            self.logger.warning(msg % args if args else msg, ctx=ctx)

    def error(self, msg: str, *args: object, ctx: Context | None = None) -> None:
        if self.level >= SqlLogLevel.ERROR:
            self.logger.error(msg % args if args else msg, ctx=ctx)

    def trace(
        self,
        begin: float,
        fc: Callable[[], tuple[str, int]],
        err: BaseException | None = None,
        *,
        ctx: Context | None = None,
    ) -> None:
        """Log one statement. `begin` is a perf_counter() reading, `fc` returns (sql, rows)."""
        if self.level <= SqlLogLevel.SILENT:
            return
        elapsed = time.perf_counter() - begin
        threshold = self.slow_threshold.total_seconds()

        if (err is not None and self.level >= SqlLogLevel.ERROR
                and not (self.ignore_record_not_found and isinstance(err, NoResultFound))):
            sql, rows = fc()
            self.logger.error("sql error trace", a.error(err), a.duration("elapsed", elapsed),
                              a.int_("rows", rows), a.string("sql", sql), ctx=ctx)
        elif threshold and elapsed > threshold and self.level >= SqlLogLevel.WARN:
            sql, rows = fc()
            self.logger.warning("sql slow query trace", a.duration("elapsed", elapsed),
                                a.int_("rows", rows), a.string("sql", sql), ctx=ctx)
        elif self.level >= SqlLogLevel.INFO:
            sql, rows = fc()
            self.logger.debug("sql debug trace", a.duration("elapsed", elapsed),
                              a.int_("rows", rows), a.string("sql", sql), ctx=ctx)

    # ─────────────────────────────────────────────────────────────────────────
    # Engine Events
    # ─────────────────────────────────────────────────────────────────────────

    def instrument(self, engine: Engine | AsyncEngine) -> None:
        """Trace every cursor execution on engine."""
        target = getattr(engine, "sync_engine", engine)
        event.listen(target, "before_cursor_execute", self._before_cursor_execute)
        event.listen(target, "after_cursor_execute", self._after_cursor_execute)
        event.listen(target, "handle_error", self._handle_error)

    def _before_cursor_execute(self, conn: Connection, cursor: object, statement: str, parameters: object,
                               context: object, executemany: bool) -> None:
        conn.info.setdefault(_START_KEY, []).append(time.perf_counter())

    def _after_cursor_execute(self, conn: Connection, cursor: object, statement: str, parameters: object,
                              context: object, executemany: bool) -> None:
        begin = conn.info[_START_KEY].pop()
        self.trace(begin, lambda: (statement, getattr(cursor, "rowcount", -1)))

    def _handle_error(self, exception_context: ExceptionContext) -> None:
        conn = exception_context.connection
        starts = conn.info.get(_START_KEY) if conn is not None else None
        begin = starts.pop() if starts else time.perf_counter()
        self.trace(begin, lambda: (exception_context.statement or "", -1), exception_context.original_exception)
