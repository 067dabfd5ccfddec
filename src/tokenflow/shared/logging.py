"""Logging context for the OAuth engine.

Engine components never talk to a global logger directly. They are handed a
``LoggingContext`` that filters events by a minimum level, forwards them to
the standard library ``logging`` package, and optionally to an external sink
supplied by the application (for example a telemetry pipeline).

Log delivery is best-effort: a sink that raises is reported and ignored so
that a broken sink can never abort an authentication flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from tokenflow.auth.client.models.errors import ErrorCode

_stdlib_logger = logging.getLogger(__name__)


class LogLevel(IntEnum):
    """Engine log levels, most severe first.

    An event is emitted when its level is at or below the context level.
    ``NONE`` as the context level disables emission entirely.
    """

    NONE = -1
    ERROR = 0
    WARN = 1
    INFO = 2
    VERBOSE = 3
    DEBUG = 4


_STDLIB_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.VERBOSE: logging.DEBUG,
    LogLevel.DEBUG: logging.DEBUG,
}


@dataclass(frozen=True)
class LogEvent:
    """A single structured log event as delivered to an external sink."""

    tag: str | None
    message: str | None
    level: LogLevel
    detail: str | None = None
    error_code: ErrorCode | None = None
    cause: BaseException | None = None


LogSink = Callable[[LogEvent], None]


def format_log_message(
    message: str | None, detail: str | None = None, error_code: ErrorCode | None = None
) -> str:
    """Render an event as ``code:message detail`` for text logs."""
    text = message or ""
    if detail:
        text = f"{text} {detail}"
    if error_code is not None:
        text = f"{error_code.value}:{text}"
    return text


class LoggingContext:
    """Holds the minimum log level and the optional external sink."""

    def __init__(self, level: LogLevel = LogLevel.VERBOSE, sink: LogSink | None = None):
        self.level = level
        self.sink = sink

    def set_sink(self, sink: LogSink | None) -> None:
        """Install or remove the external sink."""
        self.sink = sink

    def is_enabled(self, level: LogLevel) -> bool:
        if self.level == LogLevel.NONE or level == LogLevel.NONE:
            return False
        return level <= self.level

    def log(
        self,
        tag: str | None,
        message: str | None,
        level: LogLevel,
        detail: str | None = None,
        error_code: ErrorCode | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Emit an event to stdlib logging and to the sink, if enabled."""
        if not self.is_enabled(level):
            return

        event = LogEvent(
            tag=tag,
            message=message,
            level=level,
            detail=detail,
            error_code=error_code,
            cause=cause,
        )
        self._emit_stdlib(event)

        if self.sink is not None:
            try:
                self.sink(event)
            except Exception as e:
                _stdlib_logger.warning(f"Log sink raised, event dropped: {e}")

    def get_logger(self, tag: str) -> EngineLogger:
        """Return a logger bound to ``tag`` that routes through this context."""
        return EngineLogger(self, tag)

    def _emit_stdlib(self, event: LogEvent) -> None:
        logging.getLogger(event.tag or __name__).log(
            _STDLIB_LEVELS[event.level],
            format_log_message(event.message, event.detail, event.error_code),
            exc_info=event.cause,
        )


class EngineLogger:
    """Per-module view of a ``LoggingContext``."""

    def __init__(self, context: LoggingContext, tag: str):
        self.context = context
        self.tag = tag

    def error(
        self,
        message: str,
        detail: str | None = None,
        error_code: ErrorCode | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.context.log(self.tag, message, LogLevel.ERROR, detail, error_code, cause)

    def warning(
        self,
        message: str,
        detail: str | None = None,
        error_code: ErrorCode | None = None,
    ) -> None:
        self.context.log(self.tag, message, LogLevel.WARN, detail, error_code)

    def info(self, message: str, detail: str | None = None) -> None:
        self.context.log(self.tag, message, LogLevel.INFO, detail)

    def verbose(self, message: str, detail: str | None = None) -> None:
        self.context.log(self.tag, message, LogLevel.VERBOSE, detail)

    def debug(self, message: str, detail: str | None = None) -> None:
        self.context.log(self.tag, message, LogLevel.DEBUG, detail)


_default_context: LoggingContext | None = None


def get_default_logging_context() -> LoggingContext:
    """Return the process-wide context, creating it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = LoggingContext()
    return _default_context
