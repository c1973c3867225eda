"""Logging helpers for femtologging integration.

Herald writes diagnostics to stderr only: stdout carries the Concourse
protocol document and must never receive log lines. Messages are
interpolated here, percent-style, before femtologging sees them.

Example:
>>> from herald.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Sending %s", "status")

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger

DEFAULT_LOG_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Level names femtologging accepts."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Map a ``source.log_level`` value onto a femtologging level name.

    Pipelines usually spell levels in lowercase (``debug``).

    Parameters
    ----------
    level : str | None
        Value from the request, possibly unset or padded.

    Returns
    -------
    tuple[str, bool]
        The level to use and whether ``level`` was unrecognised. An unset
        value selects :data:`DEFAULT_LOG_LEVEL` without being flagged.

    """
    requested = (level or "").strip().upper()
    if not requested:
        return (DEFAULT_LOG_LEVEL, False)
    if requested in LogLevel.__members__:
        return (requested, False)
    return (DEFAULT_LOG_LEVEL, True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Install the stderr handler at the requested level.

    Returns the same pair as :func:`normalize_log_level` so the caller can
    warn about an unrecognised level once logging works.
    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


class _SupportsLog(typ.Protocol):
    """The part of a femtologging logger herald calls."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: LogLevel,
    message: str,
    exc: BaseException | None = None,
) -> None:
    logger.log(level.value, message, exc_info=exc, stack_info=False)


def log_debug(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log ``template % args`` at DEBUG."""
    _emit(logger, LogLevel.DEBUG, template % args)


def log_info(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log ``template % args`` at INFO."""
    _emit(logger, LogLevel.INFO, template % args)


def log_warning(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log ``template % args`` at WARNING."""
    _emit(logger, LogLevel.WARNING, template % args)


def log_error(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log ``template % args`` at ERROR."""
    _emit(logger, LogLevel.ERROR, template % args)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log ``message`` at ERROR with ``exc`` attached for its traceback.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the record.
    message : str
        Pre-formatted description of what failed.
    exc : BaseException
        The exception, passed to femtologging as ``exc_info``.

    """
    _emit(logger, LogLevel.ERROR, message, exc)


__all__ = [
    "DEFAULT_LOG_LEVEL",
    "configure_logging",
    "get_logger",
    "log_debug",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
