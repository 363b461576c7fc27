"""femtologging helpers shared by the webhook service, CLI and reconciler.

Drover logs two shapes of message. Free-form operator messages go through
the level helpers (``log_info`` and friends) with percent-style templates.
Reconciliation events go through :func:`log_event`, which renders a stable
``[event] key=value`` line that is easy to grep and to alert on.

Example:
>>> from drover.logging import get_logger, log_event
>>> logger = get_logger(__name__)
>>> log_event(logger, "reconcile.event.received", event_kind="push")

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger

_DEFAULT_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Level names femtologging accepts."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class _SupportsLog(typ.Protocol):
    """The slice of the femtologging logger API Drover relies on."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return the canonical level name and whether ``level`` was rejected.

    Unknown or empty values fall back to ``INFO``.

    Parameters
    ----------
    level : str | None
        Level name as supplied by an operator, in any case.

    Returns
    -------
    tuple[str, bool]
        The level to use and ``True`` when the input was not recognised.

    """
    candidate = (level or "").strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return (_DEFAULT_LEVEL, True)


def configure_logging(level: str, *, force: bool = False) -> tuple[str, bool]:
    """Install the femtologging root handler at the normalized ``level``.

    Returns the same pair as :func:`normalize_log_level` so callers can warn
    about a rejected value after logging is live.
    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def _emit(
    logger: _SupportsLog,
    level: str,
    message: str,
    exc_info: object | None = None,
) -> None:
    logger.log(level, message, exc_info=exc_info, stack_info=False)


def log_debug(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log ``template % args`` at DEBUG."""
    _emit(logger, "DEBUG", template % args)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log ``template % args`` at INFO."""
    _emit(logger, "INFO", template % args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log ``template % args`` at WARNING."""
    _emit(logger, "WARNING", template % args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log ``template % args`` at ERROR.

    Parameters
    ----------
    logger : _SupportsLog
        Destination logger.
    template : str
        Percent-style message template.
    *args : object
        Values interpolated into ``template``.
    exc_info : object | None, optional
        Exception attached to the record, if any.

    """
    _emit(logger, "ERROR", template % args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log ``message`` at ERROR with ``exc`` attached."""
    _emit(logger, "ERROR", message, exc)


def _render_value(value: object) -> str:
    text = str(value)
    if not text or any(char.isspace() for char in text):
        return repr(text)
    return text


def format_event(event: str, fields: typ.Mapping[str, object]) -> str:
    """Render ``event`` and ``fields`` as a ``[event] key=value`` line.

    Fields keep their insertion order. Values that are empty or contain
    whitespace are quoted so every pair stays a single token.

    Examples
    --------
    >>> format_event("reconcile.batch.completed", {"target": "main", "failed": 0})
    '[reconcile.batch.completed] target=main failed=0'
    >>> format_event("reconcile.item.failed", {"error_message": "not mergeable"})
    "[reconcile.item.failed] error_message='not mergeable'"

    """
    pairs = " ".join(f"{key}={_render_value(value)}" for key, value in fields.items())
    return f"[{event}] {pairs}" if pairs else f"[{event}]"


def log_event(
    logger: _SupportsLog,
    event: str,
    *,
    level: str = _DEFAULT_LEVEL,
    exc_info: object | None = None,
    **fields: object,
) -> None:
    """Log a structured reconciliation event.

    Parameters
    ----------
    logger : _SupportsLog
        Destination logger.
    event : str
        Dotted event name, rendered in brackets.
    level : str, optional
        Level to emit at. Defaults to INFO.
    exc_info : object | None, optional
        Exception attached to the record, if any.
    **fields : object
        Key/value pairs appended after the event name.

    """
    _emit(logger, level, format_event(event, fields), exc_info)


__all__ = [
    "LogLevel",
    "configure_logging",
    "format_event",
    "get_logger",
    "log_debug",
    "log_error",
    "log_event",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
