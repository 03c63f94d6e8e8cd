"""
Module: tracking_kernel.logging_config
Responsibility: One JSON object per line for everything logged under the
    ``tracking_kernel`` namespace.  Records carry the report section and the
    ReportService operation that produced them, so a divergence warning can be
    traced back to the run that raised it.
Architecture position: Kernel root.  Imported by every layer; imports
    nothing from the kernel.

Invariants enforced:
    - Event names are the log message; payload fields go in ``extra``.
    - Decimal amounts are written as strings, never floats.
    - configure_logging() attaches its handler at most once.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Iterator, TextIO

LOGGER_NAMESPACE = "tracking_kernel"

_HANDLER_NAME = "tracking_kernel.json"

# report: section of the tracking report being built
# operation: ReportService method running it
CONTEXT_FIELDS = ("report", "operation")

_context: ContextVar[dict[str, str] | None] = ContextVar("tracking_log_context", default=None)

_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


class LogContext:
    """Report/operation tags added to every record logged inside bind()."""

    @staticmethod
    def current() -> dict[str, str]:
        return dict(_context.get() or {})

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """
        Tag records logged inside the block; nested binds override and restore.

        Raises:
            TypeError: For a field other than report / operation.
        """
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context fields: {unknown}")

        merged = LogContext.current()
        merged.update({key: value for key, value in fields.items() if value is not None})
        token = _context.set(merged)
        try:
            yield
        finally:
            _context.reset(token)

    @staticmethod
    def clear() -> None:
        _context.set(None)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    # Decimal amounts, payroll keys, ...
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Formats a record as ts/level/logger/message, context tags, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.current())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                payload["exc_code"] = code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``tracking_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def configure_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """
    Send tracking_kernel records as JSON lines to ``stream`` (stderr).

    Only the first call configures; later calls return the logger unchanged,
    so a CLI can pick the level before Database() calls this with defaults.
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def reset_logging() -> None:
    """Remove the JSON handler and restore the logger defaults (tests)."""
    logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in [h for h in logger.handlers if h.get_name() == _HANDLER_NAME]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
