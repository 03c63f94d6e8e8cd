"""
Translation of SQLAlchemy / DBAPI failures into the kernel's typed errors.

Callers wrap one read operation in ``translate_db_errors(operation)``; any
SQLAlchemy error escaping the block is re-raised as a DataAccessError subclass
chained to the SQLAlchemy error.  Kernel errors pass through untouched.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)

from tracking_kernel.exceptions import QueryExecutionError, StoreUnavailableError
from tracking_kernel.logging_config import get_logger

logger = get_logger("db.errors")

# OperationalError covers both "server gone" and e.g. SQLite "no such table";
# these fragments mark the connectivity flavour.
_CONNECTIVITY_MARKERS = (
    "could not connect",
    "connection refused",
    "unable to open database",
    "server closed the connection",
    "connection reset",
    "timeout expired",
    "name or service not known",
    "could not translate host name",
    "terminating connection",
)


def is_connectivity_error(exc: SQLAlchemyError) -> bool:
    """True if the error means the store itself is unreachable."""
    if isinstance(exc, (DisconnectionError, PoolTimeoutError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in message for marker in _CONNECTIVITY_MARKERS)
    return False


@contextmanager
def translate_db_errors(operation: str) -> Generator[None, None, None]:
    """
    Re-raise SQLAlchemy errors from the wrapped block as DataAccessError.

    Raises:
        StoreUnavailableError: Connectivity failure.
        QueryExecutionError: Any other store-side failure.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        detail = str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)
        if is_connectivity_error(exc):
            logger.error(
                "store_unavailable",
                extra={"operation": operation},
                exc_info=True,
            )
            raise StoreUnavailableError(operation, detail) from exc
        logger.error(
            "query_execution_failed",
            extra={"operation": operation},
            exc_info=True,
        )
        raise QueryExecutionError(operation, detail) from exc
