"""
Module: tracking_kernel.services.routine_invoker
Responsibility: Invocation of named server-side routines (stored procedures /
    set-returning functions) behind a one-method interface, so that the report
    service can be exercised against a fake in tests.
Architecture position: Kernel > Services.  May import from db/ and exceptions.

Invariants enforced:
    - Routine names are plain SQL identifiers; anything else is rejected
      before any SQL is built (the name cannot be a bind parameter).
    - A routine that does not exist is reported as RoutineNotFoundError,
      never as an empty result.

Failure modes:
    - InvalidRoutineNameError for non-identifier names.
    - RoutineNotFoundError when the driver's error code says the routine is
      undefined (PostgreSQL 42883, SQL Server 2812), or the dialect has no
      routine support (SQLite).
    - Any other SQLAlchemyError propagates for the caller to translate,
      including a missing table or column inside an existing routine.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from tracking_kernel.db.routines import postgres_function_name
from tracking_kernel.exceptions import InvalidRoutineNameError, RoutineNotFoundError
from tracking_kernel.logging_config import get_logger

logger = get_logger("services.routine_invoker")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

# SQLSTATE undefined_function (psycopg2 exposes it as ``pgcode``)
_PG_UNDEFINED_FUNCTION = "42883"
# SQL Server "Could not find stored procedure"
_MSSQL_MISSING_PROCEDURE = 2812


def _is_missing_routine(dialect: str, exc: ProgrammingError) -> bool:
    """True only when the driver reports the routine itself as undefined."""
    orig = exc.orig
    if dialect == "postgresql":
        return getattr(orig, "pgcode", None) == _PG_UNDEFINED_FUNCTION
    if dialect == "mssql":
        # pymssql puts the number first; pyodbc embeds "(2812)" in the message
        args = getattr(orig, "args", ())
        return any(
            arg == _MSSQL_MISSING_PROCEDURE or f"({_MSSQL_MISSING_PROCEDURE})" in str(arg)
            for arg in args
        )
    return False


def validate_routine_name(routine_name: str) -> str:
    """Return routine_name if it is a plain identifier, else raise."""
    if not isinstance(routine_name, str) or not _IDENTIFIER.match(routine_name):
        raise InvalidRoutineNameError(str(routine_name))
    return routine_name


class RoutineInvoker(ABC):
    """Invoke a routine by name and return its rows as mappings."""

    @abstractmethod
    def invoke(self, routine_name: str) -> list[Mapping[str, Any]]:
        ...


class SqlRoutineInvoker(RoutineInvoker):
    """
    RoutineInvoker backed by the caller's Session.

    Contract:
        PostgreSQL: ``SELECT * FROM <function>()`` where the function name is
        the snake_case counterpart of the logical name (ComputeBonus ->
        compute_bonus).  SQL Server: ``EXEC <name>``.  Other dialects have no
        stored routines.
    """

    def __init__(self, session: Session):
        self.session = session

    def _statement(self, routine_name: str) -> str:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return f"SELECT * FROM {postgres_function_name(routine_name)}()"
        if dialect == "mssql":
            return f"EXEC {routine_name}"
        raise RoutineNotFoundError(
            routine_name, f"dialect '{dialect}' does not support stored routines"
        )

    def invoke(self, routine_name: str) -> list[Mapping[str, Any]]:
        validate_routine_name(routine_name)
        dialect = self.session.get_bind().dialect.name
        statement = self._statement(routine_name)

        logger.debug("routine_invoked", extra={"routine": routine_name})
        try:
            result = self.session.execute(text(statement))
        except ProgrammingError as exc:
            if _is_missing_routine(dialect, exc):
                raise RoutineNotFoundError(routine_name, str(exc.orig)) from exc
            raise

        rows = [dict(row._mapping) for row in result]
        logger.debug(
            "routine_returned",
            extra={"routine": routine_name, "row_count": len(rows)},
        )
        return rows
