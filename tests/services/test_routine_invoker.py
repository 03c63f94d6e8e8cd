"""
Tests for routine name validation and SqlRoutineInvoker dialect dispatch.

Dialect-specific statements are checked against a mocked session; the
PostgreSQL round trip runs only when DATABASE_URL points at PostgreSQL.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import ProgrammingError

from tracking_kernel.db.errors import translate_db_errors
from tracking_kernel.db.routines import postgres_function_name
from tracking_kernel.exceptions import (
    InvalidRoutineNameError,
    QueryExecutionError,
    RoutineNotFoundError,
)
from tracking_kernel.services.routine_invoker import (
    SqlRoutineInvoker,
    validate_routine_name,
)


class _DriverError(Exception):
    """DBAPI exception stand-in carrying a PostgreSQL error code."""

    def __init__(self, *args, pgcode=None):
        super().__init__(*args)
        self.pgcode = pgcode


def _mock_session(dialect: str, rows=()):
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect
    session.execute.return_value = [SimpleNamespace(_mapping=row) for row in rows]
    return session


class TestValidateRoutineName:
    @pytest.mark.parametrize("name", ["ComputeBonus", "compute_bonus", "_r1"])
    def test_identifiers_accepted(self, name):
        assert validate_routine_name(name) == name

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "1abc",
            "ComputeBonus; DROP TABLE employees",
            "compute_bonus()",
            "dbo.ComputeBonus",
            "name with space",
            "x" * 64,
            None,
        ],
    )
    def test_non_identifiers_rejected(self, name):
        with pytest.raises(InvalidRoutineNameError):
            validate_routine_name(name)


class TestPostgresFunctionName:
    def test_known_mapping(self):
        assert postgres_function_name("ComputeBonus") == "compute_bonus"

    def test_unknown_names_lowercased(self):
        assert postgres_function_name("OtherRoutine") == "otherroutine"


class TestSqlRoutineInvoker:
    def test_postgres_selects_from_function(self):
        session = _mock_session(
            "postgresql", rows=[{"employee_name": "A", "bonus_amount": Decimal("1.50")}]
        )

        rows = SqlRoutineInvoker(session).invoke("ComputeBonus")

        statement = session.execute.call_args[0][0]
        assert str(statement) == "SELECT * FROM compute_bonus()"
        assert rows == [{"employee_name": "A", "bonus_amount": Decimal("1.50")}]

    def test_mssql_executes_procedure(self):
        session = _mock_session("mssql")

        assert SqlRoutineInvoker(session).invoke("ComputeBonus") == []

        assert str(session.execute.call_args[0][0]) == "EXEC ComputeBonus"

    def test_sqlite_has_no_routines(self, database, session):
        if database.dialect_name != "sqlite":
            pytest.skip("SQLite-only behaviour")
        with pytest.raises(RoutineNotFoundError) as exc_info:
            SqlRoutineInvoker(session).invoke("ComputeBonus")
        assert "sqlite" in exc_info.value.reason

    def test_invalid_name_rejected_before_execution(self):
        session = _mock_session("postgresql")

        with pytest.raises(InvalidRoutineNameError):
            SqlRoutineInvoker(session).invoke("x; DROP TABLE employees")

        session.execute.assert_not_called()

    def test_missing_function_reported_as_not_found(self):
        session = _mock_session("postgresql")
        session.execute.side_effect = ProgrammingError(
            "SELECT * FROM compute_bonus()",
            {},
            _DriverError("function compute_bonus() does not exist", pgcode="42883"),
        )

        with pytest.raises(RoutineNotFoundError) as exc_info:
            SqlRoutineInvoker(session).invoke("ComputeBonus")

        assert exc_info.value.routine_name == "ComputeBonus"
        assert isinstance(exc_info.value.__cause__, ProgrammingError)

    @pytest.mark.parametrize(
        "message, pgcode",
        [
            ('relation "employees" does not exist', "42P01"),
            ("column e.performance_rating does not exist", "42703"),
        ],
    )
    def test_missing_object_inside_routine_is_a_query_failure(self, message, pgcode):
        session = _mock_session("postgresql")
        session.execute.side_effect = ProgrammingError(
            "SELECT * FROM compute_bonus()", {}, _DriverError(message, pgcode=pgcode)
        )

        with pytest.raises(QueryExecutionError) as exc_info:
            with translate_db_errors("compute_bonuses"):
                SqlRoutineInvoker(session).invoke("ComputeBonus")

        assert not isinstance(exc_info.value, RoutineNotFoundError)
        assert "does not exist" in exc_info.value.detail

    @pytest.mark.parametrize(
        "driver_error",
        [
            _DriverError(2812, b"Could not find stored procedure 'ComputeBonus'."),
            _DriverError(
                "42000",
                "[SQL Server]Could not find stored procedure 'ComputeBonus'. (2812) (SQLExecDirectW)",
            ),
        ],
    )
    def test_mssql_missing_procedure_reported_as_not_found(self, driver_error):
        session = _mock_session("mssql")
        session.execute.side_effect = ProgrammingError("EXEC ComputeBonus", {}, driver_error)

        with pytest.raises(RoutineNotFoundError):
            SqlRoutineInvoker(session).invoke("ComputeBonus")

    def test_mssql_other_errors_propagate(self):
        session = _mock_session("mssql")
        session.execute.side_effect = ProgrammingError(
            "EXEC ComputeBonus", {}, _DriverError(208, b"Invalid object name 'Employees'.")
        )

        with pytest.raises(ProgrammingError):
            SqlRoutineInvoker(session).invoke("ComputeBonus")

    def test_other_programming_errors_propagate(self):
        session = _mock_session("postgresql")
        session.execute.side_effect = ProgrammingError(
            "SELECT * FROM compute_bonus()", {}, Exception("permission denied for function")
        )

        with pytest.raises(ProgrammingError):
            SqlRoutineInvoker(session).invoke("ComputeBonus")


@pytest.mark.postgres
class TestPostgresBonusRoutine:
    """compute_bonus() installed by create_tables(), run for real."""

    @pytest.fixture(autouse=True)
    def _require_postgres(self, database):
        if database.dialect_name != "postgresql":
            pytest.skip("requires DATABASE_URL pointing at PostgreSQL")

    def test_formula(self, factory, database):
        dept = factory.department("IT")
        factory.employee(dept, name="Rated", salary=Decimal("1000"), performance_rating=Decimal("4.5"))
        factory.employee(dept, name="Unrated", salary=Decimal("5000"))

        with database.session_scope() as s:
            rows = SqlRoutineInvoker(s).invoke("ComputeBonus")

        assert rows == [
            {"employee_name": "Rated", "bonus_amount": Decimal("450.00")},
            {"employee_name": "Unrated", "bonus_amount": Decimal("0.00")},
        ]

    def test_missing_function(self, database):
        with pytest.raises(RoutineNotFoundError):
            with database.session_scope() as s:
                SqlRoutineInvoker(s).invoke("NoSuchRoutine")
