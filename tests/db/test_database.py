"""
Tests for the Database context, money helpers and error translation.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import DisconnectionError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from tracking_kernel.db.engine import SNAPSHOT_ISOLATION_LEVEL, Database
from tracking_kernel.db.errors import is_connectivity_error, translate_db_errors
from tracking_kernel.db.types import round_money, to_money
from tracking_kernel.exceptions import (
    QueryExecutionError,
    RoutineNotFoundError,
    StoreUnavailableError,
)
from tracking_kernel.models import Department


class TestDatabase:
    def test_session_scope_commits(self, database):
        with database.session_scope() as s:
            s.add(Department(name="IT"))

        with database.session_scope() as s:
            assert s.execute(select(func.count()).select_from(Department)).scalar_one() == 1

    def test_session_scope_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.session_scope() as s:
                s.add(Department(name="IT"))
                s.flush()
                raise RuntimeError("abort")

        with database.session_scope() as s:
            assert s.execute(select(func.count()).select_from(Department)).scalar_one() == 0

    def test_sqlite_foreign_keys_enabled(self):
        db = Database.from_url("sqlite:///:memory:")
        try:
            with db.engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1
        finally:
            db.dispose()

    def test_in_memory_database_shared_across_sessions(self):
        db = Database.from_url("sqlite:///:memory:")
        try:
            db.create_tables()
            with db.session_scope() as s:
                s.add(Department(name="IT"))
            with db.session_scope() as s:
                assert s.execute(select(Department.name)).scalar_one() == "IT"
        finally:
            db.dispose()

    def test_dialect_name(self, database):
        assert database.dialect_name in {"sqlite", "postgresql", "mssql"}

    def test_snapshot_scope_requests_repeatable_read(self, database, monkeypatch):
        requested = []
        connection = Session.connection

        def recording_connection(session, *args, **kwargs):
            requested.append(kwargs.get("execution_options"))
            return connection(session)

        monkeypatch.setattr(Session, "connection", recording_connection)
        monkeypatch.setattr(Database, "dialect_name", property(lambda self: "postgresql"))

        with database.snapshot_scope() as s:
            s.execute(select(func.count()).select_from(Department))

        assert {"isolation_level": SNAPSHOT_ISOLATION_LEVEL} in requested

    def test_snapshot_scope_keeps_sqlite_default(self, monkeypatch):
        db = Database.from_url("sqlite:///:memory:")
        requested = []
        monkeypatch.setattr(
            Session, "connection", lambda session, *a, **kw: requested.append(kw)
        )
        try:
            with db.snapshot_scope():
                pass
        finally:
            db.dispose()

        assert requested == []

    @pytest.mark.postgres
    def test_snapshot_scope_isolation_on_postgres(self, database):
        if database.dialect_name != "postgresql":
            pytest.skip("requires DATABASE_URL pointing at PostgreSQL")

        with database.snapshot_scope() as s:
            assert s.connection().get_isolation_level() == SNAPSHOT_ISOLATION_LEVEL


class TestMoney:
    def test_to_money(self):
        assert to_money(Decimal("1.10")) == Decimal("1.10")
        assert to_money(5) == Decimal("5")
        assert to_money(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["1", None, True, object()])
    def test_to_money_rejects_non_numbers(self, value):
        with pytest.raises(TypeError):
            to_money(value)

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")
        assert round_money(Decimal("2.5"), decimal_places=0) == Decimal("3")


class TestTranslateDbErrors:
    def test_connectivity_error_becomes_store_unavailable(self):
        with pytest.raises(StoreUnavailableError) as exc_info:
            with translate_db_errors("list_assignments"):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        assert exc_info.value.operation == "list_assignments"
        assert "connection refused" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_statement_error_becomes_query_failure(self):
        with pytest.raises(QueryExecutionError):
            with translate_db_errors("list_assignments"):
                raise ProgrammingError("SELEC 1", {}, Exception("syntax error"))

    def test_kernel_errors_pass_through(self):
        with pytest.raises(RoutineNotFoundError):
            with translate_db_errors("list_assignments"):
                raise RoutineNotFoundError("ComputeBonus", "absent")

    @pytest.mark.parametrize(
        "exc, expected",
        [
            (DisconnectionError("gone"), True),
            (OperationalError("x", {}, Exception("unable to open database file")), True),
            (OperationalError("x", {}, Exception("no such table: employees")), False),
            (ProgrammingError("x", {}, Exception("syntax error")), False),
        ],
    )
    def test_is_connectivity_error(self, exc, expected):
        assert is_connectivity_error(exc) is expected
