"""
Module: tracking_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.
Architecture position: Kernel > DB.  May import from db/base.py and
    db/routines.py.  MUST NOT import from services/, selectors/, domain/, or
    outer layers (create_tables imports models to populate metadata).

Invariants enforced:
    - No process-wide connection state.  A Database instance owns one engine
      and one session factory and is passed explicitly to whoever needs it.
    - Every unit of work gets its own short-lived session (session_scope()).
      Reads that must see one snapshot use snapshot_scope() (REPEATABLE READ
      on top of the READ COMMITTED default).
    - Foreign keys are enforced on SQLite too (PRAGMA foreign_keys=ON on
      every new DBAPI connection).

Failure modes:
    - sqlalchemy.exc.OperationalError surfaces on first use if the store is
      unreachable (engine creation itself is lazy).
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tracking_config.schema import DatabaseConfig
from tracking_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

# Isolation for multi-statement reads that must agree with each other
SNAPSHOT_ISOLATION_LEVEL = "REPEATABLE READ"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(config: DatabaseConfig) -> Engine:
    if config.url.startswith("sqlite"):
        kwargs: dict = {
            "echo": config.echo,
            "connect_args": {"check_same_thread": False},
        }
        if ":memory:" in config.url or config.url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection, otherwise every session sees an empty DB
            kwargs["poolclass"] = StaticPool
        engine = create_engine(config.url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        config.url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_pre_ping=config.pool_pre_ping,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        isolation_level="READ COMMITTED",
    )


class Database:
    """
    Database context: one engine plus its session factory.

    Contract:
        Constructed from a DatabaseConfig and handed to services by their
        constructors.  Services never reach for a global engine.

    Guarantees:
        - session_scope() commits on success, rolls back on error, and
          always closes the session.
        - dispose() releases every pooled connection.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = _build_engine(config)
        self._session_factory = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

        configure_logging()
        logger.info(
            "engine_initialized",
            extra={
                "dialect": self.engine.dialect.name,
                "pool_size": config.pool_size,
                "echo": config.echo,
            },
        )

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "Database":
        """Build a Database with default pool settings for the given URL."""
        return cls(DatabaseConfig(url=database_url, echo=echo))

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def get_session(self) -> Session:
        """Get a new session. The caller owns closing it."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Postconditions: On normal exit, session is committed and closed.
            On exception, session is rolled back and closed.  The exception
            is re-raised to the caller.

        Usage:
            with database.session_scope() as session:
                session.add(entity)
        """
        session = self.get_session()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        finally:
            session.close()

    @contextmanager
    def snapshot_scope(self) -> Generator[Session, None, None]:
        """
        session_scope() whose statements all read one snapshot.

        On server databases the transaction runs at REPEATABLE READ, so a
        commit landing between two statements is not visible to the second.
        SQLite transactions are already serializable and keep the default.
        """
        with self.session_scope() as session:
            if self.dialect_name != "sqlite":
                session.connection(
                    execution_options={"isolation_level": SNAPSHOT_ISOLATION_LEVEL}
                )
            yield session

    def create_tables(self) -> None:
        """
        Create all tables defined by the models.

        On PostgreSQL the bonus routine is installed as well.
        """
        from tracking_kernel.db.base import Base
        import tracking_kernel.models  # noqa: F401  (populates Base.metadata)

        Base.metadata.create_all(self.engine)
        logger.info(
            "tables_created",
            extra={"tables": sorted(Base.metadata.tables.keys())},
        )

        if self.dialect_name == "postgresql":
            from tracking_kernel.db.routines import install_bonus_routine

            install_bonus_routine(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from tracking_kernel.db.base import Base
        import tracking_kernel.models  # noqa: F401

        if self.dialect_name == "postgresql":
            from tracking_kernel.db.routines import uninstall_bonus_routine

            uninstall_bonus_routine(self.engine)

        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()
