"""
Module: tracking_kernel.db.routines
Responsibility: Loading and installing the server-side bonus routine on
    PostgreSQL.  The routine body lives in sql/compute_bonus.sql so that it can
    be reviewed (and run by hand) as plain SQL.
Architecture position: Kernel > DB.  May import from db/ only.

Failure modes:
    - FileNotFoundError if the SQL file is missing from the sql/ directory.
    - ProgrammingError from the driver if the routine body does not compile.
"""

from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

from tracking_kernel.logging_config import get_logger

logger = get_logger("db.routines")

SQL_DIR = Path(__file__).parent / "sql"

BONUS_ROUTINE_FILE = "compute_bonus.sql"
DROP_BONUS_ROUTINE_FILE = "drop_compute_bonus.sql"

# Logical routine name -> function name installed on PostgreSQL
POSTGRES_FUNCTION_NAMES = {
    "computebonus": "compute_bonus",
}


def _load_sql_file(filename: str) -> str:
    """
    Load SQL content from a file in the sql/ directory.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = SQL_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Routine SQL file not found: {path}")
    return path.read_text(encoding="utf-8")


def postgres_function_name(routine_name: str) -> str:
    """
    Map a logical routine name to the PostgreSQL function that implements it.

    ``ComputeBonus`` -> ``compute_bonus``; names without a mapping are
    lower-cased (PostgreSQL folds unquoted identifiers).
    """
    return POSTGRES_FUNCTION_NAMES.get(routine_name.lower(), routine_name.lower())


def install_bonus_routine(engine: Engine) -> None:
    """Create or replace the compute_bonus() function."""
    sql = _load_sql_file(BONUS_ROUTINE_FILE)
    with engine.begin() as conn:
        conn.execute(text(sql))
    logger.info("routine_installed", extra={"routine": "compute_bonus"})


def uninstall_bonus_routine(engine: Engine) -> None:
    """Drop the compute_bonus() function if present."""
    sql = _load_sql_file(DROP_BONUS_ROUTINE_FILE)
    with engine.begin() as conn:
        conn.execute(text(sql))
    logger.info("routine_uninstalled", extra={"routine": "compute_bonus"})
