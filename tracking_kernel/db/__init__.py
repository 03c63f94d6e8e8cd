"""Database layer - engine, base classes, types, and error translation."""

from tracking_kernel.db.base import Base
from tracking_kernel.db.engine import Database
from tracking_kernel.db.errors import translate_db_errors
from tracking_kernel.db.types import UTCDateTime, round_money, to_money

__all__ = [
    "Database",
    "Base",
    "translate_db_errors",
    "UTCDateTime",
    "round_money",
    "to_money",
]
