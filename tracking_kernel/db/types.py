"""
Module: tracking_kernel.db.types
Responsibility: Column types and money helpers shared by every model.
    Centralizes salary precision and timestamp handling so that models and
    selectors agree on one representation.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Salaries and bonuses are Decimal, Numeric(18, 2).
    - Timestamps are timezone-aware UTC on the way in and on the way out,
      including on backends (SQLite) that drop the offset on storage.
"""

from datetime import timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware DateTime normalized to UTC.

    Contract:
        Binds aware datetimes converted to UTC; naive datetimes are treated
        as UTC.  Loaded values always carry ``timezone.utc``.

    Guarantees:
        - Comparisons between loaded values and ``Clock.now()`` never mix
          naive and aware datetimes.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def to_money(value) -> Decimal:
    """
    Coerce a numeric value coming back from the store into Decimal.

    Aggregates such as SUM() come back as Decimal on PostgreSQL but may be
    int or float on SQLite.  Floats go through ``str`` so that 5000.1 does
    not turn into 5000.1000000000003637978807091712951660156250.

    Raises:
        TypeError: If value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Not a numeric amount: {value!r}")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value to the given number of decimal places."""
    quantize_str = "0." + "0" * decimal_places if decimal_places else "0"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
