"""Calendar-month arithmetic for deadline windows."""

import calendar
from datetime import datetime


def add_months(moment: datetime, months: int) -> datetime:
    """
    Shift ``moment`` by a number of calendar months (negative goes back).

    The day is clamped to the last day of the target month, so
    2024-08-31 minus 6 months is 2024-02-29.  Time of day and tzinfo are
    preserved.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def trailing_window_start(now: datetime, months: int) -> datetime:
    """Start of a trailing window of ``months`` calendar months ending at now."""
    if months < 0:
        raise ValueError(f"Window length cannot be negative: {months}")
    return add_months(now, -months)
