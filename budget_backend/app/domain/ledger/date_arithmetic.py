"""
Calendar date arithmetic.

Civil (calendar) arithmetic on dates: adding days, weeks and months with
month-end clamping. Pure functions, no state.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Tuple, Union


DAY = "day"
WEEK = "week"
MONTH = "month"

UNITS = (DAY, WEEK, MONTH)


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to the last valid day of the given year/month."""
    return min(day, calendar.monthrange(year, month)[1])


def add_months(d: date, n: int) -> date:
    """Add n months to d, clamping the day to the target month's end."""
    month_index = d.month - 1 + n
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, clamp_day_to_month(year, month, d.day))


def add_interval(d: date, unit: str, n: int) -> date:
    """
    Return the calendar date n units after d.

    Args:
        d: Starting date
        unit: One of "day", "week", "month"
        n: Number of units (non-negative)

    Month addition clamps to the last valid day:
        add_interval(date(2025, 1, 31), "month", 1) -> date(2025, 2, 28)
    """
    if unit == DAY:
        return d + timedelta(days=n)
    if unit == WEEK:
        return d + timedelta(weeks=n)
    if unit == MONTH:
        return add_months(d, n)
    raise ValueError(f"Unknown interval unit: {unit}")


def to_calendar_day(value: Union[date, datetime, str]) -> date:
    """Normalize a date, datetime or ISO string to a calendar day (time-of-day dropped)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}")
    raise TypeError(f"Cannot convert {type(value).__name__} to a date")


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        if current == end:
            break
        current += timedelta(days=1)


def parse_month(month_str: str) -> Tuple[int, int]:
    """Parse 'YYYY-MM' into (year, month)."""
    try:
        year_str, month_part = month_str.split("-")
        year, month = int(year_str), int(month_part)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month: {month_str!r} (expected YYYY-MM)")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month_str!r} (expected YYYY-MM)")
    return year, month


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return (first_day, last_day) of the given month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
