"""
Unit tests for calendar date arithmetic.
"""

from datetime import date, datetime

import pytest

from budget_backend.app.domain.ledger.date_arithmetic import (
    add_interval, add_months, iter_days, month_bounds, parse_month, to_calendar_day,
    DAY, WEEK, MONTH,
)


def test_add_days_and_weeks():
    assert add_interval(date(2025, 1, 15), DAY, 20) == date(2025, 2, 4)
    assert add_interval(date(2025, 12, 29), WEEK, 1) == date(2026, 1, 5)
    assert add_interval(date(2025, 3, 1), DAY, 0) == date(2025, 3, 1)


def test_add_month_clamps_to_month_end():
    assert add_interval(date(2025, 1, 31), MONTH, 1) == date(2025, 2, 28)
    assert add_interval(date(2024, 1, 31), MONTH, 1) == date(2024, 2, 29)
    assert add_interval(date(2025, 3, 31), MONTH, 1) == date(2025, 4, 30)


def test_add_months_crosses_year_boundary():
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
    assert add_months(date(2025, 1, 15), 12) == date(2026, 1, 15)


def test_unknown_unit_is_rejected():
    with pytest.raises(ValueError):
        add_interval(date(2025, 1, 1), "fortnight", 1)


def test_to_calendar_day_drops_time_of_day():
    assert to_calendar_day(datetime(2025, 5, 6, 23, 59)) == date(2025, 5, 6)
    assert to_calendar_day("2025-05-06T08:30:00") == date(2025, 5, 6)
    assert to_calendar_day(date(2025, 5, 6)) == date(2025, 5, 6)

    with pytest.raises(ValueError):
        to_calendar_day("not-a-date")


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2025, 2, 27), date(2025, 3, 2)))
    assert days == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 2)]
    assert list(iter_days(date(2025, 3, 2), date(2025, 3, 1))) == []


def test_month_helpers():
    assert parse_month("2024-02") == (2024, 2)
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    for bad in ("2024-13", "2024", "abcd-ef"):
        with pytest.raises(ValueError):
            parse_month(bad)


def test_iter_days_stops_at_last_representable_day():
    assert list(iter_days(date(9999, 12, 30), date.max)) == [date(9999, 12, 30), date(9999, 12, 31)]
    assert list(iter_days(date.max, date.max)) == [date.max]
