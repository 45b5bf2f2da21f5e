"""
Unit tests for the recurrence expander.
"""

import logging
from datetime import date
from decimal import Decimal

from budget_backend.app.core.config import settings
from budget_backend.app.domain.ledger.recurrence import (
    expand_rule, normalize_frequency, normalize_interval, occurrence_dates, step_for,
)
from budget_backend.app.models.enums import RecurrenceFrequency, TransactionType
from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction


def _base(on: date) -> Transaction:
    return Transaction(
        id=10,
        user_id=1,
        account_id=2,
        to_account_id=None,
        type=TransactionType.EXPENSE,
        amount=Decimal("50.00"),
        currency="USD",
        date=on,
        description="Gym",
        category_id=None,
        cleared=True,
    )


def _rule(start: date, frequency="monthly", interval=1, end_date=None) -> RecurringRule:
    return RecurringRule(
        id=7,
        user_id=1,
        account_id=2,
        template_type=TransactionType.EXPENSE,
        template_amount=Decimal("50.00"),
        frequency=frequency,
        interval=interval,
        start_date=start,
        end_date=end_date,
        origin_transaction_id=10,
        active=True,
    )


def test_monthly_within_three_month_horizon():
    base = _base(date(2025, 1, 15))
    instances = expand_rule(base, _rule(date(2025, 1, 15)), horizon_months=3)

    assert [t.date for t in instances] == [date(2025, 2, 15), date(2025, 3, 15)]
    for txn in instances:
        assert txn.recurring_rule_id == 7
        assert txn.id is None
        assert txn.amount == Decimal("50.00")
        assert txn.account_id == 2
        assert txn.description == "Gym"
        assert txn.type == TransactionType.EXPENSE


def test_month_end_start_does_not_drift():
    dates = occurrence_dates(date(2025, 1, 31), "monthly", 1, horizon_months=4)
    assert dates == [date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]


def test_origin_is_never_emitted():
    dates = occurrence_dates(date(2025, 1, 1), "daily", 1, horizon_months=1)
    assert date(2025, 1, 1) not in dates
    assert dates[0] == date(2025, 1, 2)
    assert dates[-1] == date(2025, 1, 31)


def test_end_date_is_inclusive_bound():
    dates = occurrence_dates(date(2025, 1, 1), "weekly", 1, horizon_months=12, end_date=date(2025, 1, 22))
    assert dates == [date(2025, 1, 8), date(2025, 1, 15), date(2025, 1, 22)]


def test_end_date_beyond_horizon_uses_horizon():
    dates = occurrence_dates(date(2025, 1, 10), "monthly", 1, horizon_months=2, end_date=date(2030, 1, 1))
    assert dates == [date(2025, 2, 10)]


def test_biweekly_and_custom_steps():
    assert step_for("biweekly", 1) == ("week", 2)
    assert step_for("custom", 10) == ("day", 10)

    biweekly = occurrence_dates(date(2025, 1, 3), "biweekly", 1, horizon_months=1)
    assert biweekly == [date(2025, 1, 17), date(2025, 1, 31)]

    custom = occurrence_dates(date(2025, 1, 1), "custom", 10, horizon_months=1)
    assert custom == [date(2025, 1, 11), date(2025, 1, 21), date(2025, 1, 31)]


def test_interval_multiplies_monthly_step():
    dates = occurrence_dates(date(2025, 1, 15), "monthly", 3, horizon_months=12)
    assert dates == [date(2025, 4, 15), date(2025, 7, 15), date(2025, 10, 15)]


def test_unknown_frequency_falls_back_to_monthly(caplog):
    with caplog.at_level(logging.WARNING, logger="budget.recurrence"):
        assert normalize_frequency("yearly") == RecurrenceFrequency.MONTHLY
        assert normalize_frequency(None) == RecurrenceFrequency.MONTHLY
    assert "falling back to monthly" in caplog.text

    dates = occurrence_dates(date(2025, 1, 15), "fortnightly", 1, horizon_months=3)
    assert dates == [date(2025, 2, 15), date(2025, 3, 15)]


def test_bad_interval_falls_back_to_one(caplog):
    with caplog.at_level(logging.WARNING, logger="budget.recurrence"):
        assert normalize_interval(0) == 1
        assert normalize_interval(-3) == 1
        assert normalize_interval("2") == 1
    assert normalize_interval(4) == 4
    assert "falling back to 1" in caplog.text


def test_default_horizon_comes_from_settings(mocker):
    mocker.patch.object(settings, "recurrence_horizon_months", 2)
    dates = occurrence_dates(date(2025, 1, 1), "monthly", 1)
    assert dates == [date(2025, 2, 1)]


def test_zero_horizon_generates_nothing():
    assert occurrence_dates(date(2025, 1, 1), "daily", 1, horizon_months=0) == []


def test_horizon_past_year_9999_stops_at_last_date():
    assert occurrence_dates(date(9999, 6, 1), "monthly", 1, 12) == [
        date(9999, month, 1) for month in range(7, 13)
    ]
    assert occurrence_dates(date(9999, 12, 30), "daily", 1, 1) == [date(9999, 12, 31)]
