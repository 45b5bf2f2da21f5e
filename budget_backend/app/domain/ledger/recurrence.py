"""
Recurrence Expander (Domain Logic).

Expands a recurring rule and its origin transaction into the concrete
future transactions the rule produces within a bounded horizon.

Stepping is always computed from the rule's start date
(start + k * step), so month-end starts do not drift:
    2025-01-31 monthly -> 2025-02-28, 2025-03-31, 2025-04-30, ...

The expander is pure: it builds unsaved Transaction objects and never
touches the database. It must be invoked once per rule creation; it does
not deduplicate against instances that already exist.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from budget_backend.app.core.config import settings
from budget_backend.app.domain.ledger.date_arithmetic import add_interval, DAY, WEEK, MONTH
from budget_backend.app.models.enums import RecurrenceFrequency
from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction

logger = logging.getLogger("budget.recurrence")


def normalize_frequency(value) -> RecurrenceFrequency:
    """Resolve a stored/user frequency, falling back to monthly."""
    if isinstance(value, RecurrenceFrequency):
        return value
    if isinstance(value, str):
        try:
            return RecurrenceFrequency(value.strip().lower())
        except ValueError:
            pass
    logger.warning("Unrecognized recurrence frequency %r, falling back to monthly", value)
    return RecurrenceFrequency.MONTHLY


def normalize_interval(value) -> int:
    """Resolve a stored/user interval, falling back to 1 for anything not a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        logger.warning("Invalid recurrence interval %r, falling back to 1", value)
        return 1
    return value


def step_for(frequency, interval) -> Tuple[str, int]:
    """Return the (unit, count) of a single recurrence step."""
    freq = normalize_frequency(frequency)
    n = normalize_interval(interval)

    if freq == RecurrenceFrequency.DAILY:
        return DAY, n
    if freq == RecurrenceFrequency.WEEKLY:
        return WEEK, n
    if freq == RecurrenceFrequency.BIWEEKLY:
        return WEEK, 2 * n
    if freq == RecurrenceFrequency.CUSTOM:
        return DAY, n
    return MONTH, n


def occurrence_dates(
    start_date: date,
    frequency,
    interval,
    horizon_months: Optional[int] = None,
    end_date: Optional[date] = None,
) -> List[date]:
    """
    List the dates a rule produces after its start date.

    Args:
        start_date: Inclusive start; the origin transaction's date (never returned)
        frequency: RecurrenceFrequency or its string value
        interval: Step multiplier (>= 1)
        horizon_months: Generation window; dates on or after start + horizon are excluded
        end_date: Optional inclusive end of the rule

    Returns:
        Ascending list of dates strictly after start_date
    """
    if horizon_months is None:
        horizon_months = settings.recurrence_horizon_months

    unit, n = step_for(frequency, interval)
    try:
        cutoff = add_interval(start_date, MONTH, max(horizon_months, 0))
    except (ValueError, OverflowError):
        # Horizon runs past the last representable day
        cutoff = None

    dates: List[date] = []
    k = 1
    while True:
        try:
            current = add_interval(start_date, unit, k * n)
        except (ValueError, OverflowError):
            break
        if cutoff is not None and current >= cutoff:
            break
        if end_date is not None and current > end_date:
            break
        dates.append(current)
        k += 1
    return dates


def expand_rule(
    base: Transaction,
    rule: RecurringRule,
    horizon_months: Optional[int] = None,
) -> List[Transaction]:
    """
    Build the future transactions for a rule from its origin transaction.

    Every template field is copied from the base transaction; only the
    identity, the date and the creation timestamp differ, and each instance
    carries the rule id.
    """
    dates = occurrence_dates(
        start_date=rule.start_date,
        frequency=rule.frequency,
        interval=rule.interval,
        horizon_months=horizon_months,
        end_date=rule.end_date,
    )

    return [
        Transaction(
            user_id=base.user_id,
            account_id=base.account_id,
            to_account_id=base.to_account_id,
            type=base.type,
            amount=base.amount,
            currency=base.currency,
            date=occurrence,
            description=base.description,
            category_id=base.category_id,
            cleared=base.cleared,
            recurring_rule_id=rule.id,
        )
        for occurrence in dates
    ]
