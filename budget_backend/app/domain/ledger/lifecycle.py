"""
Recurrence lifecycle of a transaction.

Every transaction is exactly one of:
    Standalone        no recurring rule
    OriginOf(rule)    the user-created transaction a rule was built from
    InstanceOf(rule)  a transaction generated by the rule
"""

import enum
from dataclasses import dataclass
from typing import Optional, Union

from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction


@dataclass(frozen=True)
class Standalone:
    state: str = "STANDALONE"


@dataclass(frozen=True)
class OriginOf:
    rule_id: int
    state: str = "ORIGIN"


@dataclass(frozen=True)
class InstanceOf:
    rule_id: int
    state: str = "INSTANCE"


RecurrenceState = Union[Standalone, OriginOf, InstanceOf]


class DeleteScope(str, enum.Enum):
    """Deletion modes offered for recurring transactions."""
    THIS_ONLY = "this"
    THIS_AND_FUTURE = "future"


def classify(txn: Transaction, rule: Optional[RecurringRule] = None) -> RecurrenceState:
    """
    Derive the lifecycle state of a transaction.

    A rule id that no longer resolves to a rule is treated as standalone.
    """
    if txn.recurring_rule_id is None or rule is None:
        return Standalone()
    if rule.origin_transaction_id == txn.id:
        return OriginOf(rule_id=rule.id)
    return InstanceOf(rule_id=rule.id)
