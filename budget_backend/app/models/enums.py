"""
Ledger enumerations.

Defines account kinds, transaction types and recurrence frequencies.
"""

import enum


class AccountKind(str, enum.Enum):
    """
    Account kind enumeration.

    Kinds:
        ASSET: Money the user holds (checking, savings, cash)
        DEBT: Money the user owes (credit cards, loans)
    """
    ASSET = "ASSET"
    DEBT = "DEBT"


class TransactionType(str, enum.Enum):
    """Transaction type enumeration."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"  # Moves money from account_id to to_account_id


class RecurrenceFrequency(str, enum.Enum):
    """
    Recurrence frequency enumeration.

    The rule's interval multiplies the base step:
        DAILY: interval days
        WEEKLY: interval weeks
        BIWEEKLY: 2 * interval weeks
        MONTHLY: interval months
        CUSTOM: interval days
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"
