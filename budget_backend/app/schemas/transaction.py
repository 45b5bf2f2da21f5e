"""
Transaction Pydantic schemas.

Dates are calendar days; datetimes are accepted and their time-of-day is
dropped.
"""

from pydantic import BaseModel, Field, field_validator
import datetime as dt
from decimal import Decimal
from typing import Optional, List
from budget_backend.app.domain.ledger.date_arithmetic import to_calendar_day
from budget_backend.app.models.enums import TransactionType


def _calendar_day(value):
    if isinstance(value, (dt.date, str)):
        return to_calendar_day(value)
    return value


class TransactionCreate(BaseModel):
    """
    Schema for creating a transaction.

    Setting is_recurring creates a recurring rule from this transaction and
    generates its future instances.
    """
    account_id: int = Field(..., description="Source account")
    to_account_id: Optional[int] = Field(None, description="Destination account (TRANSFER only)")
    type: TransactionType
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Defaults to the account currency")
    date: dt.date
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    cleared: bool = True

    # Recurrence
    is_recurring: bool = False
    frequency: Optional[str] = Field("monthly", description="daily | weekly | biweekly | monthly | custom")
    interval: int = Field(1, ge=1, description="Step multiplier; for custom, number of days")
    end_date: Optional[dt.date] = Field(None, description="Inclusive last date for generated instances")

    @field_validator("date", "end_date", mode="before")
    @classmethod
    def normalize_day(cls, value):
        return _calendar_day(value)


class TransactionUpdate(BaseModel):
    """Schema for editing a single transaction (recurring siblings are untouched)."""
    account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    date: Optional[dt.date] = None
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    cleared: Optional[bool] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_day(cls, value):
        return _calendar_day(value)


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: int
    user_id: int
    account_id: int
    to_account_id: Optional[int]
    type: TransactionType
    amount: Decimal
    currency: str
    date: dt.date
    description: Optional[str]
    category_id: Optional[int]
    cleared: bool
    recurring_rule_id: Optional[int]
    created_at: Optional[dt.datetime]
    recurrence_state: Optional[str] = Field(None, description="STANDALONE | ORIGIN | INSTANCE")

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int
    limit: int
    offset: int


class TransactionDeleteResponse(BaseModel):
    deleted_ids: List[int]
    recurring_rule_id: Optional[int] = None
    rule_deactivated: bool = False
