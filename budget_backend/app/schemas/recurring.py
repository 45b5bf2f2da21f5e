"""
Recurring rule Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
import datetime as dt
from decimal import Decimal
from typing import Optional, List
from budget_backend.app.domain.ledger.date_arithmetic import to_calendar_day
from budget_backend.app.models.enums import TransactionType


class RecurringRuleCreate(BaseModel):
    """
    Schema for creating a rule directly.

    The origin transaction is stamped from the template on start_date and
    the future instances are generated alongside it.
    """
    account_id: int
    to_account_id: Optional[int] = Field(None, description="Destination account (TRANSFER only)")
    template_type: TransactionType
    template_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    template_desc: Optional[str] = Field(None, max_length=1000)
    template_category_id: Optional[int] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    cleared: bool = True
    frequency: str = Field("monthly", description="daily | weekly | biweekly | monthly | custom")
    interval: int = Field(1, ge=1)
    start_date: dt.date
    end_date: Optional[dt.date] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_day(cls, value):
        if isinstance(value, (dt.date, str)):
            return to_calendar_day(value)
        return value


class RecurringRuleUpdate(BaseModel):
    """
    Schema for editing a rule.

    Only the stored rule changes; transactions it already generated keep
    their values.
    """
    template_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    template_desc: Optional[str] = Field(None, max_length=1000)
    template_category_id: Optional[int] = None
    frequency: Optional[str] = None
    interval: Optional[int] = Field(None, ge=1)
    end_date: Optional[dt.date] = None
    active: Optional[bool] = None

    @field_validator("end_date", mode="before")
    @classmethod
    def normalize_day(cls, value):
        if isinstance(value, (dt.date, str)):
            return to_calendar_day(value)
        return value


class RecurringRuleResponse(BaseModel):
    id: int
    user_id: int
    account_id: int
    template_type: TransactionType
    template_amount: Decimal
    template_desc: Optional[str]
    template_category_id: Optional[int]
    template_to_account_id: Optional[int]
    frequency: str
    interval: int
    start_date: dt.date
    end_date: Optional[dt.date]
    origin_transaction_id: Optional[int]
    active: bool
    created_at: Optional[dt.datetime]
    instance_count: int = 0

    class Config:
        from_attributes = True


class RecurringRuleListResponse(BaseModel):
    rules: List[RecurringRuleResponse]


class RuleDeactivateResponse(BaseModel):
    rule: RecurringRuleResponse
    deleted_ids: List[int]
