"""
Read-only view schemas: monthly summary, calendar and interest projection.
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List, Optional
from budget_backend.app.models.enums import AccountKind, TransactionType
from budget_backend.app.schemas.account import AccountResponse
from budget_backend.app.schemas.transaction import TransactionResponse


class SummaryTotals(BaseModel):
    income: Decimal
    expense: Decimal
    net: Decimal


class MonthlySummaryResponse(BaseModel):
    month: str
    account_kind: AccountKind
    period_start: date
    period_end: date
    accounts: List[AccountResponse]
    totals: SummaryTotals
    transactions: List[TransactionResponse]


class CalendarMarker(BaseModel):
    transaction_id: int
    type: TransactionType
    amount: Decimal


class CalendarDay(BaseModel):
    date: date
    markers: List[CalendarMarker]
    balance: Optional[Decimal] = None


class CalendarResponse(BaseModel):
    month: str
    account_id: Optional[int]
    days: List[CalendarDay]


class InterestProjection(BaseModel):
    account_id: int
    account_name: str
    current_balance: Decimal
    apr: Decimal
    projected_monthly_interest: Decimal
    projected_yearly_interest: Decimal
