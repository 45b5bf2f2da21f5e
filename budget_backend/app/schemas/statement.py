"""
Monthly statement Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List


class StatementCreate(BaseModel):
    account_id: int
    period_start: date
    period_end: date
    statement_balance: Decimal = Field(..., max_digits=12, decimal_places=2)
    interest_charged: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class StatementBulkCreate(BaseModel):
    statements: List[StatementCreate] = Field(..., min_length=1, max_length=120)


class StatementResponse(BaseModel):
    id: int
    account_id: int
    period_start: date
    period_end: date
    statement_balance: Decimal
    interest_charged: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class StatementListResponse(BaseModel):
    statements: List[StatementResponse]
