"""
Balance Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List


class BalanceResponse(BaseModel):
    account_id: int
    date: date
    balance: Decimal


class DailyBalancePoint(BaseModel):
    date: date
    balance: Decimal


class BalanceSeriesResponse(BaseModel):
    account_id: int
    start: date
    end: date
    balances: List[DailyBalancePoint]
