"""
Balance API Endpoints.

Point balances and daily series for one account. Values come from the
daily balance cache when present and are otherwise computed from history;
both paths produce identical numbers.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from budget_backend.app.db.session import get_db
from budget_backend.app.schemas.balance import BalanceResponse, BalanceSeriesResponse, DailyBalancePoint
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.core.exceptions import LedgerValidationError
from budget_backend.app.domain.ledger.balance import BalanceCalculator
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator

router = APIRouter(prefix="/accounts/{account_id}", tags=["Balances"])

MAX_SERIES_DAYS = 366 * 5


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise LedgerValidationError("end must not be before start", details={"start": start, "end": end})
    if (end - start).days + 1 > MAX_SERIES_DAYS:
        raise LedgerValidationError(
            f"Range exceeds {MAX_SERIES_DAYS} days",
            details={"start": start, "end": end},
        )


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    account_id: int,
    on: Optional[date] = Query(None, description="Calendar day, defaults to today"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Balance at end of day `on`, including transactions dated that day."""
    await LedgerCoordinator.get_owned_account(db, user_id, account_id)
    as_of = on or date.today()
    balance = await BalanceCalculator.get_balance(db, account_id, as_of)
    return BalanceResponse(account_id=account_id, date=as_of, balance=balance)


@router.get("/balances", response_model=BalanceSeriesResponse)
async def get_balance_series(
    account_id: int,
    start: date = Query(...),
    end: date = Query(...),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    await LedgerCoordinator.get_owned_account(db, user_id, account_id)
    _check_range(start, end)

    series = await BalanceCalculator.balance_range(db, account_id, start, end)
    return BalanceSeriesResponse(
        account_id=account_id,
        start=start,
        end=end,
        balances=[DailyBalancePoint(date=day, balance=value) for day, value in series],
    )


@router.post("/balances/materialize", response_model=BalanceSeriesResponse)
async def materialize_balances(
    account_id: int,
    start: date = Query(...),
    end: date = Query(...),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Write one cached balance per day in [start, end].

    Safe to repeat; overlapping ranges overwrite with the same values.
    """
    await LedgerCoordinator.get_owned_account(db, user_id, account_id)
    _check_range(start, end)

    series = await BalanceCalculator.materialize(db, account_id, start, end)
    await db.commit()

    return BalanceSeriesResponse(
        account_id=account_id,
        start=start,
        end=end,
        balances=[DailyBalancePoint(date=day, balance=value) for day, value in series],
    )
