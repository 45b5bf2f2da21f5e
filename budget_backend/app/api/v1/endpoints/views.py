"""
Read-only view endpoints: monthly summary, calendar and interest projection.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from budget_backend.app.db.session import get_db
from budget_backend.app.models.enums import AccountKind
from budget_backend.app.schemas.views import CalendarResponse, InterestProjection, MonthlySummaryResponse
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.core.exceptions import LedgerValidationError
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator
from budget_backend.app.services.reporting import ReportingService

router = APIRouter(tags=["Views"])

MONTH_PATTERN = r"^\d{4}-\d{2}$"


@router.get("/summary", response_model=MonthlySummaryResponse)
async def monthly_summary(
    month: str = Query(..., pattern=MONTH_PATTERN, description="YYYY-MM"),
    account_kind: AccountKind = Query(AccountKind.ASSET),
    account_ids: Optional[List[int]] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Income, expense and net for the month. Transfers are not counted."""
    try:
        return await ReportingService.monthly_summary(db, user_id, month, account_kind, account_ids)
    except ValueError as e:
        raise LedgerValidationError(str(e), details={"field": "month"})


@router.get("/calendar", response_model=CalendarResponse)
async def calendar_month(
    month: str = Query(..., pattern=MONTH_PATTERN, description="YYYY-MM"),
    account_id: Optional[int] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    if account_id is not None:
        await LedgerCoordinator.get_owned_account(db, user_id, account_id)
    try:
        return await ReportingService.calendar_month(db, user_id, month, account_id)
    except ValueError as e:
        raise LedgerValidationError(str(e), details={"field": "month"})


@router.get("/interest/projected", response_model=List[InterestProjection])
async def projected_interest(
    account_kind: AccountKind = Query(AccountKind.DEBT),
    account_ids: Optional[List[int]] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await ReportingService.projected_interest(db, user_id, account_kind, account_ids)
