"""
Monthly Statement API Endpoints.

Statements are recorded as the issuer reported them, one per account and
billing period. They are informational and never feed the balance engine.
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from budget_backend.app.db.session import get_db
from budget_backend.app.models.account import Account
from budget_backend.app.models.statement import MonthlyStatement
from budget_backend.app.schemas.statement import StatementBulkCreate, StatementResponse, StatementListResponse
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.core.exceptions import LedgerValidationError
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator

router = APIRouter(prefix="/statements", tags=["Statements"])
logger = logging.getLogger("budget.statements")


@router.get("/{account_id}", response_model=StatementListResponse)
async def list_statements(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Statements for one account, most recent period first."""
    await LedgerCoordinator.get_owned_account(db, user_id, account_id)

    result = await db.execute(
        select(MonthlyStatement)
        .where(MonthlyStatement.account_id == account_id)
        .order_by(MonthlyStatement.period_start.desc(), MonthlyStatement.id.desc())
    )
    return StatementListResponse(
        statements=[StatementResponse.model_validate(s) for s in result.scalars().all()]
    )


@router.post("/bulk", response_model=StatementListResponse)
async def create_statements(
    bulk_data: StatementBulkCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Record several statements at once.

    The batch is all-or-nothing: one bad account reference or period
    rejects every statement in it.
    """
    for index, item in enumerate(bulk_data.statements):
        account = await db.get(Account, item.account_id)
        if account is None or account.user_id != user_id:
            raise LedgerValidationError(
                f"Invalid account reference: {item.account_id}",
                details={"index": index, "field": "account_id", "account_id": item.account_id},
            )
        if item.period_end < item.period_start:
            raise LedgerValidationError(
                "Statement period ends before it starts",
                details={"index": index, "period_start": item.period_start, "period_end": item.period_end},
            )

    statements = [MonthlyStatement(**item.model_dump()) for item in bulk_data.statements]
    db.add_all(statements)
    await db.commit()
    for statement in statements:
        await db.refresh(statement)

    logger.info("Recorded %d statements for user %s", len(statements), user_id)
    return StatementListResponse(statements=[StatementResponse.model_validate(s) for s in statements])
