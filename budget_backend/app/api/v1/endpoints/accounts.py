"""
Account API Endpoints.

Accounts are scoped to the authenticated user. Deleting an account only
archives it; its transactions and history stay intact.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from budget_backend.app.db.session import get_db
from budget_backend.app.models.account import Account
from budget_backend.app.schemas.account import AccountCreate, AccountUpdate, AccountResponse, AccountListResponse
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    account = await LedgerCoordinator.create_account(db, user_id, account_data)
    return AccountResponse.model_validate(account)


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    include_archived: bool = Query(False, description="Include archived accounts"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the user's accounts, active ones only unless include_archived is set."""
    conditions = [Account.user_id == user_id]
    if not include_archived:
        conditions.append(Account.archived == False)  # noqa: E712

    total_result = await db.execute(select(func.count(Account.id)).where(*conditions))
    total = total_result.scalar()

    result = await db.execute(
        select(Account).where(*conditions).order_by(Account.created_at.asc(), Account.id.asc())
    )
    accounts = result.scalars().all()

    return AccountListResponse(
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        total=total,
    )


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    account = await LedgerCoordinator.get_owned_account(db, user_id, account_id)
    return AccountResponse.model_validate(account)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    account_data: AccountUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Update account details.

    Changing the opening balance refreshes every cached balance of the
    account.
    """
    account = await LedgerCoordinator.update_account(db, user_id, account_id, account_data)
    return AccountResponse.model_validate(account)


@router.delete("/{account_id}", response_model=AccountResponse)
async def archive_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Archive an account (soft delete)."""
    account = await LedgerCoordinator.archive_account(db, user_id, account_id)
    return AccountResponse.model_validate(account)
