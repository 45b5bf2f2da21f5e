"""
Transaction API Endpoints.

Creating with is_recurring builds a recurring rule and its future
instances in one step. Deleting a recurring transaction takes a scope:
"this" removes only the one row, "future" also removes every later
instance of the same rule and stops the rule.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from budget_backend.app.db.session import get_db
from budget_backend.app.models.enums import TransactionType
from budget_backend.app.models.transaction import Transaction
from budget_backend.app.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionResponse,
    TransactionListResponse, TransactionDeleteResponse,
)
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator
from budget_backend.app.domain.ledger.lifecycle import DeleteScope, classify

router = APIRouter(prefix="/transactions", tags=["Transactions"])


async def _with_state(db: AsyncSession, txn: Transaction) -> TransactionResponse:
    rule = await LedgerCoordinator.get_rule_for(db, txn)
    response = TransactionResponse.model_validate(txn)
    response.recurrence_state = classify(txn, rule).state
    return response


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    account_id: Optional[int] = Query(None, description="Source or destination account"),
    type: Optional[TransactionType] = Query(None),
    category_id: Optional[int] = Query(None),
    recurring_rule_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the user's transactions, newest first."""
    conditions = [Transaction.user_id == user_id]
    if account_id is not None:
        conditions.append(or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id))
    if type is not None:
        conditions.append(Transaction.type == type)
    if category_id is not None:
        conditions.append(Transaction.category_id == category_id)
    if recurring_rule_id is not None:
        conditions.append(Transaction.recurring_rule_id == recurring_rule_id)
    if start_date is not None:
        conditions.append(Transaction.date >= start_date)
    if end_date is not None:
        conditions.append(Transaction.date <= end_date)

    total_result = await db.execute(select(func.count(Transaction.id)).where(*conditions))
    total = total_result.scalar()

    result = await db.execute(
        select(Transaction)
        .where(*conditions)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .offset(offset)
        .limit(limit)
    )
    transactions = result.scalars().all()

    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    txn_data: TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    txn = await LedgerCoordinator.create_transaction(db, user_id, txn_data)
    return await _with_state(db, txn)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    txn = await LedgerCoordinator.get_owned_transaction(db, user_id, transaction_id)
    return await _with_state(db, txn)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    txn_data: TransactionUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Edit this transaction only; other instances of its rule are unchanged."""
    txn = await LedgerCoordinator.update_transaction(db, user_id, transaction_id, txn_data)
    return await _with_state(db, txn)


@router.delete("/{transaction_id}", response_model=TransactionDeleteResponse)
async def delete_transaction(
    transaction_id: int,
    scope: DeleteScope = Query(DeleteScope.THIS_ONLY, description="this | future"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    result = await LedgerCoordinator.delete_transaction(db, user_id, transaction_id, scope)
    return TransactionDeleteResponse(
        deleted_ids=result.deleted_ids,
        recurring_rule_id=result.recurring_rule_id,
        rule_deactivated=result.rule_deactivated,
    )
