"""
Recurring Rule API Endpoints.

Rules are created through POST /transactions with is_recurring set, or
directly from a template here. They can be inspected, edited and stopped.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from budget_backend.app.db.session import get_db
from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction
from budget_backend.app.schemas.recurring import (
    RecurringRuleCreate, RecurringRuleUpdate,
    RecurringRuleResponse, RecurringRuleListResponse, RuleDeactivateResponse,
)
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator

router = APIRouter(prefix="/recurring", tags=["Recurring Rules"])


async def _rule_response(db: AsyncSession, rule: RecurringRule) -> RecurringRuleResponse:
    result = await db.execute(
        select(func.count(Transaction.id)).where(Transaction.recurring_rule_id == rule.id)
    )
    response = RecurringRuleResponse.model_validate(rule)
    response.instance_count = result.scalar() or 0
    return response


@router.get("", response_model=RecurringRuleListResponse)
async def list_rules(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    query = select(RecurringRule).where(RecurringRule.user_id == user_id)
    if active is not None:
        query = query.where(RecurringRule.active == active)
    result = await db.execute(query.order_by(RecurringRule.id.asc()))

    return RecurringRuleListResponse(
        rules=[await _rule_response(db, rule) for rule in result.scalars().all()]
    )


@router.post("", response_model=RecurringRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    rule_data: RecurringRuleCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a recurring rule from a template.

    The first transaction is dated start_date; later instances are
    generated up to the configured horizon (or end_date, if sooner).
    """
    rule = await LedgerCoordinator.create_rule(db, user_id, rule_data)
    return await _rule_response(db, rule)


@router.get("/{rule_id}", response_model=RecurringRuleResponse)
async def get_rule(
    rule_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    rule = await LedgerCoordinator.get_owned_rule(db, user_id, rule_id)
    return await _rule_response(db, rule)


@router.patch("/{rule_id}", response_model=RecurringRuleResponse)
async def update_rule(
    rule_id: int,
    rule_data: RecurringRuleUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Edit a rule. Transactions it already generated are not rewritten."""
    rule = await LedgerCoordinator.update_rule(db, user_id, rule_id, rule_data)
    return await _rule_response(db, rule)


@router.delete("/{rule_id}", response_model=RuleDeactivateResponse)
async def deactivate_rule(
    rule_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Stop a recurring rule.

    Instances dated today or later are removed; past instances and the
    origin transaction (if already elapsed) are kept.
    """
    rule, deleted_ids = await LedgerCoordinator.deactivate_rule(db, user_id, rule_id)
    return RuleDeactivateResponse(rule=await _rule_response(db, rule), deleted_ids=deleted_ids)
