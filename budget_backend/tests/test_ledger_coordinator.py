"""
Service-level tests for the ledger write path.

Covers recurring creation, scoped deletion, rule deactivation, transfer
validation and cache maintenance on write.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from budget_backend.app.core.exceptions import LedgerValidationError, ResourceNotFoundError
from budget_backend.app.domain.ledger.balance import BalanceCalculator
from budget_backend.app.domain.ledger.coordinator import LedgerCoordinator
from budget_backend.app.domain.ledger.lifecycle import DeleteScope, InstanceOf, OriginOf, Standalone, classify
from budget_backend.app.models.daily_balance import DailyBalance
from budget_backend.app.models.enums import AccountKind, TransactionType
from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction
from budget_backend.app.schemas.account import AccountCreate, AccountUpdate
from budget_backend.app.schemas.transaction import TransactionCreate, TransactionUpdate


async def _account(db, user, name="Checking", kind=AccountKind.ASSET, opening="1000.00"):
    return await LedgerCoordinator.create_account(
        db, user.id, AccountCreate(name=name, kind=kind, opening_balance=Decimal(opening))
    )


async def _count(db, model, *conditions):
    result = await db.execute(select(func.count(model.id)).where(*conditions))
    return result.scalar()


async def _rule_dates(db, rule_id):
    result = await db.execute(
        select(Transaction.date).where(Transaction.recurring_rule_id == rule_id).order_by(Transaction.date)
    )
    return list(result.scalars().all())


async def test_standalone_create(db_session, user):
    checking = await _account(db_session, user)
    txn = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("12.50"), date=date(2025, 3, 1),
    ))

    assert txn.id is not None
    assert txn.recurring_rule_id is None
    assert txn.currency == "USD"
    assert classify(txn, None) == Standalone()
    assert await _count(db_session, RecurringRule) == 0


async def test_recurring_create_generates_instances(db_session, user):
    checking = await _account(db_session, user)
    origin = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("50.00"),
        date=date(2025, 1, 15), description="Gym", is_recurring=True, frequency="monthly",
    ), horizon_months=3)

    rule = await db_session.get(RecurringRule, origin.recurring_rule_id)
    assert rule.origin_transaction_id == origin.id
    assert rule.start_date == date(2025, 1, 15)
    assert rule.active is True
    assert classify(origin, rule) == OriginOf(rule_id=rule.id)

    assert await _rule_dates(db_session, rule.id) == [date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 15)]

    instance = (await db_session.execute(
        select(Transaction).where(Transaction.recurring_rule_id == rule.id, Transaction.id != origin.id)
    )).scalars().first()
    assert classify(instance, rule) == InstanceOf(rule_id=rule.id)
    assert instance.description == "Gym"
    assert instance.amount == Decimal("50.00")


async def test_recurring_create_is_atomic(db_session, user, mocker):
    checking = await _account(db_session, user)
    mocker.patch(
        "budget_backend.app.domain.ledger.coordinator.expand_rule",
        side_effect=SQLAlchemyError("insert failed"),
    )

    with pytest.raises(SQLAlchemyError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=checking.id, type=TransactionType.INCOME, amount=Decimal("10.00"),
            date=date(2025, 1, 1), is_recurring=True,
        ))

    assert await _count(db_session, Transaction) == 0
    assert await _count(db_session, RecurringRule) == 0


async def test_end_date_before_start_rejected(db_session, user):
    checking = await _account(db_session, user)
    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("1.00"),
            date=date(2025, 5, 1), is_recurring=True, end_date=date(2025, 4, 1),
        ))


async def test_transfer_validation_persists_nothing(db_session, user):
    checking = await _account(db_session, user)
    savings = await _account(db_session, user, name="Savings", opening="0")

    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=checking.id, type=TransactionType.TRANSFER, amount=Decimal("5.00"), date=date(2025, 1, 1),
        ))
    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=checking.id, to_account_id=checking.id, type=TransactionType.TRANSFER,
            amount=Decimal("5.00"), date=date(2025, 1, 1),
        ))
    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=checking.id, to_account_id=savings.id, type=TransactionType.EXPENSE,
            amount=Decimal("5.00"), date=date(2025, 1, 1),
        ))

    assert await _count(db_session, Transaction) == 0


async def test_foreign_and_archived_accounts_rejected(db_session, user, other_user):
    mine = await _account(db_session, user)
    theirs = await _account(db_session, other_user, name="Theirs")

    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=theirs.id, type=TransactionType.INCOME, amount=Decimal("1.00"), date=date(2025, 1, 1),
        ))

    await LedgerCoordinator.archive_account(db_session, user.id, mine.id)
    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
            account_id=mine.id, type=TransactionType.INCOME, amount=Decimal("1.00"), date=date(2025, 1, 1),
        ))

    with pytest.raises(ResourceNotFoundError):
        await LedgerCoordinator.get_owned_account(db_session, user.id, theirs.id)


async def test_delete_this_only_keeps_rule_and_siblings(db_session, user):
    checking = await _account(db_session, user)
    origin = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("20.00"),
        date=date(2025, 1, 1), is_recurring=True, frequency="monthly",
    ), horizon_months=4)
    rule_id = origin.recurring_rule_id

    feb = (await db_session.execute(
        select(Transaction).where(Transaction.recurring_rule_id == rule_id, Transaction.date == date(2025, 2, 1))
    )).scalar_one()

    result = await LedgerCoordinator.delete_transaction(db_session, user.id, feb.id, DeleteScope.THIS_ONLY)

    assert result.deleted_ids == [feb.id]
    assert result.rule_deactivated is False
    assert await _rule_dates(db_session, rule_id) == [date(2025, 1, 1), date(2025, 3, 1), date(2025, 4, 1)]
    rule = await db_session.get(RecurringRule, rule_id)
    assert rule.active is True


async def test_delete_this_and_future(db_session, user):
    checking = await _account(db_session, user)
    origin = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("20.00"),
        date=date(2025, 1, 1), is_recurring=True, frequency="monthly",
    ), horizon_months=5)
    rule_id = origin.recurring_rule_id

    march = (await db_session.execute(
        select(Transaction).where(Transaction.recurring_rule_id == rule_id, Transaction.date == date(2025, 3, 1))
    )).scalar_one()

    result = await LedgerCoordinator.delete_transaction(db_session, user.id, march.id, DeleteScope.THIS_AND_FUTURE)

    assert len(result.deleted_ids) == 3
    assert result.rule_deactivated is True
    assert await _rule_dates(db_session, rule_id) == [date(2025, 1, 1), date(2025, 2, 1)]
    rule = await db_session.get(RecurringRule, rule_id)
    assert rule.active is False


async def test_delete_standalone_ignores_scope(db_session, user):
    checking = await _account(db_session, user)
    txn = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.INCOME, amount=Decimal("3.00"), date=date(2025, 1, 1),
    ))
    result = await LedgerCoordinator.delete_transaction(db_session, user.id, txn.id, DeleteScope.THIS_AND_FUTURE)

    assert result.deleted_ids == [txn.id]
    assert result.recurring_rule_id is None
    assert result.rule_deactivated is False


async def test_deactivate_rule_removes_pending_instances(db_session, user):
    checking = await _account(db_session, user)
    origin = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("9.99"),
        date=date(2025, 1, 10), is_recurring=True, frequency="weekly",
    ), horizon_months=1)

    rule, deleted = await LedgerCoordinator.deactivate_rule(
        db_session, user.id, origin.recurring_rule_id, as_of=date(2025, 1, 20)
    )

    assert rule.active is False
    assert len(deleted) == 3
    assert await _rule_dates(db_session, rule.id) == [date(2025, 1, 10), date(2025, 1, 17)]


async def test_update_leaving_transfer_clears_destination(db_session, user):
    checking = await _account(db_session, user)
    savings = await _account(db_session, user, name="Savings", opening="0")
    txn = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, to_account_id=savings.id, type=TransactionType.TRANSFER,
        amount=Decimal("100.00"), date=date(2025, 1, 5),
    ))

    updated = await LedgerCoordinator.update_transaction(
        db_session, user.id, txn.id, TransactionUpdate(type=TransactionType.EXPENSE)
    )
    assert updated.type == TransactionType.EXPENSE
    assert updated.to_account_id is None

    with pytest.raises(LedgerValidationError):
        await LedgerCoordinator.update_transaction(db_session, user.id, txn.id, TransactionUpdate(amount=None))


async def test_writes_keep_cache_equal_to_computed(db_session, user):
    checking = await _account(db_session, user)
    savings = await _account(db_session, user, name="Savings", opening="0")
    start, end = date(2025, 1, 1), date(2025, 1, 31)
    for account in (checking, savings):
        await BalanceCalculator.materialize(db_session, account.id, start, end)
    await db_session.commit()

    txn = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, to_account_id=savings.id, type=TransactionType.TRANSFER,
        amount=Decimal("200.00"), date=date(2025, 1, 10),
    ))
    await LedgerCoordinator.update_transaction(
        db_session, user.id, txn.id, TransactionUpdate(date=date(2025, 1, 5), amount=Decimal("150.00"))
    )
    await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=checking.id, type=TransactionType.EXPENSE, amount=Decimal("40.00"), date=date(2025, 1, 20),
    ))
    await LedgerCoordinator.update_account(
        db_session, user.id, checking.id, AccountUpdate(opening_balance=Decimal("900.00"))
    )

    for account in (checking, savings):
        rows = (await db_session.execute(
            select(DailyBalance).where(DailyBalance.account_id == account.id)
        )).scalars().all()
        assert len(rows) == 31
        for row in rows:
            computed = await BalanceCalculator.compute_balance(db_session, account.id, row.date)
            assert Decimal(row.balance) == computed

    assert await BalanceCalculator.get_balance(db_session, checking.id, end) == Decimal("710.00")
    assert await BalanceCalculator.get_balance(db_session, savings.id, end) == Decimal("150.00")


async def test_failed_cache_refresh_invalidates(db_session, user, mocker):
    checking = await _account(db_session, user)
    account_id = checking.id
    await BalanceCalculator.materialize(db_session, checking.id, date(2025, 1, 1), date(2025, 1, 10))
    await db_session.commit()

    mocker.patch.object(BalanceCalculator, "refresh_cache", side_effect=SQLAlchemyError("cache write failed"))

    txn = await LedgerCoordinator.create_transaction(db_session, user.id, TransactionCreate(
        account_id=account_id, type=TransactionType.EXPENSE, amount=Decimal("10.00"), date=date(2025, 1, 4),
    ))

    assert txn.id is not None
    remaining = (await db_session.execute(
        select(DailyBalance.date).where(DailyBalance.account_id == account_id)
    )).scalars().all()
    assert sorted(remaining) == [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3)]
    assert await BalanceCalculator.get_balance(db_session, account_id, date(2025, 1, 4)) == Decimal("990.00")
