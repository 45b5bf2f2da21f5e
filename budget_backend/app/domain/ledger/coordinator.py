"""
Ledger Coordinator (Domain Logic).

Write path for accounts and transactions. Arbitrates recurring-rule
creation and deletion semantics and keeps the daily balance cache in step
with every write.

Flow for a recurring create (one database transaction, committed once):
1. Validate accounts, category and type/destination invariants
2. Persist the origin transaction (flush)
3. Persist the rule built from it (flush)
4. Link the origin to the rule
5. Expand and persist the future instances (flush)
6. Commit, then refresh cached balances for every touched account

A failed write rolls back completely; a failed cache refresh is logged and
the affected cache range is dropped so stale values are never served.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_backend.app.core.exceptions import LedgerValidationError, ResourceNotFoundError
from budget_backend.app.domain.ledger.balance import BalanceCalculator
from budget_backend.app.domain.ledger.lifecycle import DeleteScope, Standalone, classify
from budget_backend.app.domain.ledger.recurrence import expand_rule, normalize_frequency, normalize_interval
from budget_backend.app.models.account import Account
from budget_backend.app.models.category import Category
from budget_backend.app.models.enums import TransactionType
from budget_backend.app.models.recurring_rule import RecurringRule
from budget_backend.app.models.transaction import Transaction
from budget_backend.app.schemas.account import AccountCreate, AccountUpdate
from budget_backend.app.schemas.recurring import RecurringRuleCreate, RecurringRuleUpdate
from budget_backend.app.schemas.transaction import TransactionCreate, TransactionUpdate

logger = logging.getLogger("budget.ledger")

NON_NULLABLE_FIELDS = ("account_id", "type", "amount", "currency", "date", "cleared")


@dataclass
class DeleteResult:
    deleted_ids: List[int] = field(default_factory=list)
    recurring_rule_id: Optional[int] = None
    rule_deactivated: bool = False


def _track(touched: Dict[int, date], account_id: Optional[int], from_date: date) -> None:
    """Remember the earliest date from which an account's cache must be refreshed."""
    if account_id is None:
        return
    current = touched.get(account_id)
    if current is None or from_date < current:
        touched[account_id] = from_date


class LedgerCoordinator:

    # Ownership lookups (foreign resources are reported as absent)

    @staticmethod
    async def get_owned_account(db: AsyncSession, user_id: int, account_id: int) -> Account:
        account = await db.get(Account, account_id)
        if account is None or account.user_id != user_id:
            raise ResourceNotFoundError("Account", account_id)
        return account

    @staticmethod
    async def get_owned_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> Transaction:
        txn = await db.get(Transaction, transaction_id)
        if txn is None or txn.user_id != user_id:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return txn

    @staticmethod
    async def get_owned_rule(db: AsyncSession, user_id: int, rule_id: int) -> RecurringRule:
        rule = await db.get(RecurringRule, rule_id)
        if rule is None or rule.user_id != user_id:
            raise ResourceNotFoundError("Recurring rule", rule_id)
        return rule

    @staticmethod
    async def get_rule_for(db: AsyncSession, txn: Transaction) -> Optional[RecurringRule]:
        if txn.recurring_rule_id is None:
            return None
        return await db.get(RecurringRule, txn.recurring_rule_id)

    # Validation

    @staticmethod
    async def _writable_account(
        db: AsyncSession,
        user_id: int,
        account_id: int,
        field_name: str,
        allow_archived: bool = False,
    ) -> Account:
        account = await db.get(Account, account_id)
        if account is None or account.user_id != user_id:
            raise LedgerValidationError(
                f"Invalid account reference: {account_id}",
                details={"field": field_name, "account_id": account_id},
            )
        if account.archived and not allow_archived:
            raise LedgerValidationError(
                f"Account {account_id} is archived",
                details={"field": field_name, "account_id": account_id},
            )
        return account

    @staticmethod
    async def validate_write(
        db: AsyncSession,
        user_id: int,
        txn_type: TransactionType,
        account_id: int,
        to_account_id: Optional[int],
        category_id: Optional[int],
        unchanged_accounts: Iterable[int] = (),
    ) -> Tuple[Account, Optional[Account]]:
        """
        Enforce the transaction invariants before anything is written.

        TRANSFER needs a destination distinct from the source; INCOME and
        EXPENSE must not have one. Accounts must belong to the user and be
        active, except accounts the transaction already referenced.
        """
        if txn_type == TransactionType.TRANSFER:
            if to_account_id is None:
                raise LedgerValidationError(
                    "Transfers require a destination account",
                    details={"field": "to_account_id"},
                )
            if to_account_id == account_id:
                raise LedgerValidationError(
                    "Transfer destination must differ from the source account",
                    details={"field": "to_account_id"},
                )
        elif to_account_id is not None:
            raise LedgerValidationError(
                f"{TransactionType(txn_type).value} transactions cannot have a destination account",
                details={"field": "to_account_id"},
            )

        unchanged = set(unchanged_accounts)
        source = await LedgerCoordinator._writable_account(
            db, user_id, account_id, "account_id", allow_archived=account_id in unchanged
        )
        destination = None
        if to_account_id is not None:
            destination = await LedgerCoordinator._writable_account(
                db, user_id, to_account_id, "to_account_id", allow_archived=to_account_id in unchanged
            )

        if category_id is not None:
            category = await db.get(Category, category_id)
            if category is None or category.user_id != user_id:
                raise LedgerValidationError(
                    f"Invalid category reference: {category_id}",
                    details={"field": "category_id"},
                )

        return source, destination

    # Accounts

    @staticmethod
    async def create_account(db: AsyncSession, user_id: int, payload: AccountCreate) -> Account:
        account = Account(user_id=user_id, archived=False, **payload.model_dump())
        db.add(account)
        await db.commit()
        await db.refresh(account)
        logger.info("Account %s created for user %s", account.id, user_id)
        return account

    @staticmethod
    async def update_account(db: AsyncSession, user_id: int, account_id: int, payload: AccountUpdate) -> Account:
        account = await LedgerCoordinator.get_owned_account(db, user_id, account_id)

        changes = payload.model_dump(exclude_unset=True)
        for name in ("name", "currency", "opening_balance"):
            if name in changes and changes[name] is None:
                raise LedgerValidationError(f"{name} cannot be null", details={"field": name})

        opening_changed = (
            "opening_balance" in changes and changes["opening_balance"] != account.opening_balance
        )
        for name, value in changes.items():
            setattr(account, name, value)
        await db.commit()

        # Opening balance shifts every day of the ledger
        if opening_changed:
            await LedgerCoordinator.refresh_accounts(db, {account.id: date.min})

        await db.refresh(account)
        return account

    @staticmethod
    async def archive_account(db: AsyncSession, user_id: int, account_id: int) -> Account:
        account = await LedgerCoordinator.get_owned_account(db, user_id, account_id)
        account.archived = True
        await db.commit()
        await db.refresh(account)
        logger.info("Account %s archived", account.id)
        return account

    # Transactions

    @staticmethod
    async def create_transaction(
        db: AsyncSession,
        user_id: int,
        payload: TransactionCreate,
        horizon_months: Optional[int] = None,
    ) -> Transaction:
        """
        Create a transaction; when flagged recurring, also create its rule and
        future instances atomically.
        """
        source, _ = await LedgerCoordinator.validate_write(
            db, user_id, payload.type, payload.account_id, payload.to_account_id, payload.category_id
        )
        if payload.is_recurring and payload.end_date is not None and payload.end_date < payload.date:
            raise LedgerValidationError(
                "Recurring end date cannot be before the transaction date",
                details={"field": "end_date"},
            )

        txn = Transaction(
            user_id=user_id,
            account_id=payload.account_id,
            to_account_id=payload.to_account_id,
            type=payload.type,
            amount=payload.amount,
            currency=payload.currency or source.currency,
            date=payload.date,
            description=payload.description,
            category_id=payload.category_id,
            cleared=payload.cleared,
        )

        generated = 0
        try:
            db.add(txn)
            await db.flush()

            if payload.is_recurring:
                rule = RecurringRule(
                    user_id=user_id,
                    account_id=txn.account_id,
                    template_type=txn.type,
                    template_amount=txn.amount,
                    template_desc=txn.description,
                    template_category_id=txn.category_id,
                    template_to_account_id=txn.to_account_id,
                    frequency=normalize_frequency(payload.frequency).value,
                    interval=normalize_interval(payload.interval),
                    start_date=txn.date,
                    end_date=payload.end_date,
                    origin_transaction_id=txn.id,
                    active=True,
                )
                db.add(rule)
                await db.flush()

                txn.recurring_rule_id = rule.id
                instances = expand_rule(txn, rule, horizon_months)
                db.add_all(instances)
                await db.flush()
                generated = len(instances)

            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Transaction create rolled back for user %s", user_id)
            raise

        if generated:
            logger.info(
                "Recurring rule %s created from transaction %s with %d instances",
                txn.recurring_rule_id, txn.id, generated,
            )

        touched: Dict[int, date] = {}
        _track(touched, txn.account_id, txn.date)
        _track(touched, txn.to_account_id, txn.date)
        await LedgerCoordinator.refresh_accounts(db, touched)

        await db.refresh(txn)
        return txn

    @staticmethod
    async def update_transaction(
        db: AsyncSession,
        user_id: int,
        transaction_id: int,
        payload: TransactionUpdate,
    ) -> Transaction:
        """
        Edit one transaction. Recurring siblings and the rule are not touched.
        """
        txn = await LedgerCoordinator.get_owned_transaction(db, user_id, transaction_id)
        changes = payload.model_dump(exclude_unset=True)

        for name in NON_NULLABLE_FIELDS:
            if name in changes and changes[name] is None:
                raise LedgerValidationError(f"{name} cannot be null", details={"field": name})

        new_type = changes.get("type", txn.type)
        new_account_id = changes.get("account_id", txn.account_id)
        if "to_account_id" in changes:
            new_to_account_id = changes["to_account_id"]
        elif new_type != TransactionType.TRANSFER:
            new_to_account_id = None
        else:
            new_to_account_id = txn.to_account_id
        new_category_id = changes.get("category_id", txn.category_id)

        await LedgerCoordinator.validate_write(
            db, user_id, new_type, new_account_id, new_to_account_id, new_category_id,
            unchanged_accounts=[a for a in (txn.account_id, txn.to_account_id) if a is not None],
        )

        touched: Dict[int, date] = {}
        _track(touched, txn.account_id, txn.date)
        _track(touched, txn.to_account_id, txn.date)

        for name, value in changes.items():
            setattr(txn, name, value)
        txn.to_account_id = new_to_account_id

        await db.commit()

        _track(touched, txn.account_id, txn.date)
        _track(touched, txn.to_account_id, txn.date)
        await LedgerCoordinator.refresh_accounts(db, touched)

        await db.refresh(txn)
        return txn

    @staticmethod
    async def delete_transaction(
        db: AsyncSession,
        user_id: int,
        transaction_id: int,
        scope: DeleteScope = DeleteScope.THIS_ONLY,
    ) -> DeleteResult:
        """
        Delete a transaction.

        Standalone transactions are simply removed. For a recurring origin
        or instance, THIS_ONLY removes just the row; THIS_AND_FUTURE also
        removes every instance of the same rule dated on or after it and
        deactivates the rule.
        """
        txn = await LedgerCoordinator.get_owned_transaction(db, user_id, transaction_id)
        rule = await LedgerCoordinator.get_rule_for(db, txn)
        state = classify(txn, rule)

        result = DeleteResult(recurring_rule_id=txn.recurring_rule_id)

        if isinstance(state, Standalone) or scope == DeleteScope.THIS_ONLY:
            victims = [txn]
        else:
            rows = await db.execute(
                select(Transaction).where(
                    Transaction.recurring_rule_id == rule.id,
                    Transaction.user_id == user_id,
                    Transaction.date >= txn.date,
                )
            )
            victims = list(rows.scalars().all())
            if txn not in victims:
                victims.append(txn)
            rule.active = False
            result.rule_deactivated = True

        touched: Dict[int, date] = {}
        for victim in victims:
            _track(touched, victim.account_id, victim.date)
            _track(touched, victim.to_account_id, victim.date)
            result.deleted_ids.append(victim.id)
            await db.delete(victim)

        await db.commit()
        logger.info(
            "Deleted transactions %s (scope=%s, rule=%s, deactivated=%s)",
            result.deleted_ids, scope.value, result.recurring_rule_id, result.rule_deactivated,
        )

        await LedgerCoordinator.refresh_accounts(db, touched)
        return result

    # Recurring rules

    @staticmethod
    async def create_rule(
        db: AsyncSession,
        user_id: int,
        payload: RecurringRuleCreate,
        horizon_months: Optional[int] = None,
    ) -> RecurringRule:
        """
        Create a rule from a template. The origin transaction is stamped on
        start_date and goes through the same path as a recurring create.
        """
        origin = await LedgerCoordinator.create_transaction(db, user_id, TransactionCreate(
            account_id=payload.account_id,
            to_account_id=payload.to_account_id,
            type=payload.template_type,
            amount=payload.template_amount,
            currency=payload.currency,
            date=payload.start_date,
            description=payload.template_desc,
            category_id=payload.template_category_id,
            cleared=payload.cleared,
            is_recurring=True,
            frequency=payload.frequency,
            interval=payload.interval,
            end_date=payload.end_date,
        ), horizon_months)

        rule = await db.get(RecurringRule, origin.recurring_rule_id)
        await db.refresh(rule)
        return rule

    @staticmethod
    async def update_rule(
        db: AsyncSession,
        user_id: int,
        rule_id: int,
        payload: RecurringRuleUpdate,
    ) -> RecurringRule:
        """
        Edit a rule's schedule, template or active flag.

        Transactions the rule already generated are left as they are; the
        change only affects what the rule describes from now on.
        """
        rule = await LedgerCoordinator.get_owned_rule(db, user_id, rule_id)
        changes = payload.model_dump(exclude_unset=True)

        for name in ("template_amount", "frequency", "interval", "active"):
            if name in changes and changes[name] is None:
                raise LedgerValidationError(f"{name} cannot be null", details={"field": name})

        if "frequency" in changes:
            changes["frequency"] = normalize_frequency(changes["frequency"]).value
        if changes.get("end_date") is not None and changes["end_date"] < rule.start_date:
            raise LedgerValidationError(
                "Recurring end date cannot be before the rule start date",
                details={"field": "end_date", "start_date": rule.start_date},
            )
        category_id = changes.get("template_category_id")
        if category_id is not None:
            category = await db.get(Category, category_id)
            if category is None or category.user_id != user_id:
                raise LedgerValidationError(
                    f"Invalid category reference: {category_id}",
                    details={"field": "template_category_id"},
                )

        for name, value in changes.items():
            setattr(rule, name, value)
        await db.commit()
        logger.info("Recurring rule %s updated (%s)", rule.id, ", ".join(sorted(changes)) or "no changes")

        await db.refresh(rule)
        return rule

    @staticmethod
    async def deactivate_rule(
        db: AsyncSession,
        user_id: int,
        rule_id: int,
        as_of: Optional[date] = None,
    ) -> Tuple[RecurringRule, List[int]]:
        """
        Stop a rule: remove its not-yet-elapsed instances (dated on or after
        as_of, default today) and mark it inactive. Past instances stay.
        """
        rule = await LedgerCoordinator.get_owned_rule(db, user_id, rule_id)
        as_of = as_of or date.today()

        rows = await db.execute(
            select(Transaction).where(
                Transaction.recurring_rule_id == rule.id,
                Transaction.user_id == user_id,
                Transaction.date >= as_of,
            )
        )
        victims = rows.scalars().all()

        touched: Dict[int, date] = {}
        deleted_ids: List[int] = []
        for victim in victims:
            _track(touched, victim.account_id, victim.date)
            _track(touched, victim.to_account_id, victim.date)
            deleted_ids.append(victim.id)
            await db.delete(victim)

        rule.active = False
        await db.commit()
        logger.info("Recurring rule %s deactivated, %d future instances removed", rule.id, len(deleted_ids))

        await LedgerCoordinator.refresh_accounts(db, touched)
        await db.refresh(rule)
        return rule, deleted_ids

    # Balance cache

    @staticmethod
    async def refresh_account(db: AsyncSession, account_id: int, from_date: date) -> None:
        """
        Recompute cached balances for one account from from_date forward.

        Runs after the write is committed. On failure the cache range is
        dropped instead, so lookups fall back to on-the-fly computation.
        """
        try:
            written = await BalanceCalculator.refresh_cache(db, account_id, from_date)
            await db.commit()
            if written:
                logger.debug("Refreshed %d cached balances for account %s", written, account_id)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Balance cache refresh failed for account %s from %s", account_id, from_date)
            try:
                await BalanceCalculator.invalidate(db, account_id, from_date)
                await db.commit()
            except SQLAlchemyError:
                await db.rollback()
                logger.exception("Balance cache for account %s could not be invalidated", account_id)

    @staticmethod
    async def refresh_accounts(db: AsyncSession, touched: Dict[int, date]) -> None:
        for account_id, from_date in touched.items():
            await LedgerCoordinator.refresh_account(db, account_id, from_date)
