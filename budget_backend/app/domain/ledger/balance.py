"""
Balance Calculator (Domain Logic).

Derives an account's balance on any date from its opening balance plus the
signed effect of every transaction touching it, as source or destination,
dated on or before that date.

Effect of one transaction on one account:
    INCOME                 +amount
    EXPENSE on ASSET       -amount
    EXPENSE on DEBT        +amount   (spending increases what is owed)
    TRANSFER, source       -amount
    TRANSFER, destination  +amount

The daily_balances table is only a memoization cache of these values.
Every cached value must equal the on-the-fly computation; when a cached
row is missing the value is computed from history.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, delete, func, or_
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from budget_backend.app.domain.ledger.date_arithmetic import iter_days
from budget_backend.app.models.account import Account
from budget_backend.app.models.daily_balance import DailyBalance
from budget_backend.app.models.enums import AccountKind, TransactionType
from budget_backend.app.models.transaction import Transaction

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Rows per INSERT .. ON CONFLICT statement (keeps bound parameters under driver limits)
UPSERT_BATCH_SIZE = 500

UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(value).quantize(CENT)


def transaction_effect(txn, account_id: int, account_kind) -> Decimal:
    """Signed effect of a transaction on the given account's balance."""
    amount = _money(txn.amount)

    if txn.type == TransactionType.TRANSFER:
        effect = ZERO
        if txn.account_id == account_id:
            effect -= amount
        if txn.to_account_id == account_id:
            effect += amount
        return effect

    if txn.account_id != account_id:
        return ZERO

    if txn.type == TransactionType.INCOME:
        return amount
    if txn.type == TransactionType.EXPENSE:
        return amount if account_kind == AccountKind.DEBT else -amount
    return ZERO


def _ordered(transactions: Iterable) -> List:
    return sorted(transactions, key=lambda t: (t.date, t.id or 0))


def balance_as_of(
    opening_balance,
    account_kind,
    account_id: int,
    transactions: Iterable,
    as_of: date,
) -> Decimal:
    """Opening balance plus the effect of every transaction dated on or before as_of."""
    balance = _money(opening_balance)
    for txn in _ordered(transactions):
        if txn.date > as_of:
            break
        balance += transaction_effect(txn, account_id, account_kind)
    return balance


def daily_series(
    opening_balance,
    account_kind,
    account_id: int,
    transactions: Iterable,
    start: date,
    end: date,
) -> List[Tuple[date, Decimal]]:
    """
    End-of-day balance for every date in [start, end].

    Single ordered pass; each value equals balance_as_of for that day.
    """
    ordered = _ordered(transactions)
    balance = _money(opening_balance)
    index = 0

    series: List[Tuple[date, Decimal]] = []
    for day in iter_days(start, end):
        while index < len(ordered) and ordered[index].date <= day:
            balance += transaction_effect(ordered[index], account_id, account_kind)
            index += 1
        series.append((day, balance))
    return series


class BalanceCalculator:
    """Database-backed balance lookups and cache maintenance."""

    @staticmethod
    async def account_transactions(
        db: AsyncSession,
        account_id: int,
        up_to: Optional[date] = None,
    ) -> Sequence[Transaction]:
        """All transactions touching the account as source or destination, in date order."""
        query = select(Transaction).where(
            or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id)
        )
        if up_to is not None:
            query = query.where(Transaction.date <= up_to)
        query = query.order_by(Transaction.date.asc(), Transaction.id.asc())

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def compute_balance(db: AsyncSession, account_id: int, as_of: date) -> Optional[Decimal]:
        """
        Compute the balance from history, bypassing the cache.

        Returns None when the account does not exist (unknown, not zero).
        """
        account = await db.get(Account, account_id)
        if account is None:
            return None

        transactions = await BalanceCalculator.account_transactions(db, account_id, up_to=as_of)
        return balance_as_of(account.opening_balance, account.kind, account.id, transactions, as_of)

    @staticmethod
    async def get_balance(db: AsyncSession, account_id: int, as_of: date) -> Optional[Decimal]:
        """Cached balance when one exists for (account, date), otherwise computed on the fly."""
        result = await db.execute(
            select(DailyBalance.balance).where(
                DailyBalance.account_id == account_id,
                DailyBalance.date == as_of,
            )
        )
        cached = result.scalar_one_or_none()
        if cached is not None:
            return _money(cached)

        return await BalanceCalculator.compute_balance(db, account_id, as_of)

    @staticmethod
    async def balance_range(
        db: AsyncSession,
        account_id: int,
        start: date,
        end: date,
    ) -> Optional[List[Tuple[date, Decimal]]]:
        """
        Daily balances for [start, end].

        Served from the cache when every day in the range is cached,
        otherwise computed from history. Nothing is written.
        """
        account = await db.get(Account, account_id)
        if account is None:
            return None
        if end < start:
            return []

        result = await db.execute(
            select(DailyBalance.date, DailyBalance.balance)
            .where(
                DailyBalance.account_id == account_id,
                DailyBalance.date >= start,
                DailyBalance.date <= end,
            )
            .order_by(DailyBalance.date.asc())
        )
        cached = result.all()
        if len(cached) == (end - start).days + 1:
            return [(day, _money(balance)) for day, balance in cached]

        transactions = await BalanceCalculator.account_transactions(db, account_id, up_to=end)
        return daily_series(account.opening_balance, account.kind, account.id, transactions, start, end)

    @staticmethod
    async def materialize(
        db: AsyncSession,
        account_id: int,
        start: date,
        end: date,
    ) -> List[Tuple[date, Decimal]]:
        """
        Upsert one cached balance per day in [start, end].

        Each row is written with INSERT .. ON CONFLICT (account_id, date)
        DO UPDATE, so concurrent or overlapping calls never collide on the
        unique key; the last writer's value stands. Does not commit; the
        caller owns the transaction boundary.

        Returns the (date, balance) pairs written.
        """
        account = await db.get(Account, account_id)
        if account is None or end < start:
            return []

        transactions = await BalanceCalculator.account_transactions(db, account_id, up_to=end)
        series = daily_series(account.opening_balance, account.kind, account.id, transactions, start, end)

        dialect = db.get_bind().dialect.name
        insert = UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Balance cache upsert is not supported on {dialect}")

        values = [{"account_id": account_id, "date": day, "balance": balance} for day, balance in series]
        for offset in range(0, len(values), UPSERT_BATCH_SIZE):
            insert_stmt = insert(DailyBalance).values(values[offset:offset + UPSERT_BATCH_SIZE])
            stmt = insert_stmt.on_conflict_do_update(
                index_elements=["account_id", "date"],
                set_={"balance": insert_stmt.excluded.balance},
            )
            await db.execute(stmt)

        return series

    @staticmethod
    async def refresh_cache(db: AsyncSession, account_id: int, from_date: date) -> int:
        """
        Recompute every cached row dated on or after from_date.

        Gaps between cached days are filled in; days after the last cached
        date stay uncached. Returns the number of rows written.
        """
        result = await db.execute(
            select(func.min(DailyBalance.date), func.max(DailyBalance.date)).where(
                DailyBalance.account_id == account_id,
                DailyBalance.date >= from_date,
            )
        )
        first_cached, last_cached = result.one()
        if last_cached is None:
            return 0

        rows = await BalanceCalculator.materialize(db, account_id, first_cached, last_cached)
        return len(rows)

    @staticmethod
    async def invalidate(db: AsyncSession, account_id: int, from_date: Optional[date] = None) -> None:
        """Drop cached rows for the account (all of them, or from a date on)."""
        stmt = delete(DailyBalance).where(DailyBalance.account_id == account_id)
        if from_date is not None:
            stmt = stmt.where(DailyBalance.date >= from_date)
        await db.execute(stmt)
