"""
Reporting Service.

Read-only views over the ledger: monthly income/expense summary, calendar
month with per-day markers and balances, and projected interest.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from budget_backend.app.domain.ledger.balance import BalanceCalculator, CENT, ZERO
from budget_backend.app.domain.ledger.date_arithmetic import iter_days, month_bounds, parse_month
from budget_backend.app.models.account import Account
from budget_backend.app.models.enums import AccountKind, TransactionType
from budget_backend.app.models.transaction import Transaction
from budget_backend.app.schemas.account import AccountResponse
from budget_backend.app.schemas.transaction import TransactionResponse
from budget_backend.app.schemas.views import (
    CalendarDay, CalendarMarker, CalendarResponse,
    InterestProjection, MonthlySummaryResponse, SummaryTotals,
)

SUMMARY_TRANSACTION_LIMIT = 20


class ReportingService:

    @staticmethod
    async def active_accounts(
        db: AsyncSession,
        user_id: int,
        kind: AccountKind,
        account_ids: Optional[List[int]] = None,
    ) -> Sequence[Account]:
        """Non-archived accounts of one kind, optionally narrowed to the given ids."""
        query = select(Account).where(
            Account.user_id == user_id,
            Account.kind == kind,
            Account.archived == False,  # noqa: E712
        )
        if account_ids:
            query = query.where(Account.id.in_(account_ids))
        result = await db.execute(query.order_by(Account.name.asc()))
        return result.scalars().all()

    @staticmethod
    async def monthly_summary(
        db: AsyncSession,
        user_id: int,
        month: str,
        kind: AccountKind,
        account_ids: Optional[List[int]] = None,
    ) -> MonthlySummaryResponse:
        """Income, expense and net totals for the month; transfers are not counted."""
        year, month_num = parse_month(month)
        start, end = month_bounds(year, month_num)

        accounts = await ReportingService.active_accounts(db, user_id, kind, account_ids)
        ids = [account.id for account in accounts]

        transactions: Sequence[Transaction] = []
        if ids:
            result = await db.execute(
                select(Transaction)
                .where(
                    Transaction.user_id == user_id,
                    Transaction.account_id.in_(ids),
                    Transaction.date >= start,
                    Transaction.date <= end,
                )
                .order_by(Transaction.date.desc(), Transaction.id.desc())
            )
            transactions = result.scalars().all()

        income = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), ZERO)
        expense = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), ZERO)

        return MonthlySummaryResponse(
            month=month,
            account_kind=kind,
            period_start=start,
            period_end=end,
            accounts=[AccountResponse.model_validate(a) for a in accounts],
            totals=SummaryTotals(income=income, expense=expense, net=income - expense),
            transactions=[
                TransactionResponse.model_validate(t) for t in transactions[:SUMMARY_TRANSACTION_LIMIT]
            ],
        )

    @staticmethod
    async def calendar_month(
        db: AsyncSession,
        user_id: int,
        month: str,
        account_id: Optional[int] = None,
    ) -> CalendarResponse:
        """
        One entry per day of the month with transaction markers.

        When an account is given, markers are limited to transactions touching
        it and each day carries the account's end-of-day balance.
        """
        year, month_num = parse_month(month)
        start, end = month_bounds(year, month_num)

        query = select(Transaction).where(
            Transaction.user_id == user_id,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        if account_id is not None:
            query = query.where(
                or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id)
            )
        result = await db.execute(query.order_by(Transaction.date.asc(), Transaction.id.asc()))

        markers: Dict[date, List[CalendarMarker]] = {}
        for txn in result.scalars().all():
            markers.setdefault(txn.date, []).append(
                CalendarMarker(transaction_id=txn.id, type=txn.type, amount=txn.amount)
            )

        balances: Dict[date, Decimal] = {}
        if account_id is not None:
            series = await BalanceCalculator.balance_range(db, account_id, start, end) or []
            balances = dict(series)

        days = [
            CalendarDay(date=day, markers=markers.get(day, []), balance=balances.get(day))
            for day in iter_days(start, end)
        ]

        return CalendarResponse(month=month, account_id=account_id, days=days)

    @staticmethod
    async def projected_interest(
        db: AsyncSession,
        user_id: int,
        kind: AccountKind,
        account_ids: Optional[List[int]] = None,
        as_of: Optional[date] = None,
    ) -> List[InterestProjection]:
        """Simple (non-compounding) monthly and yearly interest from today's balance and APR/APY."""
        as_of = as_of or date.today()
        accounts = await ReportingService.active_accounts(db, user_id, kind, account_ids)

        projections = []
        for account in accounts:
            balance = await BalanceCalculator.get_balance(db, account.id, as_of) or ZERO
            apr = Decimal(account.apr_apy) if account.apr_apy is not None else ZERO
            monthly = (balance * apr / Decimal(100) / Decimal(12)).quantize(CENT)
            projections.append(
                InterestProjection(
                    account_id=account.id,
                    account_name=account.name,
                    current_balance=balance,
                    apr=apr,
                    projected_monthly_interest=monthly,
                    projected_yearly_interest=(monthly * 12).quantize(CENT),
                )
            )
        return projections

