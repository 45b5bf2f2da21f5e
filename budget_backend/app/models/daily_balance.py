"""
Daily balance cache model.

Memoized end-of-day balance per (account, date). Always re-derivable from
the account's opening balance and transaction history; the table can be
truncated at any time without losing information.
"""

from sqlalchemy import Column, Integer, Date, Numeric, ForeignKey, UniqueConstraint
from budget_backend.app.db.session import Base


class DailyBalance(Base):
    __tablename__ = "daily_balances"
    __table_args__ = (
        UniqueConstraint("account_id", "date", name="uq_daily_balance_account_date"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey('accounts.id', ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    balance = Column(Numeric(12, 2), nullable=False)

    def __repr__(self):
        return f"<DailyBalance(account_id={self.account_id}, date={self.date}, balance={self.balance})>"
