"""
Monthly statement database model.

A statement records what the issuer reported for one billing period. It is
stored as given and never derived from the ledger.
"""

from sqlalchemy import Column, Integer, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.sql import func
from budget_backend.app.db.session import Base


class MonthlyStatement(Base):
    __tablename__ = "monthly_statements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey('accounts.id', ondelete="CASCADE"), nullable=False, index=True)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    statement_balance = Column(Numeric(12, 2), nullable=False)
    interest_charged = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<MonthlyStatement(account_id={self.account_id}, "
            f"period={self.period_start}..{self.period_end}, balance={self.statement_balance})>"
        )
