"""
Account database model.

An account is one ledger: an ASSET the user holds or a DEBT the user owes.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, Enum, ForeignKey
from sqlalchemy.sql import func
from budget_backend.app.db.session import Base
from budget_backend.app.models.enums import AccountKind


class Account(Base):
    """
    Account model.

    Accounts are never hard-deleted while transactions reference them;
    archiving hides them from active balance views but keeps their history.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    kind = Column(Enum(AccountKind), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    # Financials
    opening_balance = Column(Numeric(12, 2), nullable=False, default=0)
    apr_apy = Column(Numeric(5, 2), nullable=True)
    credit_limit = Column(Numeric(12, 2), nullable=True)

    # Status (soft delete)
    archived = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Account(id={self.id}, name='{self.name}', kind='{self.kind.value}', archived={self.archived})>"
