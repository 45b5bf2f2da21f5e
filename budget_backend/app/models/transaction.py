"""
Transaction database model.

A transaction is a single dated movement of money. Transfers are ONE row
touching two ledgers (account_id is the source, to_account_id the
destination), never two linked rows.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Numeric, Enum, ForeignKey, Text
from sqlalchemy.sql import func
from budget_backend.app.db.session import Base
from budget_backend.app.models.enums import TransactionType


class Transaction(Base):
    """
    Transaction model.

    Amount is always stored non-negative; its sign on a given ledger is
    derived from the type and the account's role (source or destination).
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)

    # Ledgers touched
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    to_account_id = Column(Integer, ForeignKey('accounts.id'), nullable=True, index=True)  # TRANSFER only

    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    date = Column(Date, nullable=False, index=True)

    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete="SET NULL"), nullable=True)
    cleared = Column(Boolean, default=True, nullable=False)

    # Recurrence linkage (origin and generated instances share the rule id)
    recurring_rule_id = Column(
        Integer, ForeignKey('recurring_rules.id', ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<Transaction(id={self.id}, type='{self.type.value}', amount={self.amount}, "
            f"date={self.date}, rule={self.recurring_rule_id})>"
        )
