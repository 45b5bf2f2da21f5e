"""
Recurring rule database model.

A rule stamps future transactions from a template. The origin transaction
(dated start_date) is created by the user; every later instance is
generated once, when the rule is created.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Numeric, Enum, ForeignKey, Text
from sqlalchemy.sql import func
from budget_backend.app.db.session import Base
from budget_backend.app.models.enums import TransactionType


class RecurringRule(Base):
    __tablename__ = "recurring_rules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)

    # Template
    template_type = Column(Enum(TransactionType), nullable=False)
    template_amount = Column(Numeric(12, 2), nullable=False)
    template_desc = Column(Text, nullable=True)
    template_category_id = Column(Integer, ForeignKey('categories.id', ondelete="SET NULL"), nullable=True)
    template_to_account_id = Column(Integer, ForeignKey('accounts.id'), nullable=True)

    # Schedule
    frequency = Column(String(20), nullable=False, default="monthly")  # RecurrenceFrequency value
    interval = Column(Integer, nullable=False, default=1)
    start_date = Column(Date, nullable=False)  # inclusive; date of the origin transaction
    end_date = Column(Date, nullable=True)  # inclusive

    # Transaction the rule was created from (not an FK: the origin may be deleted alone)
    origin_transaction_id = Column(Integer, nullable=True, index=True)

    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<RecurringRule(id={self.id}, frequency='{self.frequency}', interval={self.interval}, "
            f"start={self.start_date}, active={self.active})>"
        )
