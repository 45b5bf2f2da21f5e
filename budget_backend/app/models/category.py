"""
Category database model.
"""

from sqlalchemy import Column, Integer, String, Enum, ForeignKey
from budget_backend.app.db.session import Base
from budget_backend.app.models.enums import TransactionType


DEFAULT_CATEGORIES = [
    ("Groceries", TransactionType.EXPENSE),
    ("Dining Out", TransactionType.EXPENSE),
    ("Gas & Fuel", TransactionType.EXPENSE),
    ("Shopping", TransactionType.EXPENSE),
    ("Entertainment", TransactionType.EXPENSE),
    ("Utilities", TransactionType.EXPENSE),
    ("Healthcare", TransactionType.EXPENSE),
    ("Transportation", TransactionType.EXPENSE),
    ("Insurance", TransactionType.EXPENSE),
    ("Other Expenses", TransactionType.EXPENSE),
    ("Salary", TransactionType.INCOME),
    ("Freelance", TransactionType.INCOME),
    ("Investment Income", TransactionType.INCOME),
    ("Interest", TransactionType.INCOME),
    ("Other Income", TransactionType.INCOME),
]


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    kind = Column(Enum(TransactionType), nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', kind='{self.kind.value}')>"
