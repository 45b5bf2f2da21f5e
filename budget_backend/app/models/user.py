"""
User database model.

This module defines the User SQLAlchemy model for authentication.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from budget_backend.app.db.session import Base


class User(Base):
    """
    User model.

    Owns accounts, categories, transactions and recurring rules; deleting a
    user cascades to all of them.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    tz = Column(String(64), nullable=False, default="UTC")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
