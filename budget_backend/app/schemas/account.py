"""
Account Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from budget_backend.app.core.config import settings
from budget_backend.app.models.enums import AccountKind


class AccountCreate(BaseModel):
    """Schema for creating a new account."""
    name: str = Field(..., min_length=1, max_length=200)
    kind: AccountKind = Field(..., description="ASSET or DEBT")
    currency: str = Field(settings.default_currency, min_length=3, max_length=3)
    opening_balance: Decimal = Field(Decimal("0"), max_digits=12, decimal_places=2)
    apr_apy: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=2)
    credit_limit: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class AccountUpdate(BaseModel):
    """Schema for updating an account. Kind is fixed at creation."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    opening_balance: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    apr_apy: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=2)
    credit_limit: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class AccountResponse(BaseModel):
    """Schema for account response."""
    id: int
    user_id: int
    name: str
    kind: AccountKind
    currency: str
    opening_balance: Decimal
    apr_apy: Optional[Decimal]
    credit_limit: Optional[Decimal]
    archived: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AccountListResponse(BaseModel):
    accounts: List[AccountResponse]
    total: int
