"""
Category Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from budget_backend.app.models.enums import TransactionType


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: TransactionType


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    kind: Optional[TransactionType] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    kind: TransactionType

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]
