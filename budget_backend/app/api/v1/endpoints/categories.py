"""
Category API Endpoints.

A user's first listing seeds the default category set.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from budget_backend.app.db.session import get_db
from budget_backend.app.models.category import Category, DEFAULT_CATEGORIES
from budget_backend.app.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse, CategoryListResponse
from budget_backend.app.core.dependencies import get_current_user_id
from budget_backend.app.core.exceptions import LedgerValidationError, ResourceNotFoundError

router = APIRouter(prefix="/categories", tags=["Categories"])
logger = logging.getLogger("budget.categories")


async def _user_categories(db: AsyncSession, user_id: int):
    result = await db.execute(
        select(Category).where(Category.user_id == user_id).order_by(Category.kind, Category.name)
    )
    return result.scalars().all()


async def _owned_category(db: AsyncSession, user_id: int, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None or category.user_id != user_id:
        raise ResourceNotFoundError("Category", category_id)
    return category


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    categories = await _user_categories(db, user_id)

    if not categories:
        db.add_all([Category(user_id=user_id, name=name, kind=kind) for name, kind in DEFAULT_CATEGORIES])
        await db.commit()
        logger.info("Seeded %d default categories for user %s", len(DEFAULT_CATEGORIES), user_id)
        categories = await _user_categories(db, user_id)

    return CategoryListResponse(categories=[CategoryResponse.model_validate(c) for c in categories])


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    category = Category(user_id=user_id, name=category_data.name, kind=category_data.kind)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    category = await _owned_category(db, user_id, category_id)

    changes = category_data.model_dump(exclude_unset=True)
    for name in ("name", "kind"):
        if name in changes and changes[name] is None:
            raise LedgerValidationError(f"{name} cannot be null", details={"field": name})
    for name, value in changes.items():
        setattr(category, name, value)

    await db.commit()
    await db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a category; transactions that used it keep no category."""
    category = await _owned_category(db, user_id, category_id)

    await db.delete(category)
    await db.commit()
