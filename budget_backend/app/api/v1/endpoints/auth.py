"""
Authentication API endpoints.

Provides register, login, and user info endpoints. The ledger endpoints
only ever see the user id resolved from the bearer token.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from budget_backend.app.db.session import get_db
from budget_backend.app.models.user import User
from budget_backend.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from budget_backend.app.core.security import get_password_hash, verify_password
from budget_backend.app.core.jwt import create_access_token
from budget_backend.app.core.dependencies import get_current_user
from budget_backend.app.core.exceptions import AuthenticationError, ConflictError

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("budget.auth")


def _token_for(user: User) -> TokenResponse:
    access_token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        name=user.name,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user and return a token for immediate use.

    Emails are unique; a second registration with the same address is a
    conflict.
    """
    email = user_data.email.lower()

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    new_user = User(
        email=email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        tz=user_data.tz,
        is_active=True,
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info("User %s registered", new_user.id)
    return _token_for(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Unknown email and wrong password are reported identically.
    """
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.email)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return _token_for(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current authenticated user information."""
    user = await db.get(User, current_user.get("user_id"))

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)
