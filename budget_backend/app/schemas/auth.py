"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class UserRegister(BaseModel):
    """Schema for user registration (POST /auth/register)."""
    email: EmailStr = Field(..., description="User email address")
    name: Optional[str] = Field(None, max_length=200, description="Display name")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    tz: str = Field("UTC", max_length=64, description="IANA timezone name")


class UserLogin(BaseModel):
    """Schema for user login (POST /auth/login)."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """Schema for JWT token response."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: Optional[str] = Field(default=None, description="Display name")


class UserResponse(BaseModel):
    """Schema for user information response (GET /auth/me)."""
    id: int
    email: str
    name: Optional[str]
    tz: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
