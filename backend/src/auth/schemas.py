"""Pydantic schemas for authentication endpoints"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request schema for account registration.

    Attributes:
        username: Unique handle other users can address messages to
        email: Unique email address (case-insensitive)
        password: Plain text password, checked against the strength policy
        name: Optional display name
    """
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9._-]+$")
    email: EmailStr
    password: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=200)


class LoginRequest(BaseModel):
    """Request schema for user login.

    Attributes:
        identifier: Email address or username
        password: User's password (plain text, verified against hash)
    """
    identifier: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response schema for successful login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600


class UserResponse(BaseModel):
    """User information response (excludes password_hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    name: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user: UserResponse
