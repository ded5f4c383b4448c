"""Authentication endpoints for the Letterbox API

Provides account registration, login and current-user lookup.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from users.resolver import IdentityResolver
from .schemas import RegisterRequest, LoginRequest, LoginResponse, MeResponse, UserResponse
from .password import hash_password, verify_password, validate_password_strength
from .jwt import create_access_token, _get_jwt_expiry_minutes
from .dependencies import CurrentUser


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new mailbox account.

    Raises:
        HTTPException: 400 if the password is too weak
        HTTPException: 409 if the email or username is already taken
    """
    is_valid, error_msg = validate_password_strength(data.password)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_msg
        )

    existing = db.query(User).filter(
        (User.email == data.email.lower()) | (User.username == data.username)
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered"
        )

    user = User(
        email=data.email.lower(),
        username=data.username,
        name=data.name,
        password_hash=hash_password(data.password),
        status="ACTIVE"
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Lost a race against a concurrent registration with the same identity
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered"
        )

    logger.info("User registered", extra={"user_id": user.id})
    return user


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate by email-or-username and password, returning a JWT.

    The same generic message is returned for unknown users and wrong
    passwords to prevent account enumeration.

    Raises:
        HTTPException: 401 if credentials are invalid or account is disabled
    """
    user = IdentityResolver(db).resolve(credentials.identifier)

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("Login failed: invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if user.status == 'DISABLED':
        logger.warning("Login failed: account disabled", extra={"user_id": user.id})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    access_token = create_access_token(
        user_id=user.id,
        username=user.username,
        email=user.email
    )

    logger.info("Login succeeded", extra={"user_id": user.id})
    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=_get_jwt_expiry_minutes() * 60
    )


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: CurrentUser):
    """Get current authenticated user information."""
    return MeResponse(user=UserResponse.model_validate(current_user))
