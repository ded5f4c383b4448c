"""JWT token generation and validation

Bearer tokens identify the caller of every mailbox endpoint and the owner of
every push connection.

JWT Token Claims Structure:
===========================

- sub (Subject): User ID as UUID string
- username: User's login name (display and recipient lookup)
- email: User's email address (lower-cased)
- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires (iat + JWT_EXPIRY_MINUTES)

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET environment variable
- No refresh tokens (re-login after expiry)
- Stateless validation; the push endpoint trusts the claims without a DB lookup

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "username": "alice",
  "email": "alice@example.com",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID

import jwt

ALGORITHM = 'HS256'


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from environment.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv('JWT_SECRET')
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    """Get JWT_EXPIRY_MINUTES from environment (default: 60)."""
    expiry = os.getenv('JWT_EXPIRY_MINUTES', '60')
    try:
        return int(expiry)
    except ValueError:
        return 60


def create_access_token(user_id: UUID, username: str, email: str) -> str:
    """Create a JWT access token for an authenticated user.

    Args:
        user_id: User's UUID
        username: User's username
        email: User's email address

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=_get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),
        'username': username,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")


def user_id_from_token(token: str) -> UUID:
    """Return the subject of a valid token as a UUID.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired or has no usable subject
    """
    payload = decode_token(token)
    subject = payload.get('sub')
    if not subject:
        raise jwt.InvalidTokenError("Invalid token: missing user ID claim")
    try:
        return UUID(subject)
    except ValueError:
        raise jwt.InvalidTokenError("Invalid token: malformed user ID claim")
