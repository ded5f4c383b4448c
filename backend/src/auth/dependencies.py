"""Bearer-token authentication for mailbox endpoints.

Every /messages and /users route takes CurrentUser; the push socket does its
own token check in the join frame (notifications/router.py) because browsers
cannot set headers on a WebSocket upgrade.

Usage:
    @router.get("/inbox")
    def inbox(user: CurrentUser):
        return {"message": f"Hello {user.username}"}
"""

from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from .jwt import user_id_from_token


bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active mailbox owner.

    Raises:
        HTTPException 401: Expired or invalid token, or the account no longer exists
        HTTPException 403: The account is DISABLED
    """
    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(str(e))

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    if user.status != "ACTIVE":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
