"""User directory endpoints.

Lets an authenticated user find recipients by a fragment of their email
address or username while composing a message.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth.dependencies import CurrentUser
from config import get_settings
from database import get_db
from .resolver import IdentityResolver
from .schemas import UserSummary


router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/search",
    response_model=List[UserSummary],
    summary="Search recipients",
    description="Case-insensitive substring search over email and username."
)
def search_users(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
    q: Optional[str] = Query(None, description="Fragment of an email address or username"),
):
    """Return up to USER_SEARCH_LIMIT matching users; an empty query returns []."""
    resolver = IdentityResolver(db)
    return resolver.search(q, limit=get_settings().USER_SEARCH_LIMIT)
