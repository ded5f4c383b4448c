"""Identity resolution for message addressing.

Senders address recipients by email or username; the resolver turns that
string into a concrete User row. Unresolvable identifiers yield None and the
caller decides how to report it.
"""

from typing import Optional

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from models.user import User


class IdentityResolver:
    """Looks up users by email-or-username."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, identifier: Optional[str]) -> Optional[User]:
        """Resolve an email address or username to a user.

        Email matching is case-insensitive (emails are stored lower-cased),
        usernames match exactly.

        Args:
            identifier: Email address or username

        Returns:
            The first matching user, or None when nothing matches
        """
        if not identifier or not identifier.strip():
            return None

        value = identifier.strip()
        return self.db.query(User).filter(
            or_(
                User.email == value.lower(),
                User.username == value
            )
        ).first()

    def search(self, query: Optional[str], limit: int) -> list[User]:
        """Case-insensitive substring search over email and username.

        Used for recipient autocomplete. An empty query returns no users.
        """
        if not query or not query.strip():
            return []

        pattern = f"%{escape_like(query.strip().lower())}%"
        return self.db.query(User).filter(
            User.status == "ACTIVE",
            or_(
                func.lower(User.email).like(pattern, escape="\\"),
                func.lower(User.username).like(pattern, escape="\\")
            )
        ).order_by(User.username).limit(limit).all()


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
