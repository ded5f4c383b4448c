"""Mailbox views - inbox, drafts, trash, search, thread and single message.

All filters come from visibility.py; this module only adds ordering,
pagination and the search condition.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from config import get_settings
from models.message import Message
from users.resolver import escape_like
from .errors import MessageNotFoundError
from .visibility import (
    get_visible_or_404,
    in_inbox,
    in_trash,
    is_owned_draft,
    is_participant,
)


@dataclass
class InboxPage:
    """One page of the inbox."""
    messages: List[Message]
    page: int
    total_pages: int
    total: int


def _coerce_positive_int(value: Any, default: int) -> int:
    """Parse a query parameter, falling back to default for junk or values < 1."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def resolve_page_params(page: Any, limit: Any) -> tuple[int, int]:
    """Normalize raw page/limit query values.

    page defaults to 1 and limit to INBOX_PAGE_SIZE when absent, non-numeric
    or below 1. Any positive limit is honoured as given.

    Example:
        >>> resolve_page_params("abc", None)
        (1, 10)
    """
    page_number = _coerce_positive_int(page, 1)
    page_size = _coerce_positive_int(limit, get_settings().INBOX_PAGE_SIZE)
    return page_number, page_size


class InboxQueryService:
    """Read-only views over the message store for one caller."""

    def __init__(self, db: Session):
        self.db = db

    def inbox(self, user_id: UUID, page: Any = None, limit: Any = None) -> InboxPage:
        """Received, sent and untrashed messages, newest first, paginated.

        Args:
            user_id: Receiver
            page: 1-based page number (raw query value)
            limit: Page size (raw query value)

        Returns:
            InboxPage with total_pages = ceil(total / limit). A page past the
            end yields an empty list with page and total_pages still set.
        """
        page_number, page_size = resolve_page_params(page, limit)

        query = self.db.query(Message).filter(in_inbox(user_id))
        total = query.count()

        messages = (
            query.order_by(desc(Message.created_at), desc(Message.id))
            .offset((page_number - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return InboxPage(
            messages=messages,
            page=page_number,
            total_pages=math.ceil(total / page_size),
            total=total
        )

    def drafts(self, user_id: UUID) -> List[Message]:
        """The user's unsent drafts, most recently edited first."""
        return (
            self.db.query(Message)
            .filter(is_owned_draft(user_id))
            .order_by(desc(Message.updated_at), desc(Message.id))
            .all()
        )

    def trash(self, user_id: UUID) -> List[Message]:
        """Trashed messages received by the user, newest first."""
        return (
            self.db.query(Message)
            .filter(in_trash(user_id))
            .order_by(desc(Message.created_at), desc(Message.id))
            .all()
        )

    def search(self, user_id: UUID, query: Optional[str]) -> List[Message]:
        """Case-insensitive substring search over subject and body of the inbox.

        A missing or empty query returns an empty list, never the whole inbox.
        Whitespace is a literal search term.
        """
        if not query:
            return []

        pattern = f"%{escape_like(query)}%"
        return (
            self.db.query(Message)
            .filter(
                in_inbox(user_id),
                or_(
                    Message.subject.ilike(pattern, escape="\\"),
                    Message.body.ilike(pattern, escape="\\")
                )
            )
            .order_by(desc(Message.created_at), desc(Message.id))
            .all()
        )

    def thread(self, user_id: UUID, thread_id: UUID) -> List[Message]:
        """Every message of a thread, oldest first.

        The caller must participate in at least one message of the thread;
        otherwise the thread is reported as not found.

        Raises:
            MessageNotFoundError: If the thread is empty or the caller is not a participant
        """
        participates = (
            self.db.query(Message.id)
            .filter(Message.thread_id == thread_id, is_participant(user_id))
            .first()
        )
        if participates is None:
            raise MessageNotFoundError("Thread not found")

        return (
            self.db.query(Message)
            .filter(Message.thread_id == thread_id)
            .order_by(Message.created_at, Message.id)
            .all()
        )

    def get_by_id(self, user_id: UUID, message_id: UUID) -> Message:
        """A single message the caller participates in."""
        return get_visible_or_404(self.db, message_id, is_participant(user_id))
