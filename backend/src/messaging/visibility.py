"""Visibility predicates shared by the lifecycle service and the mailbox views.

Ownership is enforced by folding a predicate into the lookup instead of
checking permissions after loading: a message the caller may not touch is
simply not found. Both mutation and query paths build their filters from the
functions below so the rules cannot drift apart.
"""

from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models.message import Message
from .errors import MessageNotFoundError


def is_participant(user_id: UUID):
    """Sender of any message, or receiver of a message that has been sent."""
    return or_(
        Message.sender_id == user_id,
        and_(
            Message.receiver_id == user_id,
            Message.is_draft.is_(False)
        )
    )


def is_owned_draft(user_id: UUID):
    """Drafts belong to their sender only."""
    return and_(
        Message.sender_id == user_id,
        Message.is_draft.is_(True)
    )


def is_received(user_id: UUID):
    """Sent messages addressed to the user, trashed or not."""
    return and_(
        Message.receiver_id == user_id,
        Message.is_draft.is_(False)
    )


def in_inbox(user_id: UUID):
    """Received and not trashed."""
    return and_(
        is_received(user_id),
        Message.is_trashed.is_(False)
    )


def in_trash(user_id: UUID):
    """Received and trashed (by either participant)."""
    return and_(
        is_received(user_id),
        Message.is_trashed.is_(True)
    )


def get_visible_or_404(
    db: Session,
    message_id: UUID,
    *criteria,
    detail: str = "Message not found"
) -> Message:
    """Load a message by id that also satisfies the given predicates.

    Returns 404 semantics (MessageNotFoundError) for both:
    - messages that don't exist
    - messages that exist but fail the predicate (not the caller's)

    Example:
        draft = get_visible_or_404(db, draft_id, is_owned_draft(user.id), detail="Draft not found")
    """
    message = db.query(Message).filter(Message.id == message_id, *criteria).first()
    if message is None:
        raise MessageNotFoundError(detail)
    return message
