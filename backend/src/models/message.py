"""Message model - the single stored entity of the mailbox.

A message is a draft until it is sent, then lives in its receiver's inbox
and can be trashed, restored and permanently deleted. Threads are not stored:
every message that shares a thread_id belongs to the same conversation.

Lifecycle:
    save-draft → (update-draft)* → send-draft ─┐
    send / reply / forward ────────────────────┴→ SENT ⇄ TRASHED → DELETED

is_draft is one-way: once a message has been sent it never becomes a draft again.
"""

import uuid

from sqlalchemy import Column, Text, Boolean, ForeignKey, Index, Uuid, DateTime, false
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow


class Message(Base):
    """
    Message model - an email-like message between two users.

    Ownership:
    - while is_draft, only the sender may see, edit, send or delete it
    - once sent, the receiver reads/trashes/restores it and the sender keeps it
      as history

    thread_id equals the message's own id for thread roots, the root's
    thread_id for replies and forwards, and stays NULL while the message is a draft.
    """
    __tablename__ = "message"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    sender_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # NULL only for drafts without a chosen recipient
    receiver_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    subject = Column(Text, nullable=False, default="")
    body = Column(Text, nullable=False, default="")

    # Derived grouping key, no FK: a thread outlives the deletion of its root
    thread_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    is_draft = Column(Boolean, nullable=False, default=False, server_default=false())
    is_trashed = Column(Boolean, nullable=False, default=False, server_default=false())

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_message_inbox', 'receiver_id', 'is_draft', 'is_trashed', 'created_at'),
        Index('idx_message_drafts', 'sender_id', 'is_draft', 'updated_at'),
    )

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")
    receiver = relationship("User", foreign_keys=[receiver_id], lazy="joined")

    @validates('is_draft')
    def validate_draft_transition(self, key, new_value):
        """
        Reject a sent message becoming a draft again.

        Args:
            key: Column name (always 'is_draft')
            new_value: Value being assigned

        Returns:
            bool: The validated value

        Raises:
            ValueError: If a sent message (is_draft=False) is set back to draft
        """
        if self.is_draft is False and new_value:
            raise ValueError(
                f"Invalid draft transition for message {self.id}: sent messages cannot become drafts"
            )
        return new_value

    def __repr__(self):
        return (
            f"<Message(id={self.id}, sender_id={self.sender_id}, "
            f"receiver_id={self.receiver_id}, thread_id={self.thread_id}, "
            f"is_draft={self.is_draft}, is_trashed={self.is_trashed})>"
        )
