"""Message lifecycle service - every state transition of a message.

Each operation is a single read-modify-write of one row, committed in one
transaction. Lookups fold ownership into the query (see visibility.py), so a
message the caller does not own surfaces as MessageNotFoundError.

Recipient-facing transitions (send, reply, forward, send-draft) run the
post-commit hooks after the commit succeeded. Hooks are fire-and-forget:
their failures are logged and never reach the caller.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from models.message import Message
from models.user import User
from observability.metrics import messages_created_total, message_transitions_total
from users.resolver import IdentityResolver
from .errors import MessageNotFoundError, MessageValidationError
from .thread_assigner import root_thread_id, reply_thread_id, forward_thread_id
from .visibility import (
    get_visible_or_404,
    is_owned_draft,
    is_participant,
    is_received,
)

logger = logging.getLogger(__name__)

# Called as hook(recipient_id, message) after a recipient-facing commit
PostCommitHook = Callable[[UUID, Message], None]

REPLY_PREFIX = "Re: "
FORWARD_PREFIX = "Fwd: "


def _present(value: Optional[str]) -> bool:
    return value is not None and bool(str(value).strip())


class MessageService:
    """Service for message lifecycle operations."""

    def __init__(
        self,
        db: Session,
        resolver: IdentityResolver,
        post_commit_hooks: Optional[Iterable[PostCommitHook]] = None
    ):
        self.db = db
        self.resolver = resolver
        self.post_commit_hooks: List[PostCommitHook] = list(post_commit_hooks or [])

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def send(
        self,
        caller_id: UUID,
        receiver_identifier: Optional[str],
        subject: Optional[str],
        body: Optional[str]
    ) -> Message:
        """Send a new message, starting a new thread.

        Args:
            caller_id: Sender
            receiver_identifier: Receiver's email or username
            subject: Subject line
            body: Message text

        Returns:
            The created message (thread_id == id)

        Raises:
            MessageValidationError: If receiver, subject or body is missing
            MessageNotFoundError: If the receiver cannot be resolved
        """
        if not (_present(receiver_identifier) and _present(subject) and _present(body)):
            raise MessageValidationError("All fields required")

        receiver = self._resolve_receiver(receiver_identifier)

        message_id = uuid4()
        message = Message(
            id=message_id,
            sender_id=caller_id,
            receiver_id=receiver.id,
            subject=subject,
            body=body,
            thread_id=root_thread_id(message_id),
            is_draft=False,
        )
        self._commit(message)

        messages_created_total.labels(kind="send").inc()
        logger.info("Message sent", extra={"message_id": message.id, "user_id": caller_id})

        self._run_post_commit_hooks(receiver.id, message)
        return message

    def reply(self, caller_id: UUID, original_id: UUID, body: Optional[str]) -> Message:
        """Reply to the sender of a message the caller can see.

        Raises:
            MessageValidationError: If body is missing
            MessageNotFoundError: If the original is missing, still a draft,
                or the caller is not one of its participants
        """
        if not _present(body):
            raise MessageValidationError("Reply body required")

        original = get_visible_or_404(
            self.db,
            original_id,
            is_participant(caller_id),
            Message.is_draft.is_(False),
            detail="Original message not found"
        )

        reply = Message(
            id=uuid4(),
            sender_id=caller_id,
            receiver_id=original.sender_id,
            subject=f"{REPLY_PREFIX}{original.subject}",
            body=body,
            thread_id=reply_thread_id(original),
            is_draft=False,
        )
        self._commit(reply)

        messages_created_total.labels(kind="reply").inc()
        logger.info(
            "Reply sent",
            extra={"message_id": reply.id, "thread_id": reply.thread_id, "user_id": caller_id}
        )

        self._run_post_commit_hooks(reply.receiver_id, reply)
        return reply

    def forward(
        self,
        caller_id: UUID,
        original_id: UUID,
        receiver_identifier: Optional[str]
    ) -> Message:
        """Forward a message the caller can see to another user.

        Subject gets the "Fwd: " prefix, body is copied verbatim and the copy
        joins the original's thread.

        Raises:
            MessageValidationError: If no receiver is given
            MessageNotFoundError: If the receiver or the original cannot be found
        """
        if not _present(receiver_identifier):
            raise MessageValidationError("Receiver required")

        receiver = self._resolve_receiver(receiver_identifier)

        original = get_visible_or_404(
            self.db,
            original_id,
            is_participant(caller_id),
            Message.is_draft.is_(False),
            detail="Original message not found"
        )

        forwarded = Message(
            id=uuid4(),
            sender_id=caller_id,
            receiver_id=receiver.id,
            subject=f"{FORWARD_PREFIX}{original.subject}",
            body=original.body,
            thread_id=forward_thread_id(original),
            is_draft=False,
        )
        self._commit(forwarded)

        messages_created_total.labels(kind="forward").inc()
        logger.info(
            "Message forwarded",
            extra={"message_id": forwarded.id, "thread_id": forwarded.thread_id, "user_id": caller_id}
        )

        self._run_post_commit_hooks(receiver.id, forwarded)
        return forwarded

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def save_draft(
        self,
        caller_id: UUID,
        receiver_identifier: Optional[str] = None,
        subject: Optional[str] = None,
        body: Optional[str] = None
    ) -> Message:
        """Create a private draft. Every field is optional; no notification is sent.

        Raises:
            MessageNotFoundError: If a receiver is given but cannot be resolved
        """
        receiver_id = None
        if _present(receiver_identifier):
            receiver_id = self._resolve_receiver(receiver_identifier).id

        draft = Message(
            id=uuid4(),
            sender_id=caller_id,
            receiver_id=receiver_id,
            subject=subject or "",
            body=body or "",
            thread_id=None,
            is_draft=True,
        )
        self._commit(draft)

        messages_created_total.labels(kind="draft").inc()
        logger.info("Draft saved", extra={"message_id": draft.id, "user_id": caller_id})
        return draft

    def update_draft(
        self,
        caller_id: UUID,
        draft_id: UUID,
        update_data: Dict[str, Any]
    ) -> Message:
        """Apply a partial update to one of the caller's drafts.

        Only keys present in update_data are touched. An explicit empty or
        null "receiver" clears the recipient.

        Args:
            caller_id: Must be the draft's sender
            draft_id: Draft to update
            update_data: Subset of {"receiver", "subject", "body"}

        Raises:
            MessageNotFoundError: If the draft does not exist, is not the
                caller's, has already been sent, or the new receiver is unknown
        """
        draft = get_visible_or_404(
            self.db, draft_id, is_owned_draft(caller_id), detail="Draft not found"
        )

        # Resolve before touching the row so a bad receiver leaves it unchanged
        changes: Dict[str, Any] = {}
        if "receiver" in update_data:
            identifier = update_data["receiver"]
            changes["receiver_id"] = self._resolve_receiver(identifier).id if _present(identifier) else None
        for field in ("subject", "body"):
            if field in update_data:
                changes[field] = update_data[field] or ""

        for column, value in changes.items():
            setattr(draft, column, value)
        self._commit(draft)

        message_transitions_total.labels(transition="draft_update").inc()
        logger.info("Draft updated", extra={"message_id": draft.id, "user_id": caller_id})
        return draft

    def send_draft(self, caller_id: UUID, draft_id: UUID) -> Message:
        """Send one of the caller's drafts. Sent drafts always start a new thread.

        Raises:
            MessageNotFoundError: If the draft does not exist, is not the
                caller's or has already been sent
            MessageValidationError: If the draft has no receiver yet
        """
        draft = get_visible_or_404(
            self.db, draft_id, is_owned_draft(caller_id), detail="Draft not found"
        )

        if draft.receiver_id is None:
            raise MessageValidationError("Draft has no receiver")

        draft.is_draft = False
        draft.thread_id = root_thread_id(draft.id)
        self._commit(draft)

        message_transitions_total.labels(transition="draft_send").inc()
        logger.info("Draft sent", extra={"message_id": draft.id, "user_id": caller_id})

        self._run_post_commit_hooks(draft.receiver_id, draft)
        return draft

    # ------------------------------------------------------------------
    # Mailbox state
    # ------------------------------------------------------------------

    def mark_read(self, caller_id: UUID, message_id: UUID) -> Message:
        """Mark a received message as read. Only the receiver may do this."""
        message = get_visible_or_404(self.db, message_id, is_received(caller_id))

        message.is_read = True
        self._commit(message)

        message_transitions_total.labels(transition="read").inc()
        return message

    def move_to_trash(self, caller_id: UUID, message_id: UUID) -> Message:
        """Trash a message the caller participates in."""
        message = get_visible_or_404(self.db, message_id, is_participant(caller_id))

        message.is_trashed = True
        self._commit(message)

        message_transitions_total.labels(transition="trash").inc()
        logger.info("Message trashed", extra={"message_id": message.id, "user_id": caller_id})
        return message

    def restore(self, caller_id: UUID, message_id: UUID) -> Message:
        """Restore a trashed message. Only its receiver may do this.

        Raises:
            MessageNotFoundError: If no trashed message with that id was received by the caller
        """
        message = get_visible_or_404(
            self.db,
            message_id,
            is_received(caller_id),
            Message.is_trashed.is_(True)
        )

        message.is_trashed = False
        self._commit(message)

        message_transitions_total.labels(transition="restore").inc()
        logger.info("Message restored", extra={"message_id": message.id, "user_id": caller_id})
        return message

    def delete_message(self, caller_id: UUID, message_id: UUID) -> bool:
        """Permanently delete a message the caller participates in.

        Idempotent: deleting a message that is already gone (or was never
        visible to the caller) is not an error.

        Returns:
            bool: True if a row was removed
        """
        message = self.db.query(Message).filter(
            Message.id == message_id,
            is_participant(caller_id)
        ).first()

        if message is None:
            logger.info("Nothing to delete", extra={"message_id": message_id, "user_id": caller_id})
            return False

        try:
            self.db.delete(message)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        message_transitions_total.labels(transition="delete").inc()
        logger.info("Message deleted", extra={"message_id": message_id, "user_id": caller_id})
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_receiver(self, identifier: str) -> User:
        receiver = self.resolver.resolve(identifier)
        if receiver is None:
            raise MessageNotFoundError("Receiver not found")
        return receiver

    def _commit(self, message: Message) -> None:
        try:
            self.db.add(message)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(message)

    def _run_post_commit_hooks(self, recipient_id: Optional[UUID], message: Message) -> None:
        for hook in self.post_commit_hooks:
            try:
                hook(recipient_id, message)
            except Exception:
                logger.exception(
                    "Post-commit hook failed",
                    extra={"message_id": message.id, "recipient_id": recipient_id}
                )
