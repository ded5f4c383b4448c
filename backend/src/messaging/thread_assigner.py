"""Thread assignment rules.

A thread is never stored; it is the set of messages sharing a thread_id.
These functions are the only place that decides which thread a newly sent
message joins. None of them mutates the original message.
"""

from uuid import UUID

from models.message import Message


def root_thread_id(message_id: UUID) -> UUID:
    """A message with no origin starts its own thread.

    Message ids are allocated before the insert, so the root's thread_id is
    known up front and no second write is needed.
    """
    return message_id


def reply_thread_id(original: Message) -> UUID:
    """A reply joins the original's thread.

    Messages created before thread ids were assigned have thread_id NULL;
    replying to one of them makes the original the thread root.
    """
    return original.thread_id or original.id


def forward_thread_id(original: Message) -> UUID:
    """A forward joins the original's thread, with the same fallback as replies."""
    return original.thread_id or original.id
