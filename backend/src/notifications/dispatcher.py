"""Notification dispatcher - the post-commit hook behind push notifications.

The lifecycle service calls the dispatcher synchronously after a commit.
The dispatcher serializes the message right away (while the session is
still open) and schedules delivery on the registry's event loop without
waiting for it. Nothing here may fail the request that triggered it.
"""

import asyncio
import logging
from concurrent.futures import Future
from typing import Any, Dict, Optional
from uuid import UUID

from messaging.schemas import MessageResponse
from models.message import Message
from observability.metrics import push_events_total
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

NEW_MESSAGE_EVENT = "newMessage"


def build_new_message_event(message: Message) -> Dict[str, Any]:
    """JSON-ready push payload carrying the full message record."""
    return {
        "event": NEW_MESSAGE_EVENT,
        "data": MessageResponse.model_validate(message).model_dump(mode="json"),
    }


def _log_delivery_outcome(future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"Push delivery raised: {error}")


class NotificationDispatcher:
    """Callable post-commit hook: dispatcher(recipient_id, message)."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def __call__(self, recipient_id: Optional[UUID], message: Message) -> None:
        if recipient_id is None:
            return

        loop = self.registry.loop
        if loop is None or not self.registry.is_running:
            push_events_total.labels(outcome="dropped").inc()
            logger.debug("Push transport not running, event dropped", extra={"recipient_id": recipient_id})
            return

        event = build_new_message_event(message)
        coroutine = self.registry.deliver(recipient_id, event)
        try:
            future = asyncio.run_coroutine_threadsafe(coroutine, loop)
        except RuntimeError:
            # Loop closed between the check and the call
            coroutine.close()
            push_events_total.labels(outcome="dropped").inc()
            logger.warning("Push transport stopped, event dropped", extra={"recipient_id": recipient_id})
            return

        future.add_done_callback(_log_delivery_outcome)
        logger.debug(
            "Push event scheduled",
            extra={"recipient_id": recipient_id, "message_id": message.id}
        )
