"""Global FastAPI dependencies wiring the mailbox services together.

This module provides:
- get_identity_resolver: email-or-username lookup bound to the request session
- get_notification_dispatcher: post-commit hook that pushes to live connections
- get_message_service: lifecycle service with the dispatcher attached
- get_inbox_queries: read-only mailbox views

Tests replace get_notification_dispatcher through app.dependency_overrides
to record or silence push notifications.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from messaging.queries import InboxQueryService
from messaging.service import MessageService, PostCommitHook
from notifications.dispatcher import NotificationDispatcher
from notifications.registry import connection_registry
from users.resolver import IdentityResolver


_dispatcher = NotificationDispatcher(connection_registry)


def get_identity_resolver(db: Session = Depends(get_db)) -> IdentityResolver:
    return IdentityResolver(db)


def get_notification_dispatcher() -> PostCommitHook:
    """The process-wide dispatcher bound to the process-wide connection registry."""
    return _dispatcher


def get_message_service(
    db: Session = Depends(get_db),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    dispatcher: PostCommitHook = Depends(get_notification_dispatcher),
) -> MessageService:
    """Lifecycle service whose recipient-facing commits notify via the dispatcher.

    Example:
        @router.post("/send")
        def send(service: MessageService = Depends(get_message_service)):
            ...
    """
    return MessageService(db, resolver, post_commit_hooks=[dispatcher])


def get_inbox_queries(db: Session = Depends(get_db)) -> InboxQueryService:
    return InboxQueryService(db)
