"""Messaging API endpoints

Route order matters: GET /{message_id} is registered last so it never
shadows /inbox, /drafts, /trash/all or /search/query.
"""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth.dependencies import CurrentUser
from dependencies import get_message_service, get_inbox_queries
from .queries import InboxQueryService
from .service import MessageService
from .schemas import (
    SendMessageRequest,
    ReplyRequest,
    ForwardRequest,
    DraftRequest,
    MessageResponse,
    InboxResponse,
    MessageActionResponse,
    DeleteResponse,
)


router = APIRouter(prefix="/messages", tags=["Messages"])

Service = Annotated[MessageService, Depends(get_message_service)]
Queries = Annotated[InboxQueryService, Depends(get_inbox_queries)]


# Send / receive

@router.post("/send", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(data: SendMessageRequest, current_user: CurrentUser, service: Service):
    """Send a new message; it starts its own thread and is pushed to the receiver."""
    return service.send(current_user.id, data.receiver, data.subject, data.body)


@router.get("/inbox", response_model=InboxResponse)
async def get_inbox(
    current_user: CurrentUser,
    queries: Queries,
    page: Optional[str] = Query(None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 10)"),
):
    """Received messages that are neither drafts nor trashed, newest first.

    Non-numeric or out-of-range page/limit values fall back to the defaults.
    """
    inbox_page = queries.inbox(current_user.id, page=page, limit=limit)
    return InboxResponse(
        messages=[MessageResponse.model_validate(m) for m in inbox_page.messages],
        page=inbox_page.page,
        total_pages=inbox_page.total_pages,
        total=inbox_page.total
    )


# Search (before /{message_id})

@router.get("/search/query", response_model=List[MessageResponse])
async def search_messages(
    current_user: CurrentUser,
    queries: Queries,
    q: Optional[str] = Query(None, description="Substring to look for in subject or body"),
):
    """Case-insensitive substring search over the inbox; empty q returns []."""
    return queries.search(current_user.id, q)


# Trash

@router.get("/trash/all", response_model=List[MessageResponse])
async def view_trash(current_user: CurrentUser, queries: Queries):
    """Trashed messages received by the caller, newest first."""
    return queries.trash(current_user.id)


# Drafts

@router.post("/draft", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def save_draft(data: DraftRequest, current_user: CurrentUser, service: Service):
    """Save a private draft; all fields are optional."""
    return service.save_draft(current_user.id, data.receiver, data.subject, data.body)


@router.get("/drafts", response_model=List[MessageResponse])
async def get_drafts(current_user: CurrentUser, queries: Queries):
    """The caller's drafts, most recently edited first."""
    return queries.drafts(current_user.id)


@router.put("/draft/{draft_id}", response_model=MessageActionResponse)
async def update_draft(
    draft_id: UUID,
    data: DraftRequest,
    current_user: CurrentUser,
    service: Service
):
    """Partially update one of the caller's drafts (only fields sent are applied)."""
    draft = service.update_draft(current_user.id, draft_id, data.model_dump(exclude_unset=True))
    return MessageActionResponse(message="Draft updated", data=MessageResponse.model_validate(draft))


@router.post("/draft/{draft_id}/send", response_model=MessageResponse)
async def send_draft(draft_id: UUID, current_user: CurrentUser, service: Service):
    """Send one of the caller's drafts as a new thread root."""
    return service.send_draft(current_user.id, draft_id)


# Threads

@router.get("/thread/{thread_id}", response_model=List[MessageResponse])
async def get_thread(thread_id: UUID, current_user: CurrentUser, queries: Queries):
    """All messages of a thread the caller takes part in, oldest first."""
    return queries.thread(current_user.id, thread_id)


# Message actions

@router.put("/{message_id}/read", response_model=MessageResponse)
async def mark_as_read(message_id: UUID, current_user: CurrentUser, service: Service):
    """Mark a received message as read."""
    return service.mark_read(current_user.id, message_id)


@router.post("/{message_id}/reply", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def reply_message(
    message_id: UUID,
    data: ReplyRequest,
    current_user: CurrentUser,
    service: Service
):
    """Reply to the sender of a message; the reply joins its thread."""
    return service.reply(current_user.id, message_id, data.body)


@router.post("/{message_id}/forward", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def forward_message(
    message_id: UUID,
    data: ForwardRequest,
    current_user: CurrentUser,
    service: Service
):
    """Forward a message to another user; the copy joins the original's thread."""
    return service.forward(current_user.id, message_id, data.receiver)


@router.put("/{message_id}/trash", response_model=MessageResponse)
async def move_to_trash(message_id: UUID, current_user: CurrentUser, service: Service):
    """Move a message the caller sent or received to the trash."""
    return service.move_to_trash(current_user.id, message_id)


@router.put("/{message_id}/restore", response_model=MessageActionResponse)
async def restore_from_trash(message_id: UUID, current_user: CurrentUser, service: Service):
    """Restore a trashed message; only its receiver may do this."""
    message = service.restore(current_user.id, message_id)
    return MessageActionResponse(message="Message restored", data=MessageResponse.model_validate(message))


@router.delete("/{message_id}", response_model=DeleteResponse)
async def delete_message(message_id: UUID, current_user: CurrentUser, service: Service):
    """Permanently delete a message. Repeating the call is not an error."""
    service.delete_message(current_user.id, message_id)
    return DeleteResponse(message="Message permanently deleted")


# Single message (last)

@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(message_id: UUID, current_user: CurrentUser, queries: Queries):
    """A single message the caller sent or received."""
    return queries.get_by_id(current_user.id, message_id)
