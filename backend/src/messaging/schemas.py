"""Pydantic schemas for the messaging API

Request bodies are deliberately lenient (every field optional) so that
missing fields reach the lifecycle service and come back as the uniform
400 validation envelope instead of a framework-specific error shape.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from users.schemas import UserSummary


# Requests

class SendMessageRequest(BaseModel):
    """POST /messages/send"""
    receiver: Optional[str] = Field(None, description="Receiver email or username")
    subject: Optional[str] = None
    body: Optional[str] = None


class ReplyRequest(BaseModel):
    """POST /messages/{id}/reply"""
    body: Optional[str] = None


class ForwardRequest(BaseModel):
    """POST /messages/{id}/forward"""
    receiver: Optional[str] = Field(None, description="Receiver email or username")


class DraftRequest(BaseModel):
    """POST /messages/draft and PUT /messages/draft/{id}

    On update only the fields present in the body are applied;
    "receiver": null or "" removes the recipient.
    """
    receiver: Optional[str] = Field(None, description="Receiver email or username")
    subject: Optional[str] = None
    body: Optional[str] = None


# Responses

class MessageResponse(BaseModel):
    """Full message record as returned by the API and pushed to receivers."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: Optional[UUID] = None
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None
    subject: str
    body: str
    thread_id: Optional[UUID] = Field(None, description="NULL while the message is a draft")
    is_read: bool
    is_draft: bool
    is_trashed: bool
    created_at: datetime
    updated_at: datetime


class InboxResponse(BaseModel):
    """Paginated inbox; the page count is serialized as totalPages"""
    model_config = ConfigDict(populate_by_name=True)

    messages: List[MessageResponse]
    page: int = Field(..., description="1-based page number")
    total_pages: int = Field(..., alias="totalPages", description="ceil(total / limit)")
    total: int = Field(..., description="Number of inbox messages across all pages")


class MessageActionResponse(BaseModel):
    """Confirmation envelope for draft updates and restores"""
    message: str
    data: MessageResponse


class DeleteResponse(BaseModel):
    """Confirmation for permanent deletion"""
    message: str
