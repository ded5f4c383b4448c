"""Pydantic schemas for the user directory.

Only public identity fields are exposed; password_hash and status never
leave the server through these schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Public identity of a user, embedded in message payloads and search results."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str = Field(..., description="Email address (lower-cased)")
    username: str = Field(..., description="Unique handle")
    name: Optional[str] = None
