"""SQLAlchemy Models for Letterbox"""

from .base import Base
from .user import User
from .message import Message

__all__ = [
    "Base",
    "User",
    "Message",
]
