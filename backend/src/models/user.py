"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, CheckConstraint, Uuid, DateTime
from sqlalchemy.orm import validates

from .base import Base, utcnow


class User(Base):
    """User model representing a mailbox owner.

    Users are addressed either by email or by username when sending,
    forwarding or drafting messages. Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    username = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @validates('username')
    def validate_username(self, key, value):
        """Usernames are 3-50 chars of letters, digits, dot, dash or underscore"""
        if not re.match(r'^[A-Za-z0-9._-]{3,50}$', value):
            raise ValueError("Invalid username format")
        return value

    def to_dict(self):
        """Convert user to dictionary representation (excludes password_hash)"""
        return {
            "id": str(self.id),
            "email": self.email,
            "username": self.username,
            "name": self.name,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat()
        }

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, email={self.email})>"
