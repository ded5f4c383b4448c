#!/usr/bin/env python
"""Seed script to create demo mailbox users.

Creates a handful of users that can immediately exchange messages, which is
handy for local development against the WebSocket push channel.

Usage:
    python backend/scripts/seed_users.py

Environment Variables:
    DATABASE_URL: Database connection string
    PASSWORD_PEPPER: Password hashing pepper (required)
    SEED_USERNAMES: Comma-separated usernames (default: alice,bob,carol)
    SEED_PASSWORD: Password shared by every seeded user (default: LetterB0x!pass)
    SEED_EMAIL_DOMAIN: Domain for generated emails (default: example.com)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy import or_

from auth.password import hash_password, validate_password_strength
from database import get_db_session
from models.user import User


def main():
    """Create demo users, skipping any that already exist."""
    usernames = [
        name.strip()
        for name in os.getenv("SEED_USERNAMES", "alice,bob,carol").split(",")
        if name.strip()
    ]
    password = os.getenv("SEED_PASSWORD", "LetterB0x!pass")
    domain = os.getenv("SEED_EMAIL_DOMAIN", "example.com")

    if not usernames:
        print("ERROR: SEED_USERNAMES is empty")
        sys.exit(1)

    is_valid, error_msg = validate_password_strength(password)
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    password_hash = hash_password(password)
    created = 0

    try:
        with get_db_session() as session:
            for username in usernames:
                email = f"{username}@{domain}".lower()
                existing = session.query(User).filter(
                    or_(User.username == username, User.email == email)
                ).first()
                if existing:
                    print(f"SKIP:    {username} already exists ({existing.id})")
                    continue

                user = User(
                    username=username,
                    email=email,
                    name=username.capitalize(),
                    password_hash=password_hash,
                    status="ACTIVE"
                )
                session.add(user)
                session.flush()
                created += 1
                print(f"CREATED: {user.username:<12} {user.email:<28} {user.id}")

            session.commit()

    except Exception as e:
        print(f"ERROR: Failed to seed users: {e}")
        sys.exit(1)

    print(f"SUCCESS: {created} user(s) created")


if __name__ == "__main__":
    main()
