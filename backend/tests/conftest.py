"""Pytest fixtures for mailbox testing.

Provides reusable test fixtures for:
- Database session on a fresh in-memory SQLite store
- Test users (alice, bob, carol) plus a disabled account
- Authenticated test clients with JWT tokens
- A recording push dispatcher installed in place of the real one

Usage:
    def test_inbox(bob_client, alice_client):
        alice_client.post("/api/v1/messages/send", json={...})
        response = bob_client.get("/api/v1/messages/inbox")
        assert response.status_code == 200
"""

import sys
import os
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("WS_JOIN_TIMEOUT_SECONDS", "2")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator, List, Tuple
from uuid import UUID

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models.base import Base
from models.user import User
from models.message import Message
from auth.password import hash_password
from auth.jwt import create_access_token


# One shared connection so every session and the app's request thread see the same in-memory database
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# Import the actual dependencies to use for overrides
from database import get_db as database_get_db
from dependencies import get_notification_dispatcher

TEST_PASSWORD = "SecureP@ss123"


class RecordingDispatcher:
    """Stands in for the push dispatcher and remembers every notification."""

    def __init__(self):
        self.calls: List[Tuple[UUID, Message]] = []

    def __call__(self, recipient_id, message):
        self.calls.append((recipient_id, message))

    @property
    def recipients(self) -> List[UUID]:
        return [recipient_id for recipient_id, _ in self.calls]

    @property
    def message_ids(self) -> List[UUID]:
        return [message.id for _, message in self.calls]


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    Each test gets a clean database state.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def _create_user(db_session: Session, username: str, status: str = "ACTIVE") -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        name=username.capitalize(),
        password_hash=hash_password(TEST_PASSWORD),
        status=status
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def alice(db_session: Session) -> User:
    return _create_user(db_session, "alice")


@pytest.fixture(scope="function")
def bob(db_session: Session) -> User:
    return _create_user(db_session, "bob")


@pytest.fixture(scope="function")
def carol(db_session: Session) -> User:
    return _create_user(db_session, "carol")


@pytest.fixture(scope="function")
def disabled_user(db_session: Session) -> User:
    return _create_user(db_session, "mallory", status="DISABLED")


def auth_headers(user: User) -> dict:
    """Authorization header carrying a fresh token for the user."""
    token = create_access_token(
        user_id=user.id,
        username=user.username,
        email=user.email
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def push_recorder() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture(scope="function")
def app(db_session: Session, push_recorder: RecordingDispatcher):
    """The FastAPI app wired to the test database and the recording dispatcher."""
    from main import app as fastapi_app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fastapi_app.dependency_overrides[database_get_db] = override_get_db
    fastapi_app.dependency_overrides[get_notification_dispatcher] = lambda: push_recorder

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Create an unauthenticated test client.

    Useful for testing public endpoints and the auth flow.
    """
    return TestClient(app)


def _authenticated_client(app, user: User) -> TestClient:
    client = TestClient(app)
    client.headers.update(auth_headers(user))
    return client


@pytest.fixture(scope="function")
def alice_client(app, alice: User) -> TestClient:
    """Test client authenticated as alice."""
    return _authenticated_client(app, alice)


@pytest.fixture(scope="function")
def bob_client(app, bob: User) -> TestClient:
    """Test client authenticated as bob."""
    return _authenticated_client(app, bob)


@pytest.fixture(scope="function")
def carol_client(app, carol: User) -> TestClient:
    """Test client authenticated as carol."""
    return _authenticated_client(app, carol)
