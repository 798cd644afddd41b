"""Shared pytest fixtures."""

import os

# Must be set before phone_reminders.config is imported
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from phone_reminders.models.reminder import Reminder
from phone_reminders.notifications import Notifier, TransportError
from phone_reminders.time_utils import utc_now


class FakeTransport:
    """In-memory stand-in for TwilioTransport."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.messages: list[tuple[str, str]] = []
        self.calls: list[tuple[str, str]] = []

    def send_sms(self, to: str, body: str) -> str:
        if self.error is not None:
            raise self.error
        self.messages.append((to, body))
        return f"SM{len(self.messages):032d}"

    def place_call(self, to: str, twiml: str) -> str:
        if self.error is not None:
            raise self.error
        self.calls.append((to, twiml))
        return f"CA{len(self.calls):032d}"


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine):
    """Create a test database session."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def make_reminder(db_session: Session, owner_id):
    """Factory inserting a committed reminder."""

    def _make(**overrides) -> Reminder:
        values = {
            "owner_id": owner_id,
            "title": "Take medication",
            "phone_number": "+15551234567",
            "scheduled_for": utc_now() - timedelta(seconds=1),
        }
        values.update(overrides)
        reminder = Reminder(**values)
        db_session.add(reminder)
        db_session.commit()
        db_session.refresh(reminder)
        return reminder

    return _make


# ============================================================================
# Notifier
# ============================================================================

@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def notifier(fake_transport):
    """Notifier delivering into the fake transport."""
    return Notifier(fake_transport)


@pytest.fixture
def failing_notifier():
    """Notifier whose transport rejects every request."""
    return Notifier(FakeTransport(error=TransportError("Carrier rejected message", code=30007)))


# ============================================================================
# API
# ============================================================================

def make_token(subject: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Mint a bearer token the API accepts."""
    payload = {"sub": subject, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, os.environ["AUTH_SECRET"], algorithm="HS256")


@pytest.fixture
def client(db_session: Session):
    """TestClient bound to the test session. The app lifespan is not run."""
    from fastapi.testclient import TestClient

    from phone_reminders.api.deps import get_db_session
    from phone_reminders.main import app

    def override_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(owner_id):
    return {"Authorization": f"Bearer {make_token(str(owner_id))}"}
