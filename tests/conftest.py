"""Shared fixtures: a throwaway SQLite database, users, tokens and the app."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "intranet_notifications_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["JOB_SIMULATION_STEP_SECONDS"] = "0"

from intranet.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from intranet.domain.entities import User  # noqa: E402
from intranet.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from intranet.infrastructure.notifications import (  # noqa: E402
    NotificationConnectionManager,
    NotificationPublisher,
)
from intranet.infrastructure.repositories import UserRepository  # noqa: E402
from intranet.infrastructure.security import create_access_token  # noqa: E402


class RecordingPublisher(NotificationPublisher):
    """Publisher that keeps every event instead of pushing it."""

    def __init__(self) -> None:
        super().__init__(NotificationConnectionManager())
        self.events: list[tuple[int, str, object]] = []

    def dispatch(self, user_id: int, *, event_type: str, payload) -> None:
        self.events.append((user_id, event_type, payload))

    def types(self) -> list[str]:
        return [event_type for _, event_type, _ in self.events]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database():
    """Start every test from empty tables."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(session):
    def _make(email: str = "ana@example.com", name: str = "Ana", is_active: bool = True) -> User:
        return UserRepository(session).create(
            User(id=None, email=email, name=name, is_active=is_active)
        )

    return _make


@pytest.fixture
def token_for():
    def _token(user: User) -> str:
        return create_access_token({"sub": user.email})

    return _token


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()
