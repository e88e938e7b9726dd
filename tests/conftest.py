import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnop"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "correct-horse"
os.environ["LOG_FORMAT"] = "console"

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import List, Tuple  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import leadcapture.models  # noqa: E402,F401
from leadcapture.core.catalog import build_app_config, get_app_config  # noqa: E402
from leadcapture.core.exceptions import ExternalServiceError  # noqa: E402
from leadcapture.db.base import Base  # noqa: E402
from leadcapture.db.session import get_session  # noqa: E402
from leadcapture.main import app  # noqa: E402
from leadcapture.routes.deps import get_clock  # noqa: E402
from leadcapture.services.messaging import Notifier, get_notifier  # noqa: E402

# Wednesday
FIXED_NOW = datetime(2025, 1, 15, 18, 30, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class RecordingEmailSender:
    def __init__(self):
        self.sent: List[dict] = []

    async def send(self, *, to: str, subject: str, html: str, text: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})


class RecordingSmsSender:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def send(self, *, to: str, body: str) -> None:
        self.sent.append((to, body))


class FailingSmsSender:
    def __init__(self):
        self.attempts = 0

    async def send(self, *, to: str, body: str) -> None:
        self.attempts += 1
        raise ExternalServiceError(message="SMS provider rejected the message", details={"provider": "twilio"})


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app_config():
    return build_app_config(())


@pytest.fixture
def clock():
    return FrozenClock(FIXED_NOW)


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def notifier(email_sender, sms_sender):
    return Notifier(email=email_sender, sms=sms_sender)


@pytest.fixture
async def client(session_factory, app_config, clock, notifier):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_app_config] = lambda: app_config

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def failing_sms_sender():
    return FailingSmsSender()
