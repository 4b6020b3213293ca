"""
userhub - Test Configuration

Pytest fixtures for account lifecycle testing.
Provides a test database, a frozen clock, recording mailers,
the wired AccountService and an HTTP client.
"""

from datetime import datetime, timedelta, timezone
from typing import Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from userhub.app import create_app
from userhub.auth import password as password_module
from userhub.auth.database import get_session_factory
from userhub.auth.service import AccountService
from userhub.auth.store import SQLAccountStore
from userhub.auth.tokens import TokenIssuer
from userhub.config import Settings
from userhub.mail import MailError


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_SECRET = "test-signing-secret"
TEST_ISSUER = "userhub-test"
EXTERNAL_URL = "http://localhost:3000"
RESET_PATH = "reset-password"

STRONG_PASSWORD = "h+z67{GxLSL~]Cl(I88AqV7w"
NEW_STRONG_PASSWORD = "Vq8#mL2!zR9@wT4$kPe"


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingMailer:
    """Mailer that keeps sent messages in memory."""

    def __init__(self):
        self.messages: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.messages.append((recipient, subject, body))

    @property
    def last_token(self) -> str:
        """Token at the end of the most recent link."""
        return self.messages[-1][2].rsplit("/", 1)[-1]


class FailingMailer:
    """Mailer whose transport is always down."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        raise MailError("connection refused")


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Lower the bcrypt work factor so tests do not spend seconds hashing."""
    monkeypatch.setattr(password_module, "BCRYPT_WORK_FACTOR", 4)


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import models to register them
    from userhub.auth.models import Account  # noqa: F401

    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(test_engine, clock) -> SQLAccountStore:
    return SQLAccountStore(get_session_factory(test_engine), clock=clock)


@pytest.fixture
def token_issuer(clock) -> TokenIssuer:
    return TokenIssuer(
        issuer=TEST_ISSUER,
        secret=TEST_SECRET,
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
        clock=clock,
    )


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(store, token_issuer, mailer) -> AccountService:
    return AccountService(
        repository=store,
        token_issuer=token_issuer,
        mailer=mailer,
        external_url=EXTERNAL_URL,
        frontend_password_reset_path=RESET_PATH,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        JWT_SECRET=TEST_SECRET,
        JWT_ISSUER=TEST_ISSUER,
        EXTERNAL_URL=EXTERNAL_URL,
        FRONTEND_PASSWORD_RESET_PATH=RESET_PATH,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture(scope="function")
def client(settings, service) -> Generator[TestClient, None, None]:
    """Create a test client wired to the test service."""
    app = create_app(settings, account_service=service)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def pending_account(service, mailer):
    """A registered account that has not been activated yet."""
    return service.register("pending@test.com", STRONG_PASSWORD)


@pytest.fixture
def active_account(service, mailer):
    """A registered and activated account."""
    service.register("active@test.com", STRONG_PASSWORD)
    return service.activate(mailer.last_token)


def register_user(client: TestClient, email: str, password: str = STRONG_PASSWORD):
    """Helper function to register through the API."""
    return client.post("/users", json={"email": email, "password": password})


def login_user(client: TestClient, email: str, password: str = STRONG_PASSWORD) -> dict:
    """Helper function to login and return the response body."""
    response = client.post("/users/login", json={"email": email, "password": password})
    return response.json() if response.status_code == 200 else None
