"""Pytest configuration and fixtures."""

import os

# Cheap hashing and a fixed signing key for the whole test run; must be set before app imports
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, build_engine, get_db
from app.models.account import Account, TokenKind
from app.services.credentials import CredentialService
from app.services.notifications import deliver_inline, get_dispatcher, get_notifier
from app.services.store import AccountStore


@dataclass
class SentNotification:
    kind: TokenKind
    account_id: int
    email: str
    token: str


class RecordingNotifier:
    """Collects notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[SentNotification] = []

    def notify(self, kind: TokenKind, account: Account, token: str) -> None:
        self.sent.append(SentNotification(kind=kind, account_id=account.id, email=account.email, token=token))

    def last_token(self, kind: TokenKind) -> str:
        return [n for n in self.sent if n.kind is kind][-1].token


@dataclass
class FakeClock:
    """Controllable naive-UTC clock."""

    now: datetime = field(default_factory=datetime.utcnow)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="notifier")
def notifier_fixture() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="service")
def service_fixture(db_session: Session, notifier: RecordingNotifier, clock: FakeClock) -> CredentialService:
    """Credential service wired to the test database, recording notifier and fake clock."""
    return CredentialService(store=AccountStore(db_session), notifier=notifier, clock=clock)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, notifier: RecordingNotifier):
    """Create a test client with overridden DB, notifier and delivery dependencies and disabled rate limiting.

    Notifications are delivered inline so tests can read them right after the request.
    """
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_dispatcher] = lambda: deliver_inline
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_account")
def test_account_fixture(service: CredentialService, notifier: RecordingNotifier):
    """Register an unverified account and return its details plus the verification token."""
    result = service.register("test@example.com", "password123", "Test User")
    assert result.success

    return {
        "account_id": result.account.id,
        "email": result.account.email,
        "display_name": result.account.display_name,
        "password": "password123",
        "verification_token": notifier.last_token(TokenKind.VERIFICATION),
    }
