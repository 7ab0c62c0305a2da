"""
Pytest fixtures for sessionauth tests.

Provides an in-memory SQLite database, an authority wired to it with an
in-memory token, and a FastAPI test client using the same database.
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sessionauth.auth.passwords import PasswordHasher
from sessionauth.auth.service import SessionAuthority
from sessionauth.auth.store import AuthStore
from sessionauth.auth.transport import MemoryTokenTransport
from sessionauth.core.settings import get_settings, settings
from sessionauth.db.database import build_engine, init_db
from sessionauth.db.deps import get_db
from sessionauth.main import create_app

# Lowest bcrypt cost keeps the suite fast
TEST_ROUNDS = 4


class FakeClock:
    """Settable clock returning naive UTC datetimes."""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def engine():
    """Fresh in-memory database with the auth tables."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    """The caller's token, standing in for a browser cookie."""
    return MemoryTokenTransport()


@pytest.fixture
def authority(db, hasher, transport, clock):
    return SessionAuthority(AuthStore(db), hasher, transport, clock=clock)


@pytest.fixture
def make_authority(db, hasher, clock):
    """Build an authority for another caller (its own token)."""

    def _make(transport):
        return SessionAuthority(AuthStore(db), hasher, transport, clock=clock)

    return _make


@pytest.fixture
def app_settings():
    """Process settings with a cheap bcrypt cost; tests may update further."""
    return settings.model_copy(update={"bcrypt_rounds": TEST_ROUNDS})


@pytest.fixture
def app(session_factory, app_settings):
    app = create_app(app_settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: app_settings
    return app


@pytest.fixture
def client(app):
    # https so the Secure session cookie is sent back
    with TestClient(app, base_url="https://testserver") as client:
        yield client
