"""Shared test fixtures and configuration."""
import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from naijapulse.api.deps import get_db, get_session_factory
from naijapulse.core.actors import AuthenticatedActor, GuestActor
from naijapulse.core.cache import global_cache
from naijapulse.core.rate_limit import limiter
from naijapulse.core.security import create_access_token
from naijapulse.db.base import Base
from naijapulse.db.events import install_change_capture
from naijapulse.db.models import Profile
from naijapulse.main import app
from naijapulse.realtime.feed import ChangeFeed, change_feed
from naijapulse.services.polls import create_poll


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

GUEST_TOKEN = "guest_1718000000000_k3j9x0a2b"
OTHER_GUEST_TOKEN = "guest_1718000000001_zz9y8x7w6"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    # Tests marked @pytest.mark.rate_limit run against a fresh limiter
    if "rate_limit" in request.keywords:
        limiter.reset()
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
        limiter.enabled = True


@pytest.fixture(autouse=True)
def clear_read_cache():
    global_cache.clear()
    yield
    global_cache.clear()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Context-managed sessions on the test database (what composers and streams use)."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    @contextmanager
    def factory():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    return factory


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a new database session for a test."""
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def feed():
    """A private change feed with the session hooks routed to it."""
    test_feed = ChangeFeed(max_channels=50)
    install_change_capture(test_feed)
    yield test_feed
    test_feed.close()
    install_change_capture(change_feed)


@pytest.fixture(scope="function")
def client(db_session, session_factory):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id: str, **claims) -> dict:
    """Authorization header carrying a provider-style access token."""
    token = create_access_token({"sub": user_id, **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    return auth_headers("user-ada", email="ada.obi@example.com")


@pytest.fixture
def guest_headers():
    return {"X-Guest-Id": GUEST_TOKEN}


@pytest.fixture
def admin_headers(db_session):
    """Headers for a signed-in user whose profile carries the admin flag."""
    db_session.add(Profile(id="admin-1", display_name="Chief Admin", is_admin=True))
    db_session.commit()
    return auth_headers("admin-1", email="chief@example.com")


@pytest.fixture
def creator():
    return AuthenticatedActor("creator-1")


@pytest.fixture
def guest():
    return GuestActor(GUEST_TOKEN)


@pytest.fixture
def make_poll(db_session, creator):
    """Create polls directly through the service layer."""
    def _make(options=("A", "B", "C"), **kwargs):
        fields = {
            "title": "Best jollof",
            "question": "Which country makes the best jollof?",
            "category": "Lifestyle",
        }
        fields.update(kwargs)
        return create_poll(db_session, creator, "Creator One", options=list(options), **fields)

    return _make
