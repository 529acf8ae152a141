from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipebox.auth.sessions import issue_session
from recipebox.core.clock import utcnow
from recipebox.db import Base, Database
from recipebox.main import create_app
from recipebox.models import AuthSession, User
from recipebox.settings import Settings

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# check_same_thread is needed for SQLite; StaticPool shares the single
# in-memory connection between the test and the app's threadpool.
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        database_url=SQLALCHEMY_DATABASE_URL,
        base_url="http://api.test",
        frontend_url="http://app.test",
        github_client_id="gh-client",
        github_client_secret="gh-secret",
        dev_routes_enabled=True,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings, database=Database(engine))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


def _make_user(db_session, name, email):
    user = User(name=name, email=email, email_verified=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user_a(db_session):
    return _make_user(db_session, "Ada", "ada@example.com")


@pytest.fixture
def user_b(db_session):
    return _make_user(db_session, "Brian", "brian@example.com")


@pytest.fixture
def login(db_session, test_settings):
    """Return auth headers for a user, backed by a real session row."""

    def _login(user):
        session = issue_session(db_session, user, user_agent="pytest", config=test_settings)
        return {"Authorization": f"Bearer {session.token}"}

    return _login


@pytest.fixture
def expired_session(db_session, user_a):
    session = AuthSession(
        user_id=user_a.id,
        token="expired-token",
        expires_at=utcnow() - timedelta(minutes=1),
    )
    db_session.add(session)
    db_session.commit()
    db_session.refresh(session)
    return session
