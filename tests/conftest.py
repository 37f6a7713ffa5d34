"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

from expense_api.config import Settings
from expense_api.database import Base, Database, get_db
from expense_api.main import create_app
from expense_api.services.auth import PasswordHasher
from expense_api.services.tokens import TokenService


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/expense_management", "/expense_management_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

TEST_JWT_SECRET = "test-secret"  # noqa: S105

test_database = Database(SQLALCHEMY_DATABASE_URL)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    test_database.open()
    test_database.create_all()
    yield
    test_database.close()


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = test_database.session()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def settings():
    """Settings for tests: cheap hashing, fixed secret, no .env file."""
    return Settings(
        _env_file=None,
        database_url=SQLALCHEMY_DATABASE_URL,
        redis_url=None,
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        environment="test",
    )


@pytest.fixture
def token_service(settings):
    return TokenService.from_settings(settings)


@pytest.fixture
def password_hasher(settings):
    return PasswordHasher(settings.bcrypt_rounds)


@pytest.fixture
def app(settings):
    """A fresh application per test, so rate limit counters start at zero."""
    return create_app(settings, Database(SQLALCHEMY_DATABASE_URL))


@pytest.fixture(scope="function")
def client(app, db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, password: str = "TestPass123") -> AuthHeaders:
    response = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com")


@pytest.fixture
def other_auth_headers(register_user):
    """A second, unrelated user."""
    return register_user("other@example.com")


@pytest.fixture
def register_user(client):
    """Register an extra user: ``register_user("b@example.com")``."""

    def _register(email: str, password: str = "TestPass123") -> AuthHeaders:
        return register(client, email, password)

    return _register
