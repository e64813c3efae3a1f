"""Pytest configuration and fixtures for backend tests.

Database Handling:
- Uses TEST_DATABASE_URL when set (e.g. a PostgreSQL instance in CI)
- Otherwise runs against an in-memory SQLite database per test
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app modules
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-0123456789abcdef"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOGIN_MAX_ATTEMPTS"] = "5"

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"

# Test admin credentials
TEST_ADMIN_USERNAME = "testadmin"
TEST_ADMIN_EMAIL = "testadmin@example.com"
TEST_ADMIN_PASSWORD = "testpassword123"


def _get_database_url() -> str:
    return os.environ.get("TEST_DATABASE_URL") or SQLITE_MEMORY_URL


# --- Login Throttle Reset ---


def _reset_login_throttle():
    """Clear the per-IP failed login tracker shared by the whole app."""
    from sitecms.api.admin import _login_failures

    _login_failures.clear()


@pytest.fixture(autouse=True)
def reset_login_throttle():
    """Reset login throttling before and after each test."""
    _reset_login_throttle()
    yield
    _reset_login_throttle()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with all tables for one test."""
    import sitecms.models  # noqa: F401
    from sitecms.core.database import Base, enable_sqlite_savepoints

    url = _get_database_url()
    if url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        engine = create_async_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(url, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from sitecms.core.database import get_db
    from sitecms.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Mark tests using database fixtures as 'integration', the rest as 'unit'."""
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# --- Admin Auth Helpers ---


@pytest.fixture
def admin_credentials() -> dict[str, str]:
    """Credentials of the default test admin."""
    return {
        "username": TEST_ADMIN_USERNAME,
        "email": TEST_ADMIN_EMAIL,
        "password": TEST_ADMIN_PASSWORD,
    }


@pytest.fixture
def admin_factory(db_session):
    """Factory for creating test admin accounts."""
    from sitecms.models.admin import AdminAccount
    from sitecms.services.auth import hash_password

    async def _create_admin(
        username: str = TEST_ADMIN_USERNAME,
        email: str = TEST_ADMIN_EMAIL,
        password: str = TEST_ADMIN_PASSWORD,
    ) -> AdminAccount:
        admin = AdminAccount(
            username=username,
            email=email.lower(),
            password_hash=hash_password(password),
        )
        db_session.add(admin)
        await db_session.flush()
        return admin

    return _create_admin


@pytest_asyncio.fixture
async def admin(admin_factory):
    """Create a test admin account."""
    return await admin_factory()


@pytest_asyncio.fixture
async def auth_token(db_session, admin) -> str:
    """A session token issued for the test admin."""
    from sitecms.services.auth import AuthService

    return AuthService(db_session).issue_token(admin)


@pytest_asyncio.fixture
async def admin_headers(auth_token) -> dict[str, str]:
    """Headers with the session token for authenticated requests."""
    return {"Authorization": f"Bearer {auth_token}"}
