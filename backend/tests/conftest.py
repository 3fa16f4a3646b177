"""Pytest configuration and fixtures for portal tests.

Runs against an in-memory SQLite database with in-memory object storage
and a recording notifier, so no external services are needed.
"""

import os

# Must be set before the app (and its engine/settings) is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from provider_portal.auth.jwt import create_access_token  # noqa: E402
from provider_portal.database import Base, get_db  # noqa: E402
from provider_portal.main import app  # noqa: E402
from provider_portal.models import User, UserRole  # noqa: E402
from provider_portal.services.notifier import RecordingNotifier, get_notifier  # noqa: E402
from provider_portal.services.storage import InMemoryStorage, get_storage  # noqa: E402


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(db_session, storage, notifier) -> AsyncGenerator[AsyncClient, None]:
    """Test client sharing the test session, storage and notifier."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: insert a user row directly, bypassing sync."""

    async def _make(
        subject_id: str,
        email: str | None = None,
        role: UserRole = UserRole.CLIENT,
        is_active: bool = True,
        created_at: datetime | None = None,
        first_name: str = "Test",
        last_name: str = "User",
    ) -> User:
        user = User(
            subject_id=subject_id,
            email=email or f"{subject_id}@example.com",
            role=role,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            created_at=created_at or datetime.utcnow(),
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make


def _bearer(subject_id: str, email: str | None = None, **kwargs) -> dict:
    token = create_access_token(subject_id, email=email, **kwargs)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bearer():
    """Build an Authorization header for any subject."""
    return _bearer


@pytest_asyncio.fixture
async def client_user(make_user) -> User:
    return await make_user("sub-client", role=UserRole.CLIENT)


@pytest.fixture
def auth_headers(client_user: User) -> dict:
    return _bearer(client_user.subject_id, client_user.email)


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user(
        "sub-admin",
        role=UserRole.ADMIN,
        created_at=datetime.utcnow() - timedelta(days=30),
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _bearer(admin_user.subject_id, admin_user.email)


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
