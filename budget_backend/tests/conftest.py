"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from budget_backend.app.main import app
from budget_backend.app.db.session import get_db, Base
from budget_backend.app.core.security import get_password_hash
from budget_backend.app.core.jwt import create_access_token
from budget_backend.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # The pooled connection is bound to this test's event loop
    await engine.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    """Factory for extra sessions, e.g. a second writer racing the first."""
    return TestingSessionLocal


async def make_user(session: AsyncSession, email: str = "owner@example.com", name: str = "Owner") -> User:
    user = User(email=email, name=name, hashed_password=get_password_hash("secret123"), tz="UTC", is_active=True)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user(db_session):
    return await make_user(db_session)


@pytest.fixture
async def other_user(db_session):
    return await make_user(db_session, email="intruder@example.com", name="Intruder")


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
def other_headers(other_user):
    return auth_headers_for(other_user)
