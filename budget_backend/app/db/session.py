"""
Database session configuration.

Async engine and session factory for the ledger store. Production runs on
PostgreSQL through asyncpg; SQLite through aiosqlite is accepted for local
runs and tests. The daily balance cache relies on INSERT .. ON CONFLICT,
which both backends provide.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from budget_backend.app.core.config import settings


def _engine_options(database_url: str) -> dict:
    """Pool sizing applies to server databases only; SQLite picks its own pool."""
    options = {"echo": settings.db_echo, "future": True}
    if not make_url(database_url).drivername.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Declarative base shared by every ledger model
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    One session per request; the endpoint or the ledger coordinator owns
    the commit.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
