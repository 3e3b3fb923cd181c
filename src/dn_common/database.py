"""Async engine and per-request sessions.

The ledger repositories issue raw SQL through the session; only the users
table is ORM-mapped on `Base`.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    # Webhooks arrive sporadically; drop connections the server closed while idle.
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed (and rolled back if open) afterwards."""
    async with async_session_factory() as session:
        yield session


async def check_database(db_engine: AsyncEngine = engine) -> None:
    """Fail fast at startup when PostgreSQL is unreachable."""
    async with db_engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
