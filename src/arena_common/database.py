"""Async engine and session factory for the arena schema.

Sessions never autocommit. Services decide where each unit of work ends:
initial resolution commits once, a correction commits once per bet.
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
    """Declarative base for the arena ORM mappings (profiles, user_points)."""

    pass


# Connects with the service role: reads here bypass row-level policies.
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=10,
    max_overflow=5,
    pool_pre_ping=True,
    connect_args={
        "server_settings": {
            "application_name": "arena-settlement",
            "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS),
        }
    },
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards.

    Anything left uncommitted when the request ends is rolled back on close.
    """
    async with async_session_factory() as session:
        yield session


async def check_database() -> None:
    """Fail startup early when PostgreSQL is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def dispose_engine() -> None:
    await engine.dispose()
