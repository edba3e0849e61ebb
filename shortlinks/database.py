"""Database configuration and session management.

This module provides the SQLAlchemy async engine, per-request session
dependency and the table lifecycle hooks used by the application lifespan.

Flow Diagram — Database Operations
==================================
::
    ┌─────────────┐
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ get_db()    │
    │ dependency  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Yield async │
    │ session     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Auto-close  │
    │ (finally)   │
    └─────────────┘

Key Behaviours
===============
- One session per request; sessions are closed after the handler returns.
- PostgreSQL URLs get a connection pool sized for production workloads.
- SQLite URLs get no pooling and a long busy timeout, so concurrent writers
  queue on the file lock instead of failing.
- Tables are created on startup and the engine is disposed on shutdown.

Functions:
    get_db():  FastAPI dependency for database sessions.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from shortlinks.config import get_settings

__all__ = ["Base", "engine", "async_session", "get_db", "init_db", "close_db"]

settings = get_settings()

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "poolclass": NullPool,
            "connect_args": {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
        }
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL),
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    # Import registers the models on Base.metadata
    from shortlinks import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
