"""Shared pytest fixtures for API and database integration tests."""

import os
import tempfile
from typing import AsyncGenerator

# Always a throwaway SQLite file, set before shortlinks.config caches its settings
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"shortlinks-test-{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine  # noqa: E402

from shortlinks.database import Base, engine  # noqa: E402
from shortlinks.main import app  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    # Every request opens its own session through get_db, like production
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
