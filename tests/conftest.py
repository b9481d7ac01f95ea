"""Shared pytest fixtures for store, service and API tests.

Tests run against a throwaway SQLite file by default. Set ``TEST_DATABASE_URL``
to an asyncpg URL to run the same suite against PostgreSQL.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlink.allocator import CodeAllocator
from shortlink.database import Database
from shortlink.dependencies import get_database
from shortlink.main import app
from shortlink.store import LinkStore


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'links.db'}"


@pytest_asyncio.fixture(scope="function")
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    db = Database(database_url, pool_size=10, max_overflow=40)
    await db.drop_all()
    await db.create_all()
    yield db
    await db.drop_all()
    await db.close()


@pytest.fixture
def store(database: Database) -> LinkStore:
    return LinkStore(database)


@pytest.fixture
def allocator() -> CodeAllocator:
    return CodeAllocator()


@pytest_asyncio.fixture(scope="function")
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_database] = lambda: database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
