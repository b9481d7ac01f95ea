"""Database handle and session management for the shortlink service.

This module provides an explicitly constructed storage handle wrapping a
SQLAlchemy async engine and session factory. The handle is opened once at
application startup, passed to whoever needs it, and closed at shutdown.

Flow Diagram — Handle Lifecycle
===============================
::
    ┌──────────────┐
    │  lifespan()  │
    │  startup     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Database.    │
    │ from_settings│
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ create_all() │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ session() per│
    │ store call   │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ close()      │
    │ (dispose)    │
    └──────────────┘

How to Use
===========
**Step 1 — Open on startup**::
    database = Database.from_settings(get_settings())
    await database.create_all()

**Step 2 — Open a session**::
    async with database.session() as session:
        result = await session.execute(select(Link))

**Step 3 — Close on shutdown**::
    await database.close()

Key Behaviours
===============
- Every store operation opens its own short-lived session; sessions are
  never shared between concurrent requests.
- Pool sizing only applies to server databases; SQLite keeps the driver's
  default pool.
- ``dialect_name`` lets the store pick the matching upsert construct.

Classes:
    Base:  SQLAlchemy declarative base for all models.
    Database:  Engine + session factory with an explicit lifecycle.
"""

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlink.config import Settings

__all__ = ["Base", "Database"]


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the async engine for one database URL."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
    ) -> None:
        engine_kwargs: dict = {"echo": echo, "pool_pre_ping": True}
        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        return self._sessionmaker()

    async def create_all(self) -> None:
        # Import registers the model on Base.metadata.
        from shortlink import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self.engine.dispose()
