"""
Database configuration with SQLAlchemy async support.
Uses SQLite for development, easily switchable to PostgreSQL for production.
"""

import os
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import DB_DIR, get_settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine.

    SQLite connections are not pooled so a session never reuses a connection
    opened on another event loop.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["poolclass"] = NullPool

    engine = create_async_engine(database_url, echo=echo, future=True, **kwargs)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enable SQLite foreign keys and secure delete."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA secure_delete=ON")
            cursor.close()

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_settings = get_settings()
if _settings.database_url.startswith(f"sqlite+aiosqlite:///{DB_DIR}"):
    os.makedirs(DB_DIR, exist_ok=True)

engine = build_engine(_settings.database_url, echo=_settings.sql_debug)
async_session_maker = build_session_maker(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for getting database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables(target: AsyncEngine) -> None:
    """Create all tables registered on `Base.metadata`."""
    # Import models so they register with the metadata
    from app import models  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """Initialize the database tables."""
    await create_tables(engine)


async def close_db():
    """Close database connections."""
    await engine.dispose()
