# inventory_sync/database.py

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base
from contextlib import asynccontextmanager
from typing import Optional
from inventory_sync.core.config import get_settings
from inventory_sync.core.exceptions import DatabaseError
import os

Base = declarative_base()


def normalize_database_url(database_url: str) -> str:
    """Convert postgresql:// to postgresql+asyncpg:// for async support"""
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    if database_url.startswith('postgresql://'):
        database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return database_url


def create_engine_from_url(database_url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """
    Build an async engine. Falls back to settings / DATABASE_URL env when no URL is given.
    """
    if not database_url:
        database_url = get_settings().DATABASE_URL or os.environ.get('DATABASE_URL', '')
    if not database_url:
        raise DatabaseError("DATABASE_URL is not set in environment variables")

    database_url = normalize_database_url(database_url)

    if database_url.startswith('postgresql+asyncpg://'):
        kwargs.setdefault('pool_size', 10)
        kwargs.setdefault('max_overflow', 20)
        kwargs.setdefault('pool_timeout', 30)
        kwargs.setdefault('pool_recycle', 1800)

    return create_async_engine(database_url, echo=False, future=True, **kwargs)


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@asynccontextmanager
async def get_session(session_factory: async_sessionmaker) -> AsyncSession:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


async def create_tables(engine: AsyncEngine) -> None:
    # Import models so they register on Base.metadata
    import inventory_sync.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
