# tests/conftest.py
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import inventory_sync.models  # noqa: F401  (registers tables on Base.metadata)
from inventory_sync.core.config import clear_settings_cache, get_settings
from inventory_sync.database import Base
from inventory_sync.models.inventory_history import InventoryHistory
from inventory_sync.models.inventory_item import InventoryItem
from inventory_sync.services.reconciliation_service import ReconciliationService

# In-memory database shared across sessions via a single pooled connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_ENV = {
    "DATABASE_URL": TEST_DATABASE_URL,
    "SYNC_BATCH_SIZE": "25",
    "SYNC_BATCH_DELAY_SECONDS": "0",
    "SYNC_ITEM_CONCURRENCY": "1",
    "WEBHOOK_DEDUP_WINDOW_SECONDS": "60",
    "CLOVER_WEBHOOK_SECRET": "clover_test_secret",
    "SHOPIFY_WEBHOOK_SECRET": "shopify_test_secret",
    "BIGCOMMERCE_WEBHOOK_SECRET": "bigcommerce_test_secret",
    "OPENAI_API_KEY": "",
}


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    """Provide test settings"""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    clear_settings_cache()
    yield get_settings()
    clear_settings_cache()


@pytest.fixture(scope="function")
async def test_engine():
    """Create and configure the test database engine (function-scoped)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide a database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def engine(session_factory):
    """Reconciliation engine with sequential item processing and no batch delay."""
    return ReconciliationService(session_factory, batch_delay=0, concurrency=1)


@pytest.fixture
def fetch_items(session_factory):
    async def _fetch(org_id="T1"):
        async with session_factory() as session:
            result = await session.execute(
                select(InventoryItem).where(InventoryItem.org_id == org_id).order_by(InventoryItem.id)
            )
            return list(result.scalars().all())
    return _fetch


@pytest.fixture
def fetch_history(session_factory):
    async def _fetch(org_id="T1"):
        async with session_factory() as session:
            result = await session.execute(
                select(InventoryHistory).where(InventoryHistory.org_id == org_id).order_by(InventoryHistory.id)
            )
            return list(result.scalars().all())
    return _fetch
