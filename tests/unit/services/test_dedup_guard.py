from datetime import datetime, timedelta, timezone

import pytest

from inventory_sync.services.dedup_guard import DeliveryIdCache, WebhookDedupGuard
from inventory_sync.services.history_ledger import HistoryLedger

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


async def record(db_session, new_quantity=9, source="shopify", created_at=NOW, org_id="T1", item_id=1):
    await HistoryLedger(db_session).record(
        org_id=org_id,
        item_id=item_id,
        item_name="Cheese",
        sku="CZ-1",
        previous_quantity=10,
        new_quantity=new_quantity,
        change_type="webhook",
        source=source,
        created_at=created_at,
    )


@pytest.mark.asyncio
async def test_match_inside_window_is_duplicate(db_session):
    await record(db_session, created_at=NOW - timedelta(seconds=30))
    guard = WebhookDedupGuard(db_session, window_seconds=60, clock=lambda: NOW)

    assert await guard.is_duplicate("T1", 1, 9, "shopify") is True


@pytest.mark.asyncio
async def test_match_outside_window_is_not_duplicate(db_session):
    await record(db_session, created_at=NOW - timedelta(seconds=61))
    guard = WebhookDedupGuard(db_session, window_seconds=60, clock=lambda: NOW)

    assert await guard.is_duplicate("T1", 1, 9, "shopify") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("org_id, item_id, quantity, source", [
    ("T2", 1, 9, "shopify"),
    ("T1", 2, 9, "shopify"),
    ("T1", 1, 8, "shopify"),
    ("T1", 1, 9, "bigcommerce"),
])
async def test_every_key_part_must_match(db_session, org_id, item_id, quantity, source):
    await record(db_session)
    guard = WebhookDedupGuard(db_session, clock=lambda: NOW)

    assert await guard.is_duplicate(org_id, item_id, quantity, source) is False


@pytest.mark.asyncio
async def test_lookup_failure_means_not_duplicate(mocker):
    db = mocker.AsyncMock()
    db.execute.side_effect = RuntimeError("connection reset")
    guard = WebhookDedupGuard(db, clock=lambda: NOW)

    assert await guard.is_duplicate("T1", 1, 9, "shopify") is False


@pytest.mark.asyncio
async def test_delivery_id_bypasses_quantity_heuristic(db_session):
    await record(db_session)
    cache = DeliveryIdCache()
    guard = WebhookDedupGuard(db_session, delivery_cache=cache, clock=lambda: NOW)

    # Same quantity inside the window, but a new delivery
    assert await guard.is_duplicate("T1", 1, 9, "shopify", delivery_id="evt-2") is False

    cache.remember("T1", "evt-2", 1, 9)
    assert await guard.is_duplicate("T1", 1, 9, "shopify", delivery_id="evt-2") is True


@pytest.mark.asyncio
async def test_reused_delivery_id_with_new_quantity_is_not_duplicate(db_session):
    cache = DeliveryIdCache()
    cache.remember("T1", "samehash", 1, 9)
    guard = WebhookDedupGuard(db_session, delivery_cache=cache, clock=lambda: NOW)

    assert await guard.is_duplicate("T1", 1, 4, "bigcommerce", delivery_id="samehash") is False
    assert await guard.is_duplicate("T1", 1, 9, "bigcommerce", delivery_id="samehash") is True


def test_delivery_cache_expires_entries():
    now = [1000.0]
    cache = DeliveryIdCache(ttl_seconds=60, clock=lambda: now[0])

    cache.remember("T1", "evt-1", 5, 3)
    assert cache.seen("T1", "evt-1", 5, 3)
    assert not cache.seen("T1", "evt-1", 5, 4)
    assert not cache.seen("T1", "evt-1", 6, 3)
    assert not cache.seen("T2", "evt-1", 5, 3)

    now[0] += 61
    assert not cache.seen("T1", "evt-1", 5, 3)
    assert len(cache) == 0
