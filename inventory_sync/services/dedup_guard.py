# inventory_sync/services/dedup_guard.py
"""
Webhook Deduplication Guard.

Webhook delivery is at-least-once. Before a webhook-triggered reconcile
appends history, the guard checks whether the same (org, item, resulting
quantity, source) was already recorded inside a trailing window. A hit means
the provider is retrying: the item row is still written (idempotent) but the
second history row is skipped.

The quantity heuristic can suppress two genuine changes that land on the same
quantity within the window. When the provider supplies a delivery id it is
checked first and the heuristic is not consulted.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_sync.models.inventory_history import InventoryHistory

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60


class DeliveryIdCache:
    """
    In-process TTL set of (org, delivery id, item id, resulting quantity)
    already applied. A repeated delivery id only matches the same transition,
    so a new quantity under a reused id is still recorded.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._seen: Dict[Tuple[str, str, int, int], float] = {}

    def _purge(self):
        cutoff = self._clock() - self.ttl_seconds
        expired = [key for key, seen_at in self._seen.items() if seen_at < cutoff]
        for key in expired:
            del self._seen[key]

    def seen(self, org_id: str, delivery_id: str, item_id: int, new_quantity: int) -> bool:
        self._purge()
        return (org_id, delivery_id, item_id, new_quantity) in self._seen

    def remember(self, org_id: str, delivery_id: str, item_id: int, new_quantity: int):
        self._seen[(org_id, delivery_id, item_id, new_quantity)] = self._clock()

    def __len__(self):
        self._purge()
        return len(self._seen)


class WebhookDedupGuard:

    def __init__(
        self,
        db: AsyncSession,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        delivery_cache: Optional[DeliveryIdCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.window_seconds = window_seconds
        self.delivery_cache = delivery_cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def is_duplicate(
        self,
        org_id: str,
        item_id: int,
        new_quantity: int,
        source: str,
        delivery_id: Optional[str] = None,
    ) -> bool:
        """
        True when an equivalent history row already exists. Never raises: a
        failed lookup is logged and treated as "not a duplicate" so the
        history write still happens.
        """
        if delivery_id and self.delivery_cache is not None:
            return self.delivery_cache.seen(org_id, delivery_id, item_id, new_quantity)

        window_start = self._clock() - timedelta(seconds=self.window_seconds)
        stmt = (
            select(InventoryHistory.id)
            .where(
                InventoryHistory.org_id == org_id,
                InventoryHistory.item_id == item_id,
                InventoryHistory.new_quantity == new_quantity,
                InventoryHistory.source == source,
                InventoryHistory.created_at >= window_start,
            )
            .limit(1)
        )

        try:
            result = await self.db.execute(stmt)
            duplicate = result.scalar_one_or_none() is not None
        except Exception as e:
            logger.warning(f"Dedup lookup failed for item {item_id} (org {org_id}): {e}")
            return False

        if duplicate:
            logger.info(
                f"Skipping duplicate webhook history for item {item_id} "
                f"(org {org_id}, qty {new_quantity}, source {source})"
            )
        return duplicate
