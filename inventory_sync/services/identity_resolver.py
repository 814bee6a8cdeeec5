# inventory_sync/services/identity_resolver.py
"""
Finds the existing inventory row an inbound record refers to.

Lookup order, first hit wins:
    1. platform variant id
    2. platform product id + SKU
    3. platform product id
    4. SKU
    5. name (only when the record has no platform id and no SKU)

There is no scoring or merging. If product id points at row A and SKU alone
would point at row B, row A wins and nothing is flagged. A new variant of a
known product lands on that product's existing row.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_sync.models.inventory_item import InventoryItem
from inventory_sync.schemas.inventory import InventorySyncItem

logger = logging.getLogger(__name__)


class ItemIdentityResolver:
    """Tenant-scoped point lookups against inventory_items."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, org_id: str, candidate: InventorySyncItem) -> Optional[int]:
        item_id, _ = await self.resolve_with_reason(org_id, candidate)
        return item_id

    async def resolve_with_reason(self, org_id: str, candidate: InventorySyncItem) -> Tuple[Optional[int], Optional[str]]:
        """
        Returns (item_id, matched_key). matched_key names the rule that hit,
        e.g. "shopify_variant_id" or "sku", so callers can log why a record
        landed on a given row.
        """
        for key, conditions in self._lookup_plan(candidate):
            item_id = await self._first_match(org_id, conditions)
            if item_id is not None:
                logger.debug(f"Resolved '{candidate.name}' to item {item_id} via {key} (org {org_id})")
                return item_id, key

        return None, None

    def _lookup_plan(self, candidate: InventorySyncItem) -> List[Tuple[str, list]]:
        plan = []

        # 1. Variant ids
        if candidate.bigcommerce_variant_id:
            plan.append(("bigcommerce_variant_id",
                         [InventoryItem.bigcommerce_variant_id == candidate.bigcommerce_variant_id]))
        if candidate.shopify_variant_id:
            plan.append(("shopify_variant_id",
                         [InventoryItem.shopify_variant_id == candidate.shopify_variant_id]))

        product_keys = self._product_conditions(candidate)

        # 2. Product id + SKU together
        if candidate.sku:
            for key, conditions in product_keys:
                plan.append((f"{key}+sku", conditions + [InventoryItem.sku == candidate.sku]))

        # 3. Product id alone, whatever variant the existing row carries
        plan.extend(product_keys)

        # 4. SKU alone
        if candidate.sku:
            plan.append(("sku", [InventoryItem.sku == candidate.sku]))

        # 5. Name, weakest fallback
        if candidate.name and not candidate.has_structured_identifier():
            plan.append(("name", [InventoryItem.name == candidate.name]))

        return plan

    @staticmethod
    def _product_conditions(candidate: InventorySyncItem) -> List[Tuple[str, list]]:
        keys = []
        if candidate.bigcommerce_product_id:
            keys.append(("bigcommerce_product_id",
                         [InventoryItem.bigcommerce_product_id == candidate.bigcommerce_product_id]))
        if candidate.shopify_product_id:
            keys.append(("shopify_product_id",
                         [InventoryItem.shopify_product_id == candidate.shopify_product_id]))
        if candidate.clover_item_id:
            conditions = [InventoryItem.clover_item_id == candidate.clover_item_id]
            if candidate.clover_merchant_id:
                # Rows synced before multi-merchant support have no merchant id
                conditions.append(or_(
                    InventoryItem.clover_merchant_id == candidate.clover_merchant_id,
                    InventoryItem.clover_merchant_id.is_(None),
                ))
            keys.append(("clover_item_id", conditions))
        return keys

    async def _first_match(self, org_id: str, conditions: list) -> Optional[int]:
        stmt = (
            select(InventoryItem.id)
            .where(InventoryItem.org_id == org_id, *conditions)
            .order_by(InventoryItem.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
