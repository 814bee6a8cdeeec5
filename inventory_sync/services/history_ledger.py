# inventory_sync/services/history_ledger.py
"""
Change History Ledger.

Write side: one append per quantity transition, used by the reconciliation
engine. Read side: the queries reporting and validation screens run against
inventory_history. The ledger does not interpret why a quantity changed
beyond change_type/source; velocity and ABC analysis live downstream.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_sync.core.enums import ChangeType
from inventory_sync.models.inventory_history import InventoryHistory
from inventory_sync.schemas.history import HistoryEventRead, ItemMovement, ValidationReport, ValidationSummary

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 30
VALIDATION_HISTORY_LIMIT = 500
VALIDATION_RECENT_LIMIT = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryLedger:

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Write side ---

    async def record(
        self,
        org_id: str,
        item_id: Optional[int],
        item_name: str,
        sku: Optional[str],
        previous_quantity: int,
        new_quantity: int,
        change_type: str = ChangeType.SYNC.value,
        source: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> InventoryHistory:
        """
        Append one event. Flushes but does not commit; the caller owns the
        transaction so the item write and its history land together.
        """
        event = InventoryHistory(
            org_id=org_id,
            item_id=item_id,
            item_name=item_name,
            sku=sku,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            quantity_change=new_quantity - previous_quantity,
            change_type=change_type.value if isinstance(change_type, ChangeType) else change_type,
            source=source,
            created_at=created_at or utcnow(),
        )
        self.db.add(event)
        await self.db.flush()

        logger.debug(
            f"History: org={org_id} item={item_id} {previous_quantity}->{new_quantity} "
            f"({event.change_type}, {source})"
        )
        return event

    # --- Read side ---

    async def list_since(
        self,
        org_id: str,
        since: datetime,
        limit: int = VALIDATION_HISTORY_LIMIT,
        newest_first: bool = True,
    ) -> List[InventoryHistory]:
        order = InventoryHistory.created_at.desc() if newest_first else InventoryHistory.created_at.asc()
        id_order = InventoryHistory.id.desc() if newest_first else InventoryHistory.id.asc()
        stmt = (
            select(InventoryHistory)
            .where(InventoryHistory.org_id == org_id, InventoryHistory.created_at >= since)
            .order_by(order, id_order)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def total_decrement(self, org_id: str, since: datetime) -> int:
        """Units sold/consumed: sum of |quantity_change| over negative changes."""
        stmt = select(func.coalesce(func.sum(-InventoryHistory.quantity_change), 0)).where(
            InventoryHistory.org_id == org_id,
            InventoryHistory.created_at >= since,
            InventoryHistory.quantity_change < 0,
        )
        return int(await self.db.scalar(stmt) or 0)

    async def total_increment(self, org_id: str, since: datetime) -> int:
        """Units restocked: sum of positive quantity_change."""
        stmt = select(func.coalesce(func.sum(InventoryHistory.quantity_change), 0)).where(
            InventoryHistory.org_id == org_id,
            InventoryHistory.created_at >= since,
            InventoryHistory.quantity_change > 0,
        )
        return int(await self.db.scalar(stmt) or 0)

    async def movement_summary(self, org_id: str, since: Optional[datetime] = None) -> List[ItemMovement]:
        """Per-item sold/restocked totals over a window (30 days by default)."""
        if since is None:
            since = utcnow() - timedelta(days=DEFAULT_LOOKBACK_DAYS)

        sold = func.sum(case((InventoryHistory.quantity_change < 0, -InventoryHistory.quantity_change), else_=0))
        restocked = func.sum(case((InventoryHistory.quantity_change > 0, InventoryHistory.quantity_change), else_=0))

        stmt = (
            select(
                InventoryHistory.item_id,
                InventoryHistory.item_name,
                InventoryHistory.sku,
                sold.label("total_sold"),
                restocked.label("total_restocked"),
                func.count(InventoryHistory.id).label("change_count"),
                func.min(InventoryHistory.created_at).label("first_tracked"),
                func.max(InventoryHistory.created_at).label("last_tracked"),
            )
            .where(InventoryHistory.org_id == org_id, InventoryHistory.created_at >= since)
            .group_by(InventoryHistory.item_id, InventoryHistory.item_name, InventoryHistory.sku)
            .order_by(sold.desc(), InventoryHistory.item_name)
        )
        result = await self.db.execute(stmt)

        return [
            ItemMovement(
                item_id=row.item_id,
                item_name=row.item_name,
                sku=row.sku,
                total_sold=int(row.total_sold or 0),
                total_restocked=int(row.total_restocked or 0),
                change_count=int(row.change_count or 0),
                first_tracked=row.first_tracked,
                last_tracked=row.last_tracked,
            )
            for row in result.all()
        ]

    async def validation_report(self, org_id: str, since: Optional[datetime] = None) -> ValidationReport:
        """
        Clover validation report: how much of the recent history came in via
        webhooks vs polling syncs vs manual validation counts.
        """
        if since is None:
            since = utcnow() - timedelta(days=DEFAULT_LOOKBACK_DAYS)

        records = await self.list_since(org_id, since, limit=VALIDATION_HISTORY_LIMIT, newest_first=True)

        webhook_events = [
            h for h in records
            if h.source and "clover" in h.source and h.change_type == ChangeType.WEBHOOK.value
        ]
        sync_events = [h for h in records if h.source == "clover" and h.change_type == ChangeType.SYNC.value]
        validation_events = [h for h in records if h.change_type == ChangeType.THRIVE_VALIDATION.value]

        summary = ValidationSummary(
            total_history_events=len(records),
            webhook_events=len(webhook_events),
            sync_events=len(sync_events),
            validation_events=len(validation_events),
            total_sales_decrement=sum(-h.quantity_change for h in records if h.quantity_change < 0),
            total_restocks=sum(h.quantity_change for h in records if h.quantity_change > 0),
            tracking_since=since,
        )

        return ValidationReport(
            summary=summary,
            recent_history=HistoryEventRead.from_orm_list(records[:VALIDATION_RECENT_LIMIT]),
        )
