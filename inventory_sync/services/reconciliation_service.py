# inventory_sync/services/reconciliation_service.py
"""
Reconciliation engine shared by every integration.

Takes a normalized batch of InventorySyncItem records for one org and merges
it into inventory_items, appending to inventory_history whenever a quantity
actually moves. Used by the poll-based CLI sync, the webhook service and the
generic JSON API importer so identity resolution and history semantics live
in one place.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_sync.core.config import get_settings
from inventory_sync.core.enums import ChangeType, ImportStatus, ItemType, KNOWN_SOURCES
from inventory_sync.core.exceptions import ItemValidationError, SyncValidationError
from inventory_sync.models.import_record import ImportRecord
from inventory_sync.models.inventory_item import InventoryItem
from inventory_sync.schemas.inventory import InventorySyncItem, SyncBatchResult, SyncResponse
from inventory_sync.services.dedup_guard import DeliveryIdCache, WebhookDedupGuard
from inventory_sync.services.history_ledger import HistoryLedger
from inventory_sync.services.identity_resolver import ItemIdentityResolver
from inventory_sync.services.label_generator import LabelGenerator
from inventory_sync.services.quantity import normalize_quantity

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
FAILED = "failed"


class ItemOutcome(NamedTuple):
    status: str
    error: Optional[str] = None


def source_label(source: str) -> str:
    """Known sources are stored lower-cased, anything else verbatim."""
    normalized = source.lower()
    return normalized if normalized in KNOWN_SOURCES else source


class ReconciliationService:
    """
    Reconciles inbound item batches into the store of record.

    Each item gets its own session and commit, so a failure on one item never
    rolls back another. Items are processed in chunks with a short pause
    between chunks. Inside a chunk, records sharing a variant id, product id,
    SKU or name run one after another; up to `concurrency` such groups run at
    once.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        label_generator: Optional[LabelGenerator] = None,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
        concurrency: Optional[int] = None,
        dedup_window_seconds: Optional[int] = None,
        delivery_cache: Optional[DeliveryIdCache] = None,
        clock: Optional[Callable] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.label_generator = label_generator
        self.batch_size = max(1, batch_size or settings.SYNC_BATCH_SIZE)
        self.batch_delay = settings.SYNC_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self.concurrency = max(1, concurrency or settings.SYNC_ITEM_CONCURRENCY)
        self.dedup_window_seconds = dedup_window_seconds or settings.WEBHOOK_DEDUP_WINDOW_SECONDS
        self.delivery_cache = delivery_cache
        self._clock = clock

    async def reconcile(
        self,
        org_id: str,
        source: str,
        items: Sequence[Union[InventorySyncItem, dict]],
        enable_enrichment: bool = False,
        webhook: bool = False,
        delivery_id: Optional[str] = None,
    ) -> SyncResponse:
        """
        Merge `items` into org_id's inventory.

        Args:
            org_id: Tenant scope for every read and write
            source: Origin tag written to history and the imports audit row
            items: InventorySyncItem records (plain dicts are validated)
            enable_enrichment: Ask the label generator for category/label on unlabelled items
            webhook: History rows get change_type "webhook" and the dedup guard applies
            delivery_id: Provider delivery id, preferred over the quantity heuristic when given

        Returns:
            SyncResponse with per-batch counters and errors in input order

        Raises:
            SyncValidationError: Missing org_id/source or an empty batch. Nothing is written.
        """
        if not org_id:
            raise SyncValidationError("org_id is required for inventory sync")
        if not source:
            raise SyncValidationError("source is required for inventory sync")
        if not isinstance(items, (list, tuple)) or len(items) == 0:
            raise SyncValidationError("items must be a non-empty array")

        label = source_label(source)
        change_type = ChangeType.WEBHOOK if webhook else ChangeType.SYNC
        results = SyncBatchResult()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_group(chunk, indexes, outcomes):
            # Records in one group can resolve to the same row, so they go in order
            async with semaphore:
                for index in indexes:
                    outcomes[index] = await self._reconcile_item(
                        org_id, label, chunk[index], enable_enrichment, change_type, webhook, delivery_id
                    )

        logger.info(f"Reconciling {len(items)} items for org {org_id} from {label} (webhook={webhook})")

        for start in range(0, len(items), self.batch_size):
            chunk = items[start:start + self.batch_size]

            # Outcomes are slotted by input index, so errors[] is deterministic
            outcomes: List[Optional[ItemOutcome]] = [None] * len(chunk)
            await asyncio.gather(*(
                run_group(chunk, indexes, outcomes) for indexes in self._identity_groups(chunk)
            ))

            for outcome in outcomes:
                if outcome.status == CREATED:
                    results.created += 1
                elif outcome.status == UPDATED:
                    results.updated += 1
                else:
                    results.failed += 1
                    results.errors.append(outcome.error)

            if start + self.batch_size < len(items) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        await self._record_import(org_id, label, results)

        response = SyncResponse.from_results(results)
        log = logger.info if response.success else logger.warning
        log(f"Sync for org {org_id} from {label}: {response.summary}")
        return response

    @staticmethod
    def _coerce_item(raw_item: Any) -> InventorySyncItem:
        """
        Raises:
            ItemValidationError: the record cannot be read or has no name
        """
        if isinstance(raw_item, InventorySyncItem):
            item = raw_item
        else:
            try:
                item = InventorySyncItem.model_validate(raw_item)
            except ValidationError as e:
                name = raw_item.get("name") if isinstance(raw_item, dict) else None
                raise ItemValidationError(f"{name or 'Unknown'}: {e.errors()[0].get('msg', 'Invalid item')}")

        if not item.name:
            raise ItemValidationError("Item missing name field")
        return item

    @classmethod
    def _identity_keys(cls, raw_item: Any) -> List[Tuple[str, str]]:
        """Every value the resolver could match this record on."""
        try:
            item = cls._coerce_item(raw_item)
        except ItemValidationError:
            return []

        keys = [(field, str(value)) for field, value in (
            ("bigcommerce_variant_id", item.bigcommerce_variant_id),
            ("shopify_variant_id", item.shopify_variant_id),
            ("bigcommerce_product_id", item.bigcommerce_product_id),
            ("shopify_product_id", item.shopify_product_id),
            ("clover_item_id", item.clover_item_id),
            ("sku", item.sku),
        ) if value]
        keys.append(("name", item.name))
        return keys

    @classmethod
    def _identity_groups(cls, chunk: Sequence[Any]) -> List[List[int]]:
        """
        Partition chunk indexes so records sharing any identity key land in
        the same group. Groups and the indexes inside them keep input order.
        """
        parent = list(range(len(chunk)))

        def find(index):
            while parent[index] != index:
                parent[index] = parent[parent[index]]
                index = parent[index]
            return index

        owner: Dict[Tuple[str, str], int] = {}
        for index, raw_item in enumerate(chunk):
            for key in cls._identity_keys(raw_item):
                if key in owner:
                    root, other = find(index), find(owner[key])
                    if root != other:
                        parent[max(root, other)] = min(root, other)
                else:
                    owner[key] = index

        groups: Dict[int, List[int]] = {}
        for index in range(len(chunk)):
            groups.setdefault(find(index), []).append(index)
        return list(groups.values())

    async def _reconcile_item(
        self,
        org_id: str,
        source: str,
        raw_item: Any,
        enable_enrichment: bool,
        change_type: ChangeType,
        webhook: bool,
        delivery_id: Optional[str],
    ) -> ItemOutcome:
        try:
            item = self._coerce_item(raw_item)
        except ItemValidationError as e:
            return ItemOutcome(FAILED, str(e))

        try:
            async with self.session_factory() as session:
                try:
                    outcome, item_id = await self._apply(
                        session, org_id, source, item, enable_enrichment, change_type, webhook, delivery_id
                    )
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

            if webhook and delivery_id and self.delivery_cache is not None:
                self.delivery_cache.remember(org_id, delivery_id, item_id, normalize_quantity(item.quantity))
            return outcome

        except Exception as e:
            logger.error(f"Failed to reconcile '{item.name}' for org {org_id}: {e}")
            return ItemOutcome(FAILED, f"{item.name}: {str(e) or type(e).__name__}")

    async def _apply(
        self,
        session: AsyncSession,
        org_id: str,
        source: str,
        item: InventorySyncItem,
        enable_enrichment: bool,
        change_type: ChangeType,
        webhook: bool,
        delivery_id: Optional[str],
    ):
        quantity = normalize_quantity(item.quantity)
        reorder_threshold = normalize_quantity(item.reorder_threshold)

        resolver = ItemIdentityResolver(session)
        ledger = HistoryLedger(session)

        item_id, matched_key = await resolver.resolve_with_reason(org_id, item)
        existing = await session.get(InventoryItem, item_id) if item_id is not None else None

        category, ai_label = item.category, item.ai_label
        needs_labels = existing is None or not (existing.category or existing.ai_label)
        if enable_enrichment and not category and not ai_label and needs_labels:
            category, ai_label = await self._enrich(item.name)

        if existing is not None:
            previous_quantity = existing.quantity or 0

            existing.name = item.name
            if item.sku:
                existing.sku = item.sku
            existing.quantity = quantity
            existing.reorder_threshold = reorder_threshold
            existing.item_type = ItemType.STOCK.value
            for field, value in item.linkage().items():
                setattr(existing, field, value)
            if item.invoice:
                existing.invoice = item.invoice
            if item.expiration_date:
                existing.expiration_date = item.expiration_date

            # Enrichment is written once and never overwritten
            if category and not existing.category:
                existing.category = category
            if ai_label and not existing.ai_label:
                existing.ai_label = ai_label

            await session.flush()

            if quantity != previous_quantity:
                duplicate = False
                if webhook:
                    guard = WebhookDedupGuard(
                        session,
                        window_seconds=self.dedup_window_seconds,
                        delivery_cache=self.delivery_cache,
                        clock=self._clock,
                    )
                    duplicate = await guard.is_duplicate(org_id, existing.id, quantity, source, delivery_id)

                if not duplicate:
                    await ledger.record(
                        org_id=org_id,
                        item_id=existing.id,
                        item_name=item.name,
                        sku=item.sku or existing.sku,
                        previous_quantity=previous_quantity,
                        new_quantity=quantity,
                        change_type=change_type,
                        source=source,
                        created_at=self._clock() if self._clock else None,
                    )

            logger.debug(f"Updated item {existing.id} '{item.name}' via {matched_key}")
            return ItemOutcome(UPDATED), existing.id

        new_item = InventoryItem(
            org_id=org_id,
            name=item.name,
            sku=item.sku,
            quantity=quantity,
            reorder_threshold=reorder_threshold,
            item_type=ItemType.STOCK.value,
            category=category,
            ai_label=ai_label,
            invoice=item.invoice,
            expiration_date=item.expiration_date,
            **item.linkage(),
        )
        session.add(new_item)
        await session.flush()

        if quantity > 0:
            await ledger.record(
                org_id=org_id,
                item_id=new_item.id,
                item_name=item.name,
                sku=item.sku,
                previous_quantity=0,
                new_quantity=quantity,
                change_type=change_type,
                source=source,
                created_at=self._clock() if self._clock else None,
            )

        logger.debug(f"Created item {new_item.id} '{item.name}' for org {org_id}")
        return ItemOutcome(CREATED), new_item.id

    async def _enrich(self, item_name: str):
        """Returns (category, ai_label); (None, None) on any failure."""
        if self.label_generator is None:
            return None, None
        try:
            result = await self.label_generator.label(item_name)
        except Exception as e:
            logger.warning(f"AI labelling failed for '{item_name}', continuing without it: {e}")
            return None, None

        if not result.ok:
            return None, None
        category = result.category.value if result.category else None
        return category, result.label

    async def _record_import(self, org_id: str, source: str, results: SyncBatchResult):
        status = ImportStatus.COMPLETED if results.failed == 0 else ImportStatus.COMPLETED_WITH_ERRORS
        try:
            async with self.session_factory() as session:
                session.add(ImportRecord(
                    org_id=org_id,
                    source=source,
                    status=status.value,
                    created_count=results.created,
                    updated_count=results.updated,
                    failed_count=results.failed,
                ))
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to record import audit row for org {org_id}: {e}", exc_info=True)


async def sync_inventory_items(
    session_factory: async_sessionmaker,
    org_id: str,
    source: str,
    items: Sequence[Union[InventorySyncItem, dict]],
    enable_ai_labeling: bool = False,
    label_generator: Optional[LabelGenerator] = None,
) -> SyncResponse:
    """
    Convenience wrapper for one-off poll syncs (used by the CLI).
    """
    service = ReconciliationService(session_factory, label_generator=label_generator)
    return await service.reconcile(org_id, source, items, enable_enrichment=enable_ai_labeling)
