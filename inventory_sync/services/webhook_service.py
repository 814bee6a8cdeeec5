"""
Webhook receiver logic for Clover, Shopify and BigCommerce.

The HTTP layer hands over the raw body and the relevant headers; this module
verifies the HMAC signature, parses the provider envelope, finds the owning
org through an injected lookup, gets the changed item(s) and reconciles them
with webhook=True so history is written as change_type "webhook" behind the
dedup guard.

Every handler returns a WebhookAck. Anything other than a bad signature is
acknowledged with success=True so providers do not retry.
"""

import json
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from inventory_sync.core.config import get_webhook_secret
from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import WebhookVerificationError
from inventory_sync.core.security import verify_signature
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.integrations.platforms.shopify import map_product as map_shopify_product
from inventory_sync.integrations.setup import build_adapter
from inventory_sync.schemas.inventory import InventorySyncItem, SyncResponse
from inventory_sync.schemas.webhook import (
    BigCommerceWebhookPayload,
    CloverWebhookPayload,
    ShopifyWebhookProduct,
    TenantConnection,
    WebhookAck,
)
from inventory_sync.services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

TenantLookup = Callable[[PlatformName, str], Awaitable[Optional[TenantConnection]]]
AdapterFactory = Callable[..., PlatformAdapter]

SIGNATURE_ENCODINGS = {
    PlatformName.CLOVER: "hex",
    PlatformName.SHOPIFY: "base64",
    PlatformName.BIGCOMMERCE: "base64",
}

SHOPIFY_PRODUCT_TOPICS = ("products/create", "products/update")
CLOVER_ITEM_PREFIX = "I"


def clover_source_tag(merchant_id: str) -> str:
    return f"clover_webhook_update_{merchant_id}"


class WebhookService:

    def __init__(
        self,
        engine: ReconciliationService,
        tenant_lookup: TenantLookup,
        adapter_factory: AdapterFactory = build_adapter,
        secrets: Optional[Dict[PlatformName, str]] = None,
    ):
        self.engine = engine
        self.tenant_lookup = tenant_lookup
        self.adapter_factory = adapter_factory
        self._secrets = secrets or {}

    def _secret_for(self, platform: PlatformName) -> Optional[str]:
        return self._secrets.get(platform) or get_webhook_secret(platform.slug)

    def verify(self, platform: PlatformName, raw_body: Union[bytes, str], signature: Optional[str]) -> bool:
        """Unconfigured secrets fail verification."""
        secret = self._secret_for(platform)
        if not secret:
            logger.error(f"{platform.value} webhook secret not configured - rejecting webhook")
            return False
        return verify_signature(raw_body, signature, secret, SIGNATURE_ENCODINGS[platform])

    def require_signature(self, platform: PlatformName, raw_body: Union[bytes, str], signature: Optional[str]):
        """
        Raises:
            WebhookVerificationError: missing secret or signature mismatch
        """
        if not self.verify(platform, raw_body, signature):
            raise WebhookVerificationError(f"Invalid {platform.value.title()} webhook signature")

    @staticmethod
    def _rejected() -> WebhookAck:
        return WebhookAck(success=False, status_code=401, message="Invalid signature")

    @staticmethod
    def _add_results(ack: WebhookAck, response: SyncResponse):
        ack.processed += 1
        ack.created += response.results.created
        ack.updated += response.results.updated
        ack.failed += response.results.failed

    async def _reconcile(
        self,
        ack: WebhookAck,
        org_id: str,
        source: str,
        items: List[InventorySyncItem],
        delivery_id: Optional[str] = None,
    ):
        if not items:
            return
        response = await self.engine.reconcile(org_id, source, items, webhook=True, delivery_id=delivery_id)
        self._add_results(ack, response)

    # --- Clover ---

    async def handle_clover(self, raw_body: Union[bytes, str], signature: Optional[str]) -> WebhookAck:
        """
        Clover envelope: {"appId": ..., "merchants": {"<mId>": [{"objectId", "type", "ts"}]}}

        Each CREATE/UPDATE item event triggers a single-item refetch and
        reconcile. DELETE events are logged and skipped. A failing merchant or
        event is logged and the rest of the delivery still syncs.
        """
        try:
            self.require_signature(PlatformName.CLOVER, raw_body, signature)
        except WebhookVerificationError as e:
            logger.error(str(e))
            return self._rejected()

        ack = WebhookAck()
        try:
            payload = CloverWebhookPayload.model_validate_json(raw_body)
        except ValidationError as e:
            logger.warning(f"Invalid Clover webhook payload: {e}")
            ack.message = "Invalid payload format"
            return ack

        for merchant_id, events in payload.merchants.items():
            try:
                connection = await self.tenant_lookup(PlatformName.CLOVER, merchant_id)
                if connection is None or not connection.credentials.get("access_token"):
                    logger.warning(f"No organization found for Clover merchant: {merchant_id}")
                    continue

                adapter = self.adapter_factory(
                    PlatformName.CLOVER, **{**connection.credentials, "merchant_id": merchant_id}
                )
            except Exception as e:
                logger.error(f"Clover webhook error for merchant {merchant_id}: {e}", exc_info=True)
                ack.message = "Processed with errors"
                continue

            for event in events:
                if not event.objectId:
                    continue

                prefix, _, item_id = event.objectId.rpartition(":")
                if prefix and prefix != CLOVER_ITEM_PREFIX:
                    continue

                if event.type == "DELETE":
                    logger.info(f"Clover item deleted: {item_id} for merchant {merchant_id}")
                    continue

                try:
                    items = await adapter.fetch_item(item_id)
                    await self._reconcile(ack, connection.org_id, clover_source_tag(merchant_id), items)
                except Exception as e:
                    logger.error(f"Clover webhook error for item {item_id} (merchant {merchant_id}): {e}",
                                 exc_info=True)
                    ack.message = "Processed with errors"
                    continue

                if items:
                    logger.info(f"Synced Clover item {item_id} for org {connection.org_id}")

        return ack

    # --- Shopify ---

    async def handle_shopify(
        self,
        raw_body: Union[bytes, str],
        signature: Optional[str],
        topic: Optional[str],
        shop_domain: Optional[str],
        webhook_id: Optional[str] = None,
    ) -> WebhookAck:
        """
        products/create and products/update carry the full product, so the
        payload is reconciled directly without a refetch. products/delete and
        inventory_levels/update are acknowledged only; the next full sync
        picks those up.
        """
        try:
            self.require_signature(PlatformName.SHOPIFY, raw_body, signature)
        except WebhookVerificationError as e:
            logger.error(str(e))
            return self._rejected()

        logger.info(f"Shopify webhook received: {topic} {shop_domain}")
        ack = WebhookAck()

        if not shop_domain:
            logger.error("No shop domain in Shopify webhook headers")
            ack.message = "Missing shop domain"
            return ack

        try:
            normalized_domain = shop_domain.strip().lower().removeprefix("https://").removeprefix("http://").rstrip("/")
            connection = await self.tenant_lookup(PlatformName.SHOPIFY, normalized_domain)
            if connection is None:
                logger.error(f"No organization found for shop: {normalized_domain}")
                ack.message = "Organization not found"
                return ack

            if topic in SHOPIFY_PRODUCT_TOPICS:
                product = ShopifyWebhookProduct.model_validate_json(raw_body)
                items = map_shopify_product(product.model_dump())
                await self._reconcile(
                    ack, connection.org_id, PlatformName.SHOPIFY.slug, items, delivery_id=webhook_id
                )
                ack.message = "Product synced"

            elif topic == "products/delete":
                product_id = json.loads(raw_body).get("id")
                logger.info(f"Product deleted in Shopify: {product_id}")
                ack.message = "Product deletion acknowledged"

            elif topic == "inventory_levels/update":
                body = json.loads(raw_body)
                logger.info(
                    f"Inventory update: item {body.get('inventory_item_id')}, quantity {body.get('available')}"
                )
                ack.message = "Inventory update received"

        except (ValidationError, ValueError) as e:
            logger.warning(f"Invalid Shopify webhook payload for topic {topic}: {e}")
            ack.message = "Invalid payload format"
        except Exception as e:
            logger.error(f"Shopify webhook processing error: {e}", exc_info=True)
            ack.message = "Processed with errors"

        return ack

    # --- BigCommerce ---

    async def handle_bigcommerce(self, raw_body: Union[bytes, str], signature: Optional[str]) -> WebhookAck:
        """
        store/product/* and store/product/inventory/* events: refetch the
        product (all variants) and reconcile. The payload hash is derived from
        the event data alone, so it repeats across genuine changes to one
        product and is not used as a delivery id.
        """
        try:
            self.require_signature(PlatformName.BIGCOMMERCE, raw_body, signature)
        except WebhookVerificationError as e:
            logger.error(str(e))
            return self._rejected()

        ack = WebhookAck()
        try:
            payload = BigCommerceWebhookPayload.model_validate_json(raw_body)
        except ValidationError as e:
            logger.warning(f"Invalid BigCommerce webhook payload: {e}")
            ack.message = "Invalid payload format"
            return ack

        logger.info(f"BigCommerce webhook received: {payload.scope} {payload.store_id}")

        store_hash = payload.store_hash
        if not store_hash:
            logger.error("No store hash in BigCommerce webhook payload")
            ack.message = "Missing store hash"
            return ack

        try:
            connection = await self.tenant_lookup(PlatformName.BIGCOMMERCE, store_hash)
            if connection is None:
                logger.error(f"No organization found for store hash: {store_hash}")
                ack.message = "Organization not found"
                return ack

            scope = payload.scope or ""
            product_id = payload.data.resolved_product_id if payload.data else None
            if ("product" in scope or "inventory" in scope) and product_id:
                adapter = self.adapter_factory(
                    PlatformName.BIGCOMMERCE, **{**connection.credentials, "store_hash": store_hash}
                )
                items = await adapter.fetch_item(product_id)
                if not items:
                    ack.message = f"Product {product_id} not found"
                    return ack

                await self._reconcile(ack, connection.org_id, PlatformName.BIGCOMMERCE.slug, items)
                ack.message = f"Product {product_id} synced"
                logger.info(f"Synced BigCommerce product {product_id} for org {connection.org_id}")

        except Exception as e:
            logger.error(f"BigCommerce webhook processing error: {e}", exc_info=True)
            ack.message = "Processed with errors"

        return ack
