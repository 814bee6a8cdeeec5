"""
Pydantic models for platform webhook envelopes and the acknowledgment returned to callers.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class CloverWebhookUpdate(BaseModel):
    """Single update in a Clover webhook payload."""
    objectId: Optional[str] = None  # e.g. "I:ITEM_ID" for inventory
    type: Literal["CREATE", "UPDATE", "DELETE"]
    ts: Optional[int] = None  # Unix time in milliseconds


class CloverWebhookPayload(BaseModel):
    """Clover webhook payload: appId + merchants map to list of updates."""
    model_config = ConfigDict(extra="allow")

    appId: Optional[str] = None
    merchants: Dict[str, List[CloverWebhookUpdate]] = Field(default_factory=dict)


class ShopifyWebhookOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    position: Optional[int] = None


class ShopifyWebhookVariant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    product_id: Optional[int] = None
    title: Optional[str] = None
    sku: Optional[str] = None
    inventory_quantity: Optional[Any] = None
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None


class ShopifyWebhookProduct(BaseModel):
    """Body of products/create and products/update webhooks."""
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    variants: List[ShopifyWebhookVariant] = Field(default_factory=list)
    options: List[ShopifyWebhookOption] = Field(default_factory=list)


class BigCommerceWebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    id: Optional[int] = None
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    inventory: Optional[Dict[str, Any]] = None

    @property
    def resolved_product_id(self) -> Optional[int]:
        if self.inventory and self.inventory.get("product_id"):
            inventory_product = self.inventory.get("product_id")
        else:
            inventory_product = None
        return self.id or self.product_id or inventory_product


class BigCommerceWebhookPayload(BaseModel):
    # store_id arrives as a number
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    scope: Optional[str] = None
    store_id: Optional[str] = None
    producer: Optional[str] = None  # "stores/{store_hash}"
    hash: Optional[str] = None
    data: Optional[BigCommerceWebhookData] = None

    @property
    def store_hash(self) -> Optional[str]:
        if self.producer and "/" in self.producer:
            return self.producer.split("/")[1] or self.store_id
        return self.store_id


class WebhookAck(BaseModel):
    """
    What the receiver hands back to the HTTP layer.

    success is True for anything the provider should not retry, including
    internal processing errors.
    """
    success: bool = True
    status_code: int = 200
    message: str = "Webhook received"
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0


class TenantConnection(BaseModel):
    """
    An org's connection to one external store, as returned by the tenant
    lookup: which org owns the merchant/store and the credentials needed to
    refetch items from it.
    """
    org_id: str
    credentials: Dict[str, Any] = Field(default_factory=dict)
