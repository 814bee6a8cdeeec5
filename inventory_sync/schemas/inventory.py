"""
Schemas for inbound sync records and reconcile results.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Platform linkage fields an inbound record may carry
LINKAGE_FIELDS = (
    "bigcommerce_product_id",
    "bigcommerce_variant_id",
    "shopify_product_id",
    "shopify_variant_id",
    "clover_item_id",
    "clover_merchant_id",
)


class InventorySyncItem(BaseModel):
    """
    A normalized record produced by a platform adapter.

    quantity and reorder_threshold are deliberately untyped: upstream data
    arrives as ints, floats, numeric strings or garbage and is normalized by
    the engine, not rejected here.
    """
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: Any = None
    reorder_threshold: Any = None
    category: Optional[str] = None
    ai_label: Optional[str] = None
    invoice: Optional[str] = None
    expiration_date: Optional[str] = None

    bigcommerce_product_id: Optional[str] = None
    bigcommerce_variant_id: Optional[str] = None
    shopify_product_id: Optional[str] = None
    shopify_variant_id: Optional[str] = None
    clover_item_id: Optional[str] = None
    clover_merchant_id: Optional[str] = None

    @field_validator("name", "sku", "category", "ai_label", "invoice", "expiration_date", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator(*LINKAGE_FIELDS, mode="before")
    @classmethod
    def _id_to_str(cls, value):
        # Platforms send numeric ids; 0 and "" mean "not set"
        if value is None or value == "" or value == 0:
            return None
        return str(value).strip() or None

    @property
    def variant_id(self) -> Optional[str]:
        return self.bigcommerce_variant_id or self.shopify_variant_id

    @property
    def product_id(self) -> Optional[str]:
        return self.bigcommerce_product_id or self.shopify_product_id or self.clover_item_id

    def has_structured_identifier(self) -> bool:
        """True when the record carries a platform id or a SKU."""
        return bool(self.sku or self.variant_id or self.product_id)

    def linkage(self) -> dict:
        """Only the linkage fields this record actually carries."""
        return {field: getattr(self, field) for field in LINKAGE_FIELDS if getattr(self, field)}


class SyncBatchResult(BaseModel):
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class SyncResponse(BaseModel):
    success: bool
    results: SyncBatchResult
    summary: str

    @classmethod
    def from_results(cls, results: SyncBatchResult) -> "SyncResponse":
        return cls(
            success=results.failed == 0,
            results=results,
            summary=f"Created: {results.created}, Updated: {results.updated}, Failed: {results.failed}",
        )

