# inventory_sync/models/inventory_item.py
"""
Current-state inventory table.

One row per logical item per tenant (org). Platform linkage columns are all
optional; whichever integration created or last touched the row fills in its
own ids so later syncs can find it again.
"""

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func

from inventory_sync.database import Base
from inventory_sync.core.enums import ItemType


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Core fields
    name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    reorder_threshold = Column(Integer, nullable=False, default=0)
    item_type = Column(String, nullable=False, default=ItemType.STOCK.value)

    # Enrichment, written once and never overwritten by a sync
    category = Column(String, nullable=True)
    ai_label = Column(String, nullable=True)

    # Carried through from generic imports
    invoice = Column(String, nullable=True)
    expiration_date = Column(String, nullable=True)

    # Platform linkage
    bigcommerce_product_id = Column(String, nullable=True, index=True)
    bigcommerce_variant_id = Column(String, nullable=True, index=True)
    shopify_product_id = Column(String, nullable=True, index=True)
    shopify_variant_id = Column(String, nullable=True, index=True)
    clover_item_id = Column(String, nullable=True, index=True)
    clover_merchant_id = Column(String, nullable=True, index=True)

    __table_args__ = (
        Index("ix_inventory_items_org_sku", "org_id", "sku"),
        Index("ix_inventory_items_org_name", "org_id", "name"),
    )

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, org_id='{self.org_id}', name='{self.name}', quantity={self.quantity})>"
