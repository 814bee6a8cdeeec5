# inventory_sync/models/inventory_history.py
from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func

from inventory_sync.database import Base


class InventoryHistory(Base):
    """
    Append-only ledger of quantity transitions.

    item_name and sku are copied at write time so the history stays readable
    after the item is renamed or deleted. Rows are never updated or removed by
    the sync engine; stock-movement analytics read from here.
    """
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=True, index=True)

    item_name = Column(String, nullable=False)
    sku = Column(String, nullable=True, index=True)

    previous_quantity = Column(Integer, nullable=False, default=0)
    new_quantity = Column(Integer, nullable=False, default=0)
    quantity_change = Column(Integer, nullable=False, default=0)  # Positive = restock, negative = sale

    change_type = Column(String, nullable=False, default="sync", index=True)
    source = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index("ix_inventory_history_dedup", "org_id", "item_id", "new_quantity", "source", "created_at"),
    )

    def __repr__(self):
        return (f"<InventoryHistory(id={self.id}, item_id={self.item_id}, "
                f"{self.previous_quantity}->{self.new_quantity}, type='{self.change_type}', source='{self.source}')>")
