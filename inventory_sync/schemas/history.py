from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from inventory_sync.schemas.base import BaseSchema


class HistoryEventRead(BaseSchema):
    id: int
    org_id: str
    item_id: Optional[int] = None
    item_name: str
    sku: Optional[str] = None
    previous_quantity: int
    new_quantity: int
    quantity_change: int
    change_type: str
    source: Optional[str] = None
    created_at: Optional[datetime] = None


class ItemMovement(BaseModel):
    """Per-item stock movement over a window (sold = sum of decrements)."""
    item_id: Optional[int] = None
    item_name: str
    sku: Optional[str] = None
    total_sold: int = 0
    total_restocked: int = 0
    change_count: int = 0
    first_tracked: Optional[datetime] = None
    last_tracked: Optional[datetime] = None


class ValidationSummary(BaseModel):
    total_history_events: int = 0
    webhook_events: int = 0
    sync_events: int = 0
    validation_events: int = 0
    total_sales_decrement: int = 0
    total_restocks: int = 0
    tracking_since: datetime


class ValidationReport(BaseModel):
    summary: ValidationSummary
    recent_history: List[HistoryEventRead] = Field(default_factory=list)
