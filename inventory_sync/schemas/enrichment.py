from typing import Optional
from pydantic import BaseModel

from inventory_sync.core.enums import ItemCategory, LabelStatus


class AILabelResult(BaseModel):
    status: LabelStatus
    category: Optional[ItemCategory] = None
    label: Optional[str] = None
    confidence: Optional[float] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == LabelStatus.SUCCESS

    @classmethod
    def insufficient(cls, reason: str) -> "AILabelResult":
        return cls(status=LabelStatus.INSUFFICIENT_DATA, reason=reason)
