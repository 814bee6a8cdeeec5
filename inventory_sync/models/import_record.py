# inventory_sync/models/import_record.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from inventory_sync.database import Base


class ImportRecord(Base):
    """Coarse audit row written once per reconcile call, whatever the outcome."""
    __tablename__ = "imports"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False, index=True)
    source = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)  # completed, completed_with_errors

    created_count = Column(Integer, default=0)
    updated_count = Column(Integer, default=0)
    failed_count = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ImportRecord(org_id='{self.org_id}', source='{self.source}', status='{self.status}')>"
