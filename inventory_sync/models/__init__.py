from .inventory_item import InventoryItem
from .inventory_history import InventoryHistory
from .import_record import ImportRecord

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'InventoryItem',
    'InventoryHistory',
    'ImportRecord',
]
