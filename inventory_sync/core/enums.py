"""
Shared enums and constants used across the application.
"""

from enum import Enum

class PlatformName(str, Enum):
    BIGCOMMERCE = "BIGCOMMERCE"
    SHOPIFY = "SHOPIFY"
    CLOVER = "CLOVER"
    API = "API"

    @property
    def slug(self):
        # "BIGCOMMERCE" -> "bigcommerce"
        return self.value.lower()


class ItemType(str, Enum):
    """Inventory item types. Anything arriving from an external sync is STOCK."""
    STOCK = "stock"
    OPERATIONAL = "operational"


class ChangeType(str, Enum):
    """Conventional change_type values written to inventory_history"""
    SYNC = "sync"
    WEBHOOK = "webhook"
    MANUAL = "manual"
    SALE = "sale"
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"
    THRIVE_VALIDATION = "thrive_validation"


class ImportStatus(str, Enum):
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


class LabelStatus(str, Enum):
    SUCCESS = "success"
    INSUFFICIENT_DATA = "insufficient_data"


class ItemCategory(str, Enum):
    """Closed set of categories the label generator may assign"""
    MEAT = "meat"
    SNACK = "snack"
    BEVERAGE = "beverage"
    PRODUCE = "produce"
    DAIRY = "dairy"
    PACKAGED_GOODS = "packaged_goods"
    OTHER = "other"

    @classmethod
    def coerce(cls, value) -> "ItemCategory":
        """Map free text onto the enum, falling back to OTHER"""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        return cls.OTHER


# Sources stored lower-cased in the imports table. Anything else is kept verbatim.
KNOWN_SOURCES = frozenset({"shopify", "square", "custom", "bigcommerce", "clover", "api"})
