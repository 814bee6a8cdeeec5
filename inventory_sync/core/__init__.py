"""
Core module exports.
"""
from .enums import (
    PlatformName,
    ItemType,
    ChangeType,
    ImportStatus,
    LabelStatus,
    ItemCategory,
    KNOWN_SOURCES,
)

from .exceptions import (
    BaseServiceError,
    SyncValidationError,
    ItemValidationError,
    PlatformServiceError,
    PlatformAPIError,
    BigCommerceAPIError,
    ShopifyAPIError,
    CloverAPIError,
    PayloadMappingError,
    WebhookVerificationError,
    EnrichmentError,
    DatabaseError,
)
