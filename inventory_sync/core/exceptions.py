class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class SyncValidationError(BaseServiceError):
    """Raised when a reconcile call is malformed (missing tenant, source or items)."""
    pass

class ItemValidationError(BaseServiceError):
    """Raised when a single inbound item cannot be reconciled."""
    pass

class PlatformServiceError(BaseServiceError):
    """Base exception for platform service errors."""
    pass

class PlatformAPIError(PlatformServiceError):
    """Raised when a platform API call fails."""
    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)

class BigCommerceAPIError(PlatformAPIError):
    """Raised when BigCommerce API calls fail."""
    pass

class ShopifyAPIError(PlatformAPIError):
    """Raised when Shopify API calls fail."""
    pass

class CloverAPIError(PlatformAPIError):
    """Raised when Clover API calls fail."""
    pass

class PayloadMappingError(PlatformServiceError):
    """Raised when a generic API payload cannot be mapped to inventory items."""
    pass

class WebhookVerificationError(BaseServiceError):
    """Raised when a webhook signature does not verify."""
    pass

class EnrichmentError(BaseServiceError):
    """Raised when the AI label service fails."""
    def __init__(self, message: str, reason: str = "AI service error"):
        self.reason = reason
        super().__init__(message)

class DatabaseError(Exception):
    """Exception raised for database-related errors."""
    pass
