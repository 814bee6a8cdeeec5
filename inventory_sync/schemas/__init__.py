from .inventory import InventorySyncItem, SyncBatchResult, SyncResponse, LINKAGE_FIELDS
from .history import HistoryEventRead, ItemMovement, ValidationSummary, ValidationReport
from .enrichment import AILabelResult
from .webhook import (
    CloverWebhookPayload,
    CloverWebhookUpdate,
    ShopifyWebhookProduct,
    BigCommerceWebhookPayload,
    WebhookAck,
    TenantConnection,
)
