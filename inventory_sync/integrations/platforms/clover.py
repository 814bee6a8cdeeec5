import asyncio
import logging
from typing import Any, Dict, List, Optional

from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import CloverAPIError
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.schemas.inventory import InventorySyncItem

logger = logging.getLogger(__name__)

PAGE_LIMIT = 100
PAGE_DELAY_SECONDS = 0.5  # Clover rate limits are per merchant

API_URLS = {
    "us": "https://api.clover.com",
    "eu": "https://api.eu.clover.com",
}


def get_api_url(environment: Optional[str] = "us") -> str:
    return API_URLS.get((environment or "us").lower(), API_URLS["us"])


def map_item(item: Dict[str, Any], merchant_id: Optional[str] = None) -> InventorySyncItem:
    item_stock = item.get("itemStock") or {}
    stock_count = item_stock.get("stockCount")
    if stock_count is None:
        stock_count = item.get("stockCount")

    return InventorySyncItem(
        name=item.get("name"),
        sku=item.get("sku") or item.get("code"),
        quantity=stock_count if stock_count is not None else 0,
        reorder_threshold=0,
        clover_item_id=item.get("id"),
        clover_merchant_id=merchant_id,
    )


class CloverAdapter(PlatformAdapter):
    """
    Clover POS inventory reader.

    Docs: https://docs.clover.com/reference
    Each merchant has its own OAuth access token; the same org may connect
    several merchants, which is why items carry clover_merchant_id.
    """

    platform = PlatformName.CLOVER
    error_class = CloverAPIError

    def __init__(self, merchant_id: str, access_token: str, environment: str = "us",
                 page_delay: float = PAGE_DELAY_SECONDS, **kwargs):
        super().__init__(**kwargs)
        if not merchant_id or not access_token:
            raise ValueError("Clover credentials are not fully configured")
        self.merchant_id = merchant_id
        self.access_token = access_token
        self.environment = environment
        self.page_delay = page_delay
        self.BASE_URL = get_api_url(environment)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token}",
        }

    def _build_url(self, endpoint: str) -> str:
        return f"{self.BASE_URL}/v3/merchants/{self.merchant_id}/{endpoint.lstrip('/')}"

    async def fetch_catalog_items(self) -> List[InventorySyncItem]:
        """Every visible item with its stock count, paginated by offset."""
        items: List[InventorySyncItem] = []
        offset = 0
        page_count = 0

        while page_count < self.max_pages:
            page_count += 1
            response = await self._make_request(
                "GET", "items", params={"expand": "itemStock", "limit": PAGE_LIMIT, "offset": offset}
            )
            elements = response.get("elements") or []

            for element in elements:
                # hidden = archived/deleted in Clover
                if element.get("hidden"):
                    continue
                items.append(map_item(element, self.merchant_id))

            if len(elements) < PAGE_LIMIT:
                break

            offset += PAGE_LIMIT
            if self.page_delay:
                await asyncio.sleep(self.page_delay)
        else:
            logger.warning(
                f"Clover pagination hit safety limit of {self.max_pages} pages ({len(items)} items fetched)"
            )

        logger.info(f"Fetched {len(items)} Clover items for merchant {self.merchant_id}")
        return items

    async def fetch_item(self, item_id: Any, **kwargs) -> List[InventorySyncItem]:
        """
        Single item refetch for webhooks. Failures are logged and yield an
        empty list so one bad event does not abort the rest of the delivery.
        """
        try:
            item = await self._make_request("GET", f"items/{item_id}", params={"expand": "itemStock"})
        except CloverAPIError as e:
            logger.error(f"Failed to fetch Clover item {item_id} for merchant {self.merchant_id}: {e}")
            return []

        if not item or item.get("hidden"):
            return []
        return [map_item(item, self.merchant_id)]
