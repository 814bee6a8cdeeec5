import logging
import re
from typing import Any, Dict, List

from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import ShopifyAPIError
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.schemas.inventory import InventorySyncItem

logger = logging.getLogger(__name__)

API_VERSION = "2024-01"
PAGE_LIMIT = 250
DEFAULT_VARIANT_TITLE = "Default Title"


def normalize_store_domain(domain: str) -> str:
    """
    Accepts "mystore", "mystore.myshopify.com" or "https://mystore.myshopify.com/"
    and returns "mystore.myshopify.com".
    """
    normalized = (domain or "").strip().lower()
    normalized = re.sub(r"^https?://", "", normalized)
    normalized = normalized.rstrip("/")
    if ".myshopify.com" not in normalized:
        normalized = f"{normalized}.myshopify.com"
    return normalized


def build_variant_name(product: Dict[str, Any], variant: Dict[str, Any]) -> str:
    title = product.get("title") or ""
    variant_title = variant.get("title")

    if variant_title == DEFAULT_VARIANT_TITLE:
        return title

    options = product.get("options") or []
    parts = []
    for index, key in enumerate(("option1", "option2", "option3")):
        if variant.get(key) and index < len(options):
            parts.append(f"{options[index]['name']}: {variant[key]}")

    if parts:
        return f"{title} ({', '.join(parts)})"
    if variant_title:
        return f"{title} ({variant_title})"
    return title


def map_product(product: Dict[str, Any]) -> List[InventorySyncItem]:
    """One InventorySyncItem per variant. Also used for products/* webhook bodies."""
    return [
        InventorySyncItem(
            name=build_variant_name(product, variant),
            sku=variant.get("sku"),
            quantity=variant.get("inventory_quantity") or 0,
            reorder_threshold=0,
            shopify_product_id=product.get("id"),
            shopify_variant_id=variant.get("id"),
        )
        for variant in product.get("variants") or []
    ]


class ShopifyAdapter(PlatformAdapter):
    """Shopify Admin REST reader."""

    platform = PlatformName.SHOPIFY
    error_class = ShopifyAPIError

    def __init__(self, store_domain: str, access_token: str, **kwargs):
        super().__init__(**kwargs)
        if not store_domain or not access_token:
            raise ValueError("Shopify credentials are not fully configured")
        self.store_domain = normalize_store_domain(store_domain)
        self.access_token = access_token

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
        }

    def _build_url(self, endpoint: str) -> str:
        return f"https://{self.store_domain}/admin/api/{API_VERSION}/{endpoint.lstrip('/')}"

    async def fetch_catalog_items(self) -> List[InventorySyncItem]:
        """All products, paginated by since_id."""
        items: List[InventorySyncItem] = []
        since_id = 0
        page_count = 0

        while page_count < self.max_pages:
            page_count += 1
            response = await self._make_request(
                "GET", "products.json", params={"limit": PAGE_LIMIT, "since_id": since_id}
            )
            products = response.get("products") or []
            if not products:
                break

            for product in products:
                items.extend(map_product(product))
                since_id = max(since_id, int(product.get("id") or 0))

            if len(products) < PAGE_LIMIT:
                break
        else:
            logger.warning(
                f"Shopify pagination hit safety limit of {self.max_pages} pages ({len(items)} items fetched)"
            )

        logger.info(f"Fetched {len(items)} Shopify items from {self.store_domain}")
        return items

    async def fetch_item(self, product_id: Any, **kwargs) -> List[InventorySyncItem]:
        response = await self._make_request("GET", f"products/{product_id}.json")
        product = response.get("product")
        if not product:
            return []
        return map_product(product)

