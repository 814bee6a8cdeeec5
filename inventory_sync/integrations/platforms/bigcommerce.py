import logging
from typing import Any, Dict, List, Optional

from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import BigCommerceAPIError
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.schemas.inventory import InventorySyncItem

logger = logging.getLogger(__name__)

PAGE_LIMIT = 250


def build_variant_name(product: Dict[str, Any], variant: Optional[Dict[str, Any]] = None) -> str:
    """
    "<product> (<option>: <label>, ...)" for option variants, "<product> (<variant sku>)"
    when the variant only differs by SKU, otherwise the product name.
    """
    name = product.get("name") or ""
    if not variant:
        return name

    option_summary = ", ".join(
        f"{value['option_display_name']}: {value['label']}"
        for value in variant.get("option_values") or []
        if value.get("option_display_name") and value.get("label")
    )
    if option_summary:
        return f"{name} ({option_summary})"

    variant_sku = variant.get("sku")
    if variant_sku and variant_sku != product.get("sku"):
        return f"{name} ({variant_sku})"

    return name


def map_product_variant(product: Dict[str, Any], variant: Optional[Dict[str, Any]] = None) -> InventorySyncItem:
    quantity_source = variant or product
    return InventorySyncItem(
        name=build_variant_name(product, variant),
        sku=(variant or {}).get("sku") or product.get("sku"),
        quantity=quantity_source.get("inventory_level") or 0,
        reorder_threshold=quantity_source.get("inventory_warning_level") or 0,
        bigcommerce_product_id=product.get("id"),
        bigcommerce_variant_id=(variant or {}).get("id"),
    )


def map_product(product: Dict[str, Any]) -> List[InventorySyncItem]:
    variants = product.get("variants") or []
    if not variants:
        return [map_product_variant(product)]
    return [map_product_variant(product, variant) for variant in variants]


class BigCommerceAdapter(PlatformAdapter):
    """
    BigCommerce catalog reader (v3 REST).

    Docs: https://developer.bigcommerce.com/docs/rest-catalog/products
    """

    platform = PlatformName.BIGCOMMERCE
    error_class = BigCommerceAPIError

    BASE_URL = "https://api.bigcommerce.com/stores"

    def __init__(self, store_hash: str, client_id: str, access_token: str, **kwargs):
        super().__init__(**kwargs)
        if not store_hash or not client_id or not access_token:
            raise ValueError("BigCommerce credentials are not fully configured")
        self.store_hash = store_hash
        self.client_id = client_id
        self.access_token = access_token

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Auth-Token": self.access_token,
            "X-Auth-Client": self.client_id,
        }

    def _build_url(self, endpoint: str) -> str:
        return f"{self.BASE_URL}/{self.store_hash}/v3/{endpoint.lstrip('/')}"

    async def fetch_catalog_items(self) -> List[InventorySyncItem]:
        items: List[InventorySyncItem] = []
        page = 1

        while page <= self.max_pages:
            response = await self._make_request(
                "GET",
                "catalog/products",
                params={"include": "variants", "limit": PAGE_LIMIT, "page": page},
            )

            for product in response.get("data") or []:
                items.extend(map_product(product))

            total_pages = ((response.get("meta") or {}).get("pagination") or {}).get("total_pages") or page
            if page >= total_pages:
                break
            page += 1
        else:
            logger.warning(
                f"BigCommerce pagination hit safety limit of {self.max_pages} pages ({len(items)} items fetched)"
            )

        logger.info(f"Fetched {len(items)} BigCommerce items from store {self.store_hash}")
        return items

    async def fetch_item(self, product_id: Any, variant_id: Optional[Any] = None) -> List[InventorySyncItem]:
        """
        One product's variants. A 404 (product deleted) gives an empty list;
        with variant_id only that variant is returned.
        """
        try:
            response = await self._make_request(
                "GET", f"catalog/products/{product_id}", params={"include": "variants"}
            )
        except BigCommerceAPIError as e:
            if e.status_code == 404:
                logger.info(f"BigCommerce product {product_id} not found (possibly deleted)")
                return []
            raise

        product = response.get("data") or {}
        if variant_id:
            for variant in product.get("variants") or []:
                if str(variant.get("id")) == str(variant_id):
                    return [map_product_variant(product, variant)]
            return []

        return map_product(product)
