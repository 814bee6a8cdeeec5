"""
Generic JSON API importer.

Pulls an arbitrary JSON endpoint, locates the list of items inside the
response and maps each raw record onto InventorySyncItem using a
configurable field mapping (dotted paths are allowed).
"""

import logging
from typing import Any, Dict, List, Optional

from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import PayloadMappingError
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.schemas.inventory import InventorySyncItem
from inventory_sync.services.quantity import normalize_quantity

logger = logging.getLogger(__name__)

DEFAULT_FIELD_MAPPING: Dict[str, str] = {
    "name": "name",
    "sku": "sku",
    "quantity": "quantity",
    "invoice": "invoice",
    "reorder_threshold": "reorder_threshold",
    "expiration_date": "expiration_date",
}


def get_nested_value(source: Any, path: Optional[str]) -> Any:
    """Walk a dotted path through nested dicts; None when any hop is missing."""
    if not path:
        return None
    value = source
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def resolve_items_from_payload(payload: Any, items_path: Optional[str] = None) -> List[Any]:
    """
    Find the item list in an API response.

    A top-level array is used as is. Otherwise items_path (dotted) is
    followed, falling back to an "items" key.

    Raises:
        PayloadMappingError: when no array can be located
    """
    if isinstance(payload, list):
        return payload

    if not isinstance(payload, dict):
        raise PayloadMappingError("API response must be an array or an object containing an items array.")

    trimmed_path = (items_path or "").strip()
    if trimmed_path:
        value = get_nested_value(payload, trimmed_path)
        if isinstance(value, list):
            return value
        raise PayloadMappingError(f'Items path "{trimmed_path}" did not resolve to an array of items.')

    fallback = payload.get("items")
    if isinstance(fallback, list):
        return fallback

    raise PayloadMappingError(
        "No inventory items found in the API response. Adjust the Items Path or response format."
    )


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def map_external_items(raw_items: List[Any], mapping: Optional[Dict[str, str]] = None) -> List[InventorySyncItem]:
    """
    Map raw records with a (partial) field mapping merged over the defaults.

    Raises:
        PayloadMappingError: a record is not an object or has no name
    """
    field_mapping = {**DEFAULT_FIELD_MAPPING, **(mapping or {})}
    items = []

    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise PayloadMappingError(f"Item {index} is not a valid object.")

        name = get_nested_value(raw, field_mapping["name"])
        if name is None or str(name).strip() == "":
            raise PayloadMappingError(f'Item {index} is missing the "{field_mapping["name"]}" field.')

        items.append(InventorySyncItem(
            name=str(name).strip(),
            sku=_optional_text(get_nested_value(raw, field_mapping["sku"])),
            invoice=_optional_text(get_nested_value(raw, field_mapping["invoice"])),
            quantity=normalize_quantity(get_nested_value(raw, field_mapping["quantity"])),
            reorder_threshold=normalize_quantity(get_nested_value(raw, field_mapping["reorder_threshold"])),
            expiration_date=_optional_text(get_nested_value(raw, field_mapping["expiration_date"])),
        ))

    return items


class GenericAPIAdapter(PlatformAdapter):
    """Reads inventory from a customer-supplied JSON endpoint."""

    platform = PlatformName.API

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        items_path: Optional[str] = None,
        field_mapping: Optional[Dict[str, str]] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if not api_url:
            raise ValueError("api_url is required for API imports")
        self.api_url = api_url
        self.api_key = (api_key or "").strip() or None
        self.items_path = items_path
        self.field_mapping = field_mapping

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_url(self, endpoint: str) -> str:
        return self.api_url

    async def fetch_catalog_items(self) -> List[InventorySyncItem]:
        payload = await self._make_request("GET", "")
        raw_items = resolve_items_from_payload(payload, self.items_path)
        if not raw_items:
            raise PayloadMappingError(
                "No inventory items found in the external API response. Adjust the items path or response shape."
            )

        items = map_external_items(raw_items, self.field_mapping)
        logger.info(f"Mapped {len(items)} items from {self.api_url}")
        return items
