"""
Adapter wiring.

get_platform_credentials: credentials for a platform from settings, with
explicit overrides (per-tenant credentials normally come from the caller).
build_adapter: instantiates the concrete PlatformAdapter for a platform name.
"""

import logging
from typing import Dict, Optional, Union

from inventory_sync.core.config import get_settings
from inventory_sync.core.enums import PlatformName
from inventory_sync.integrations.base import PlatformAdapter
from inventory_sync.integrations.platforms.bigcommerce import BigCommerceAdapter
from inventory_sync.integrations.platforms.clover import CloverAdapter
from inventory_sync.integrations.platforms.generic_api import GenericAPIAdapter
from inventory_sync.integrations.platforms.shopify import ShopifyAdapter

logger = logging.getLogger(__name__)

ADAPTERS = {
    PlatformName.BIGCOMMERCE: BigCommerceAdapter,
    PlatformName.SHOPIFY: ShopifyAdapter,
    PlatformName.CLOVER: CloverAdapter,
    PlatformName.API: GenericAPIAdapter,
}


def get_platform_credentials(platform: PlatformName) -> Dict[str, str]:
    settings = get_settings()
    creds = {
        PlatformName.BIGCOMMERCE: {
            "store_hash": settings.BIGCOMMERCE_STORE_HASH,
            "client_id": settings.BIGCOMMERCE_CLIENT_ID,
            "access_token": settings.BIGCOMMERCE_ACCESS_TOKEN,
        },
        PlatformName.SHOPIFY: {
            "store_domain": settings.SHOPIFY_STORE_DOMAIN,
            "access_token": settings.SHOPIFY_ACCESS_TOKEN,
        },
        PlatformName.CLOVER: {
            "merchant_id": settings.CLOVER_MERCHANT_ID,
            "access_token": settings.CLOVER_ACCESS_TOKEN,
            "environment": settings.CLOVER_ENVIRONMENT,
        },
        PlatformName.API: {},
    }
    return {k: v for k, v in creds[platform].items() if v}


def build_adapter(platform: Union[PlatformName, str], **overrides: Optional[str]) -> PlatformAdapter:
    """
    Build an adapter, filling missing credentials from settings.

    Raises:
        ValueError: unknown platform or incomplete credentials
    """
    if not isinstance(platform, PlatformName):
        try:
            platform = PlatformName(str(platform).upper())
        except ValueError:
            raise ValueError(f"Unknown platform: {platform}")

    credentials = get_platform_credentials(platform)
    credentials.update({k: v for k, v in overrides.items() if v is not None})

    logger.debug(f"Building {platform.value} adapter")
    return ADAPTERS[platform](**credentials)
