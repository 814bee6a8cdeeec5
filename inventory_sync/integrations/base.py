import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

import httpx

from inventory_sync.core.config import get_settings
from inventory_sync.core.enums import PlatformName
from inventory_sync.core.exceptions import PlatformAPIError
from inventory_sync.schemas.inventory import InventorySyncItem

logger = logging.getLogger(__name__)

# Headers never written to the debug log
SECRET_HEADERS = ("Authorization", "X-Auth-Token", "X-Shopify-Access-Token")


class PlatformAdapter(ABC):
    """
    Read side of a platform integration.

    An adapter pulls the platform's catalog (or a single changed item) and
    hands back InventorySyncItem records. It never writes to the database;
    the reconciliation engine does that.
    """

    platform: PlatformName
    error_class: Type[PlatformAPIError] = PlatformAPIError

    def __init__(self, timeout: Optional[float] = None, max_pages: Optional[int] = None):
        settings = get_settings()
        self.timeout = timeout or settings.PLATFORM_REQUEST_TIMEOUT
        self.max_pages = max_pages or settings.PLATFORM_MAX_PAGES

    @property
    def source(self) -> str:
        """Source tag written to history and imports."""
        return self.platform.slug

    @abstractmethod
    def _get_headers(self) -> Dict[str, str]:
        """Authenticated headers for API requests"""

    @abstractmethod
    def _build_url(self, endpoint: str) -> str:
        """Absolute URL for an API endpoint"""

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None,
    ) -> Any:
        """
        Make a request to the platform API.

        Returns:
            Parsed JSON body ({} for 204)

        Raises:
            PlatformAPIError subclass: non-2xx status, network error or timeout.
            status_code is set when the platform answered.
        """
        url = self._build_url(endpoint)
        headers = self._get_headers()

        masked_headers = {k: ("[REDACTED]" if k in SECRET_HEADERS else v) for k, v in headers.items()}
        logger.debug(f"Making {method} request to {url}")
        logger.debug(f"Headers: {masked_headers}")
        if params:
            logger.debug(f"Params: {params}")
        if data:
            logger.debug(f"Data: {json.dumps(data)[:500]}...")

        name = self.platform.value.title()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    json=data,
                    params=params,
                )

                if response.status_code not in (200, 201, 202, 204):
                    logger.error(f"{name} API error ({response.status_code}): {response.text[:500]}")
                    raise self.error_class(
                        f"{name} request failed ({response.status_code}): {response.text or response.reason_phrase}",
                        status_code=response.status_code,
                    )

                if response.status_code == 204:
                    return {}

                return response.json()

        except PlatformAPIError:
            raise
        except httpx.TimeoutException as e:
            logger.error(f"{name} timeout: {str(e)}")
            raise self.error_class(f"{name} request timed out: {str(e)}")
        except httpx.RequestError as e:
            logger.error(f"{name} network error: {str(e)}")
            raise self.error_class(f"{name} network error: {str(e)}")
        except ValueError as e:
            logger.error(f"{name} returned invalid JSON: {str(e)}")
            raise self.error_class(f"{name} returned invalid JSON: {str(e)}")

    @abstractmethod
    async def fetch_catalog_items(self) -> List[InventorySyncItem]:
        """Full catalog pull, one record per sellable unit (variant)"""

    async def fetch_item(self, item_ref: Any, **kwargs) -> List[InventorySyncItem]:
        """Refetch the item(s) a webhook referred to"""
        raise NotImplementedError(f"{self.platform.value} does not support single item fetches")
