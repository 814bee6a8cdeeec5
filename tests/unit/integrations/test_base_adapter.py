# tests/unit/integrations/test_base_adapter.py
import httpx
import pytest
from unittest.mock import AsyncMock

from inventory_sync.core.exceptions import BigCommerceAPIError, PlatformAPIError
from inventory_sync.integrations.platforms.bigcommerce import BigCommerceAdapter


def mock_http(mocker, status_code=200, json_body=None, text="", side_effect=None):
    mock_client = mocker.patch("httpx.AsyncClient")
    mock_response = mocker.MagicMock()
    mock_response.status_code = status_code
    mock_response.text = text
    mock_response.reason_phrase = "Reason"
    mock_response.json.return_value = json_body if json_body is not None else {}
    request = AsyncMock(return_value=mock_response, side_effect=side_effect)
    mock_client.return_value.__aenter__.return_value.request = request
    return request


@pytest.fixture
def adapter():
    return BigCommerceAdapter(store_hash="abc123", client_id="client", access_token="secret-token-xyz", timeout=5)


"""
1. Request Construction Tests
"""

@pytest.mark.asyncio
async def test_make_request_builds_url_and_headers(mocker, adapter):
    request = mock_http(mocker, json_body={"data": []})

    result = await adapter._make_request("GET", "catalog/products", params={"page": 1})

    assert result == {"data": []}
    _, kwargs = request.call_args
    assert kwargs["method"] == "GET"
    assert kwargs["url"] == "https://api.bigcommerce.com/stores/abc123/v3/catalog/products"
    assert kwargs["headers"]["X-Auth-Token"] == "secret-token-xyz"
    assert kwargs["headers"]["X-Auth-Client"] == "client"
    assert kwargs["params"] == {"page": 1}


@pytest.mark.asyncio
async def test_debug_log_masks_tokens(mocker, adapter, caplog):
    mock_http(mocker)

    with caplog.at_level("DEBUG", logger="inventory_sync.integrations.base"):
        await adapter._make_request("GET", "catalog/products")

    assert "secret-token-xyz" not in caplog.text
    assert "[REDACTED]" in caplog.text


@pytest.mark.asyncio
async def test_no_content_returns_empty_dict(mocker, adapter):
    mock_http(mocker, status_code=204)

    assert await adapter._make_request("DELETE", "catalog/products/1") == {}


"""
2. Error Handling Tests
"""

@pytest.mark.asyncio
async def test_error_status_raises_platform_error(mocker, adapter):
    mock_http(mocker, status_code=429, text="Too many requests")

    with pytest.raises(BigCommerceAPIError) as exc_info:
        await adapter._make_request("GET", "catalog/products")

    assert exc_info.value.status_code == 429
    assert "Too many requests" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("error, message", [
    (httpx.ConnectError("refused"), "network error"),
    (httpx.ReadTimeout("slow"), "timed out"),
])
async def test_transport_errors_are_wrapped(mocker, adapter, error, message):
    mock_http(mocker, side_effect=error)

    with pytest.raises(PlatformAPIError) as exc_info:
        await adapter._make_request("GET", "catalog/products")

    assert message in str(exc_info.value)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_json_is_wrapped(mocker, adapter):
    request = mock_http(mocker)
    request.return_value.json.side_effect = ValueError("Expecting value")

    with pytest.raises(BigCommerceAPIError, match="invalid JSON"):
        await adapter._make_request("GET", "catalog/products")


def test_source_is_platform_slug(adapter):
    assert adapter.source == "bigcommerce"


@pytest.mark.parametrize("kwargs", [
    {"store_hash": "", "client_id": "c", "access_token": "t"},
    {"store_hash": "h", "client_id": "", "access_token": "t"},
    {"store_hash": "h", "client_id": "c", "access_token": None},
])
def test_missing_credentials_rejected(kwargs):
    with pytest.raises(ValueError):
        BigCommerceAdapter(**kwargs)
