# tests/unit/integrations/platforms/test_clover.py
import pytest

from inventory_sync.core.exceptions import CloverAPIError
from inventory_sync.integrations.platforms import clover
from inventory_sync.integrations.platforms.clover import CloverAdapter, get_api_url, map_item


def test_api_url_by_environment():
    assert get_api_url("eu") == "https://api.eu.clover.com"
    assert get_api_url("US") == "https://api.clover.com"
    assert get_api_url(None) == "https://api.clover.com"
    assert get_api_url("mars") == "https://api.clover.com"


def test_map_item_prefers_item_stock():
    item = {"id": "ITEM1", "name": "Soda", "sku": "SODA-1", "stockCount": 1, "itemStock": {"stockCount": 9}}

    mapped = map_item(item, "M1")

    assert (mapped.name, mapped.sku, mapped.quantity) == ("Soda", "SODA-1", 9)
    assert (mapped.clover_item_id, mapped.clover_merchant_id) == ("ITEM1", "M1")
    assert mapped.reorder_threshold == 0


def test_map_item_falls_back_to_stock_count_and_code():
    mapped = map_item({"id": "ITEM2", "name": "Chips", "code": "0123", "stockCount": 4})

    assert mapped.sku == "0123"
    assert mapped.quantity == 4


def test_map_item_without_stock_is_zero():
    assert map_item({"id": "ITEM3", "name": "Gum"}).quantity == 0


"""
1. Catalog Fetch Tests
"""

@pytest.mark.asyncio
async def test_fetch_catalog_skips_hidden_and_paginates(mocker):
    mocker.patch.object(clover, "PAGE_LIMIT", 2)
    mock_sleep = mocker.patch("asyncio.sleep")
    pages = [
        {"elements": [
            {"id": "A", "name": "Apple", "itemStock": {"stockCount": 3}},
            {"id": "B", "name": "Old Apple", "hidden": True},
        ]},
        {"elements": [{"id": "C", "name": "Cider", "stockCount": 5}]},
    ]
    mock_request = mocker.patch.object(CloverAdapter, "_make_request", side_effect=pages)
    adapter = CloverAdapter(merchant_id="M1", access_token="tok", page_delay=0.25)

    items = await adapter.fetch_catalog_items()

    assert [i.clover_item_id for i in items] == ["A", "C"]
    assert all(i.clover_merchant_id == "M1" for i in items)
    first, second = mock_request.call_args_list
    assert first.kwargs["params"] == {"expand": "itemStock", "limit": 2, "offset": 0}
    assert second.kwargs["params"] == {"expand": "itemStock", "limit": 2, "offset": 2}
    mock_sleep.assert_awaited_once_with(0.25)


def test_build_url_and_headers():
    adapter = CloverAdapter(merchant_id="M1", access_token="tok", environment="eu")

    assert adapter._build_url("items/X") == "https://api.eu.clover.com/v3/merchants/M1/items/X"
    assert adapter._get_headers()["Authorization"] == "Bearer tok"


"""
2. Single Item Fetch Tests
"""

@pytest.mark.asyncio
async def test_fetch_item(mocker):
    mock_request = mocker.patch.object(
        CloverAdapter, "_make_request",
        return_value={"id": "A", "name": "Apple", "itemStock": {"stockCount": 3}},
    )
    adapter = CloverAdapter(merchant_id="M1", access_token="tok")

    items = await adapter.fetch_item("A")

    assert [(i.clover_item_id, i.quantity) for i in items] == [("A", 3)]
    mock_request.assert_called_once_with("GET", "items/A", params={"expand": "itemStock"})


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [
    {"side_effect": CloverAPIError("Clover request failed (401): Unauthorized", status_code=401)},
    {"return_value": {"id": "A", "name": "Apple", "hidden": True}},
    {"return_value": {}},
])
async def test_fetch_item_failures_give_empty_list(mocker, kwargs):
    mocker.patch.object(CloverAdapter, "_make_request", **kwargs)
    adapter = CloverAdapter(merchant_id="M1", access_token="tok")

    assert await adapter.fetch_item("A") == []
