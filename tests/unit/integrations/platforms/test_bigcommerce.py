# tests/unit/integrations/platforms/test_bigcommerce.py
import pytest

from inventory_sync.core.exceptions import BigCommerceAPIError
from inventory_sync.integrations.platforms.bigcommerce import (
    BigCommerceAdapter,
    build_variant_name,
    map_product,
)


def product_payload(product_id=10, variants=None, **fields):
    product = {
        "id": product_id,
        "name": "Tee",
        "sku": "TEE",
        "inventory_level": 7,
        "inventory_warning_level": 2,
        "variants": variants or [],
    }
    product.update(fields)
    return product


def variant_payload(variant_id, sku, level, option_values=None):
    return {
        "id": variant_id,
        "sku": sku,
        "inventory_level": level,
        "inventory_warning_level": 1,
        "option_values": option_values or [],
    }


@pytest.fixture
def adapter():
    return BigCommerceAdapter(store_hash="abc123", client_id="client", access_token="token")


"""
1. Mapping Tests
"""

def test_variant_name_from_option_values():
    variant = variant_payload(101, "TEE-S", 3, [
        {"option_display_name": "Size", "label": "S"},
        {"option_display_name": "Color", "label": "Red"},
    ])

    assert build_variant_name({"name": "Tee"}, variant) == "Tee (Size: S, Color: Red)"


def test_variant_name_from_distinct_sku():
    assert build_variant_name({"name": "Tee", "sku": "TEE"}, {"sku": "TEE-ALT"}) == "Tee (TEE-ALT)"
    assert build_variant_name({"name": "Tee", "sku": "TEE"}, {"sku": "TEE"}) == "Tee"


def test_map_product_one_item_per_variant():
    product = product_payload(variants=[
        variant_payload(101, "TEE-S", 3, [{"option_display_name": "Size", "label": "S"}]),
        variant_payload(102, "TEE-M", 0, [{"option_display_name": "Size", "label": "M"}]),
    ])

    items = map_product(product)

    assert [(i.name, i.sku, i.quantity, i.reorder_threshold) for i in items] == [
        ("Tee (Size: S)", "TEE-S", 3, 1),
        ("Tee (Size: M)", "TEE-M", 0, 1),
    ]
    assert {i.bigcommerce_product_id for i in items} == {"10"}
    assert [i.bigcommerce_variant_id for i in items] == ["101", "102"]


def test_map_product_without_variants_uses_product_level():
    items = map_product(product_payload())

    assert len(items) == 1
    assert items[0].name == "Tee"
    assert items[0].quantity == 7
    assert items[0].reorder_threshold == 2
    assert items[0].bigcommerce_variant_id is None


"""
2. Catalog Fetch Tests
"""

@pytest.mark.asyncio
async def test_fetch_catalog_follows_pagination(mocker, adapter):
    pages = [
        {"data": [product_payload(1)], "meta": {"pagination": {"total_pages": 2}}},
        {"data": [product_payload(2)], "meta": {"pagination": {"total_pages": 2}}},
    ]
    mock_request = mocker.patch.object(BigCommerceAdapter, "_make_request", side_effect=pages)

    items = await adapter.fetch_catalog_items()

    assert [i.bigcommerce_product_id for i in items] == ["1", "2"]
    assert mock_request.call_count == 2
    _, kwargs = mock_request.call_args
    assert kwargs["params"] == {"include": "variants", "limit": 250, "page": 2}


@pytest.mark.asyncio
async def test_fetch_catalog_stops_at_page_limit(mocker, caplog):
    adapter = BigCommerceAdapter(store_hash="abc123", client_id="client", access_token="token", max_pages=2)
    mock_request = mocker.patch.object(
        BigCommerceAdapter, "_make_request",
        return_value={"data": [product_payload()], "meta": {"pagination": {"total_pages": 50}}},
    )

    items = await adapter.fetch_catalog_items()

    assert mock_request.call_count == 2
    assert len(items) == 2
    assert "safety limit" in caplog.text


"""
3. Single Product Fetch Tests
"""

@pytest.mark.asyncio
async def test_fetch_item_not_found_returns_empty(mocker, adapter):
    mocker.patch.object(
        BigCommerceAdapter, "_make_request",
        side_effect=BigCommerceAPIError("BigCommerce request failed (404): Not Found", status_code=404),
    )

    assert await adapter.fetch_item(99) == []


@pytest.mark.asyncio
async def test_fetch_item_other_errors_propagate(mocker, adapter):
    mocker.patch.object(
        BigCommerceAdapter, "_make_request",
        side_effect=BigCommerceAPIError("BigCommerce request failed (500): boom", status_code=500),
    )

    with pytest.raises(BigCommerceAPIError):
        await adapter.fetch_item(99)


@pytest.mark.asyncio
async def test_fetch_item_filters_variant(mocker, adapter):
    product = product_payload(variants=[
        variant_payload(101, "TEE-S", 3),
        variant_payload(102, "TEE-M", 4),
    ])
    mocker.patch.object(BigCommerceAdapter, "_make_request", return_value={"data": product})

    items = await adapter.fetch_item(10, variant_id=102)

    assert [i.sku for i in items] == ["TEE-M"]
    assert len(await adapter.fetch_item(10)) == 2
