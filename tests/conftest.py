"""Pytest configuration and fixtures."""

import os

# Settings() requires these; set before any module builds a config
os.environ.setdefault("SHOPIFY_SHOP_URL", "test-shop.myshopify.com")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "shpat_test")
os.environ.setdefault("SHOPIFY_WEBHOOK_SECRET", "test_secret")
os.environ.setdefault("NAUTICAL_API_URL", "https://api.nautical.test/graphql")
os.environ.setdefault("NAUTICAL_API_KEY", "nautical_test_key")
os.environ.setdefault("NAUTICAL_TENANT_ID", "tenant-1")

import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from nautical_sync.models.inventory import InventoryItem, InventoryLevel
from nautical_sync.models.mapping import AttributeMapping
from nautical_sync.models.order import SourceLineItem, SourceOrder, TargetOrderRef
from nautical_sync.models.product import TargetProductRef
from nautical_sync.models.sync_result import SyncResult
from nautical_sync.utils.config import get_config


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Rebuild configuration for every test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def sync_logger():
    """Logging collaborator stand-in."""
    return MagicMock()


@pytest.fixture
def sample_mappings():
    return [
        AttributeMapping(source_field="vendor", target_field="brand"),
        AttributeMapping(source_field="tags", target_field="keywords"),
        AttributeMapping(source_field="Color", target_field="colour"),
    ]


@pytest.fixture
def shopify_product_node():
    """A product node as returned by the Shopify products query."""
    return {
        "id": "gid://shopify/Product/1001",
        "title": "Trail Runner",
        "handle": "trail-runner",
        "description": "Light trail shoe",
        "descriptionHtml": "<p>Light trail shoe</p>",
        "productType": "Shoes",
        "vendor": "Acme",
        "status": "ACTIVE",
        "tags": ["running", "trail"],
        "options": [
            {"id": "gid://shopify/ProductOption/1", "name": "Color", "values": ["Red"]},
            {"id": "gid://shopify/ProductOption/2", "name": "Size", "values": ["42"]},
        ],
        "variants": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/ProductVariant/2001",
                        "sku": "TR-RED-42",
                        "price": "129.00",
                        "compareAtPrice": None,
                        "inventoryQuantity": 7,
                        "selectedOptions": [
                            {"name": "Color", "value": "Red"},
                            {"name": "Size", "value": "42"},
                        ],
                    }
                }
            ]
        },
    }


@pytest.fixture
def shopify_order_node():
    """An order node as returned by the Shopify orders query."""
    return {
        "id": "gid://shopify/Order/5001",
        "name": "#1001",
        "email": "customer@example.com",
        "phone": "+15550100",
        "createdAt": "2024-01-15T10:00:00Z",
        "displayFinancialStatus": "PAID",
        "totalPriceSet": {"shopMoney": {"amount": "109.97"}},
        "lineItems": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/LineItem/1",
                        "name": "Test Product 1",
                        "quantity": 2,
                        "originalTotalSet": {"shopMoney": {"amount": "59.98"}},
                        "variant": {"id": "gid://shopify/ProductVariant/11", "sku": "TEST-SKU-001"},
                    }
                },
                {
                    "node": {
                        "id": "gid://shopify/LineItem/2",
                        "name": "Test Product 2",
                        "quantity": 1,
                        "originalTotalSet": {"shopMoney": {"amount": "49.99"}},
                        "variant": {"id": "gid://shopify/ProductVariant/12", "sku": "TEST-SKU-002"},
                    }
                },
            ]
        },
        "shippingAddress": {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "address1": "1 Main St",
            "address2": None,
            "city": "London",
            "province": "LND",
            "zip": "N1 9GU",
            "country": "United Kingdom",
            "phone": "+15550100",
        },
        "billingAddress": None,
    }


@pytest.fixture
def sample_source_order():
    return SourceOrder(
        id="order_1",
        name="#1001",
        email="customer@example.com",
        total_price=Decimal("30.00"),
        financial_status="PAID",
        line_items=[SourceLineItem(quantity=3, total_price=Decimal("30.00"), sku="A", variant_id="v1")],
    )


def shopify_item(sku, *available, variant_id=None):
    """Shopify inventory item with one level per quantity."""
    return InventoryItem(
        sku=sku,
        source_variant_id=variant_id or f"gid://shopify/ProductVariant/{sku}",
        levels=[InventoryLevel(location_id=f"loc-{i}", available=q) for i, q in enumerate(available)],
    )


def nautical_item(sku, quantity, variant_id=None):
    """Nautical inventory item holding a single quantity."""
    return InventoryItem(
        sku=sku,
        target_variant_id=variant_id or f"nautical-variant-{sku}",
        levels=[InventoryLevel(location_id="default", available=quantity)],
    )


class FakeNauticalClient:
    """In-memory Nautical Commerce keyed by external id."""

    def __init__(self):
        self.products = {}
        self.orders = {}
        self.calls = []
        self._next_id = 1

    def _new_id(self, kind):
        new_id = f"{kind}-{self._next_id}"
        self._next_id += 1
        return new_id

    def find_product_by_external_id(self, external_id):
        self.calls.append(("find_product", external_id))
        entry = self.products.get(external_id)
        return TargetProductRef(id=entry["id"], name=entry["product"].name) if entry else None

    def create_product(self, product):
        self.calls.append(("create_product", product.external_id))
        entry = {"id": self._new_id("product"), "product": product}
        self.products[product.external_id] = entry
        return TargetProductRef(id=entry["id"], name=product.name)

    def update_product(self, product_id, product):
        self.calls.append(("update_product", product_id))
        self.products[product.external_id] = {"id": product_id, "product": product}
        return TargetProductRef(id=product_id, name=product.name)

    def delete_product(self, product_id):
        self.calls.append(("delete_product", product_id))
        for external_id, entry in list(self.products.items()):
            if entry["id"] == product_id:
                del self.products[external_id]
        return product_id

    def find_order_by_external_id(self, external_id):
        self.calls.append(("find_order", external_id))
        entry = self.orders.get(external_id)
        return TargetOrderRef(id=entry["id"], status=entry["order"].status) if entry else None

    def create_order(self, order):
        self.calls.append(("create_order", order.external_id))
        entry = {"id": self._new_id("order"), "order": order}
        self.orders[order.external_id] = entry
        return TargetOrderRef(id=entry["id"], status=order.status)

    def update_order(self, order_id, order):
        self.calls.append(("update_order", order_id))
        self.orders[order.external_id] = {"id": order_id, "order": order}
        return TargetOrderRef(id=order_id, status=order.status)

    def writes(self):
        return [call for call in self.calls if not call[0].startswith("find")]


@pytest.fixture
def fake_nautical():
    return FakeNauticalClient()


@pytest.fixture
def mock_shopify_client():
    """Create a mock Shopify client."""
    client = MagicMock()
    client.fetch_products.return_value = []
    client.fetch_inventory.return_value = []
    client.fetch_orders.return_value = []
    return client


@pytest.fixture
def mock_nautical_client():
    """Create a mock Nautical client."""
    client = MagicMock()
    client.fetch_inventory.return_value = []
    client.find_product_by_external_id.return_value = None
    client.find_order_by_external_id.return_value = None
    return client


@pytest.fixture
def sample_sync_result():
    """Create a sample SyncResult for testing."""
    result = SyncResult(operation="inventory_sync", total_items=10)
    result.updated_count = 8
    result.skipped_count = 1
    result.add_error("SKU-9", "ValidationError", "rejected")
    result.finalize()
    return result
