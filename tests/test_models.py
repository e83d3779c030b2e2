"""Tests for data models."""

import pytest
from decimal import Decimal

from nautical_sync.models.inventory import InventoryItem, InventoryLevel, InventoryUpdate
from nautical_sync.models.mapping import AttributeMapping, parse_attribute_mappings
from nautical_sync.models.nodes import connection_nodes, graphql_field_name, graphql_id, with_graphql_names
from nautical_sync.models.order import Address, SourceLineItem, SourceOrder
from nautical_sync.models.product import Product, SourceProduct
from nautical_sync.models.sync_result import SyncResult
from nautical_sync.utils.exceptions import ConfigError, ValidationError


class TestAttributeMapping:
    """Tests for the attribute mapping table."""

    def test_from_mapping_ui_entry(self):
        mapping = AttributeMapping.from_dict({
            "shopifyAttribute": "vendor",
            "nauticalAttribute": "brand",
            "description": "Brand name"
        })

        assert mapping.source_field == "vendor"
        assert mapping.target_field == "brand"
        assert mapping.description == "Brand name"

    def test_generic_keys(self):
        mapping = AttributeMapping.from_dict({"sourceField": "tags", "targetField": "keywords"})
        assert (mapping.source_field, mapping.target_field) == ("tags", "keywords")

    def test_missing_target_raises(self):
        with pytest.raises(ConfigError):
            AttributeMapping.from_dict({"shopifyAttribute": "vendor"})

    def test_parse_wrapped_and_bare(self):
        entries = [{"shopifyAttribute": "vendor", "nauticalAttribute": "brand"}]

        assert parse_attribute_mappings({"mappings": entries}) == parse_attribute_mappings(entries)
        assert parse_attribute_mappings({}) == []

    def test_parse_rejects_non_list(self):
        with pytest.raises(ConfigError):
            parse_attribute_mappings({"mappings": "vendor=brand"})


class TestNodes:
    def test_connection_shapes(self):
        assert connection_nodes({"edges": [{"node": {"id": 1}}]}) == [{"id": 1}]
        assert connection_nodes({"nodes": [{"id": 2}]}) == [{"id": 2}]
        assert connection_nodes([{"id": 3}]) == [{"id": 3}]
        assert connection_nodes(None) == []

    def test_graphql_id_from_rest_body(self):
        assert graphql_id({"id": 42}, "Product") == "gid://shopify/Product/42"
        assert graphql_id(
            {"id": 42, "admin_graphql_api_id": "gid://shopify/Product/42"}, "Product"
        ) == "gid://shopify/Product/42"
        assert graphql_id({"id": "gid://shopify/Product/7"}, "Product") == "gid://shopify/Product/7"

    def test_graphql_field_name(self):
        assert graphql_field_name("product_type") == "productType"
        assert graphql_field_name("created_at") == "createdAt"
        assert graphql_field_name("body_html") == "descriptionHtml"
        assert graphql_field_name("vendor") == "vendor"

    def test_graphql_names_keep_existing_keys(self):
        named = with_graphql_names({"product_type": "Shoes", "productType": "Boots", "vendor": "Acme"})

        assert named["productType"] == "Boots"
        assert named["product_type"] == "Shoes"
        assert named["vendor"] == "Acme"


class TestSourceProduct:
    """Tests for SourceProduct parsing."""

    def test_from_graphql_node(self, shopify_product_node):
        product = SourceProduct.from_node(shopify_product_node)

        assert product.id == "gid://shopify/Product/1001"
        assert product.title == "Trail Runner"
        assert product.description_html == "<p>Light trail shoe</p>"
        assert product.product_type == "Shoes"
        assert product.option_names == ["Color", "Size"]
        assert len(product.variants) == 1
        assert product.variants[0].sku == "TR-RED-42"
        assert product.variants[0].inventory_quantity == 7
        assert product.variants[0].selected_options == [("Color", "Red"), ("Size", "42")]
        assert product.fields["vendor"] == "Acme"
        assert product.fields["tags"] == ["running", "trail"]
        assert "variants" not in product.fields

    def test_from_rest_webhook_body(self):
        product = SourceProduct.from_node({
            "id": 1001,
            "title": "Trail Runner",
            "body_html": "<p>Shoe</p>",
            "product_type": "Shoes",
            "status": "active",
            "options": [{"name": "Color", "position": 1}],
            "variants": [
                {"id": 2001, "sku": "TR-RED", "price": "129.00", "option1": "Red", "inventory_quantity": 3}
            ]
        })

        assert product.id == "gid://shopify/Product/1001"
        assert product.status == "ACTIVE"
        assert product.description_html == "<p>Shoe</p>"
        assert product.variants[0].id == "gid://shopify/ProductVariant/2001"
        assert product.variants[0].selected_options == [("Color", "Red")]
        assert product.variants[0].inventory_quantity == 3
        assert product.fields["productType"] == "Shoes"
        assert product.fields["descriptionHtml"] == "<p>Shoe</p>"

    def test_missing_id_raises(self):
        with pytest.raises(ValueError):
            SourceProduct.from_node({"title": "No id"})


class TestProduct:
    """Tests for the Nautical product draft."""

    def test_valid_product(self):
        product = Product(external_id="gid://shopify/Product/1", name="Shoe", status="PUBLISHED")
        payload = product.to_input()

        assert payload["externalId"] == "gid://shopify/Product/1"
        assert payload["externalSource"] == "shopify"
        assert payload["variants"] == []

    def test_empty_external_id(self):
        with pytest.raises(ValueError, match="External id cannot be empty"):
            Product(external_id="", name="Shoe")

    def test_invalid_status(self):
        with pytest.raises(ValueError, match="Status must be one of"):
            Product(external_id="gid://shopify/Product/1", name="Shoe", status="ACTIVE")


class TestInventoryModels:
    def test_total_quantity_sums_locations(self):
        item = InventoryItem(sku="A", levels=[
            InventoryLevel(location_id="l1", available=3),
            InventoryLevel(location_id="l2", available=2),
        ])
        assert item.total_quantity == 5

    def test_from_shopify_node_reads_quantities(self):
        item = InventoryItem.from_shopify_node({
            "id": "gid://shopify/InventoryItem/1",
            "variant": {"id": "gid://shopify/ProductVariant/9", "sku": "A"},
            "inventoryLevels": {"edges": [
                {"node": {"location": {"id": "l1", "name": "Main"},
                          "quantities": [{"name": "available", "quantity": 4}]}},
                {"node": {"location": {"id": "l2"}, "available": 1}},
            ]}
        })

        assert item.sku == "A"
        assert item.source_variant_id == "gid://shopify/ProductVariant/9"
        assert item.total_quantity == 5

    def test_from_nautical_variant(self):
        item = InventoryItem.from_nautical_variant({"id": "nv-1", "sku": "A", "inventoryQuantity": 8})

        assert item.target_variant_id == "nv-1"
        assert item.total_quantity == 8

    def test_update_changes_target(self):
        update = InventoryUpdate("A", None, "nv-1", source_quantity=5, target_quantity=8, resolved_quantity=5)
        assert update.changes_target
        assert update.to_dict()["resolved_quantity"] == 5


class TestSourceOrder:
    def test_from_graphql_node(self, shopify_order_node):
        order = SourceOrder.from_node(shopify_order_node)

        assert order.id == "gid://shopify/Order/5001"
        assert order.financial_status == "PAID"
        assert order.total_price == Decimal("109.97")
        assert [item.quantity for item in order.line_items] == [2, 1]
        assert order.line_items[0].total_price == Decimal("59.98")
        assert order.line_items[0].variant_id == "gid://shopify/ProductVariant/11"
        assert order.shipping_address["zip"] == "N1 9GU"
        assert order.billing_address is None

    def test_rest_line_item_uses_unit_price(self):
        item = SourceLineItem.from_node({"quantity": 3, "price": "10.00", "sku": "A", "variant_id": 77})

        assert item.total_price == Decimal("30.00")
        assert item.variant_id == "gid://shopify/ProductVariant/77"

    def test_from_rest_body(self):
        order = SourceOrder.from_node({
            "id": 5001,
            "name": "#1001",
            "financial_status": "paid",
            "total_price": "30.00",
            "line_items": [{"quantity": 3, "price": "10.00", "sku": "A"}]
        })

        assert order.id == "gid://shopify/Order/5001"
        assert order.financial_status == "PAID"
        assert order.total_price == Decimal("30.00")

    def test_address_maps_zip_to_postal_code(self):
        address = Address.from_source({"firstName": "Ada", "zip": "N1 9GU"})

        assert address.postal_code == "N1 9GU"
        assert address.to_input()["postalCode"] == "N1 9GU"
        assert Address.from_source(None) is None


class TestSyncResult:
    """Tests for SyncResult model."""

    def test_sync_result_creation(self):
        result = SyncResult(operation="order_sync")

        assert result.created_count == 0
        assert result.failed_count == 0
        assert result.success
        assert result.start_time is not None

    def test_add_error(self):
        result = SyncResult()
        result.add_error("SKU-1", "APIError", "Connection timeout")

        assert len(result.errors) == 1
        assert result.failed_count == 1
        assert not result.success
        assert result.errors[0].entity_id == "SKU-1"

    def test_record_failure_keeps_details(self):
        result = SyncResult()
        result.record_failure("gid://shopify/Order/1", ValidationError("rejected", user_errors=[{"message": "bad"}]))

        assert result.errors[0].error_type == "ValidationError"
        assert result.errors[0].details["user_errors"] == [{"message": "bad"}]

    def test_success_rate(self):
        result = SyncResult(total_items=10)
        result.created_count = 4
        result.updated_count = 3
        result.skipped_count = 1

        assert result.processed_count == 8
        assert result.success_rate == 80.0

    def test_success_rate_zero_items(self):
        assert SyncResult(total_items=0).success_rate == 0.0

    def test_finalize(self):
        result = SyncResult()
        result.finalize()

        assert result.end_time is not None
        assert result.duration >= 0

    def test_to_dict(self, sample_sync_result):
        data = sample_sync_result.to_dict()

        assert data["operation"] == "inventory_sync"
        assert data["updated_count"] == 8
        assert data["failed_count"] == 1
        assert data["success"] is False
        assert len(data["errors"]) == 1

    def test_get_summary(self, sample_sync_result):
        summary = sample_sync_result.get_summary()

        assert "Total items: 10" in summary
        assert "Updated: 8" in summary
        assert "Failed: 1" in summary
        assert "SKU-9: rejected" in summary
