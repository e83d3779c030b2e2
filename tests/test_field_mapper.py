"""Tests for the product field mapper."""

from nautical_sync.models.mapping import AttributeMapping
from nautical_sync.models.product import SourceProduct, SourceVariant
from nautical_sync.services.field_mapper import (
    extract_attributes,
    extract_variant_attributes,
    map_product,
    map_product_status,
    map_products,
)


class TestStatusMapping:
    def test_known_statuses(self):
        assert map_product_status("ACTIVE") == "PUBLISHED"
        assert map_product_status("DRAFT") == "DRAFT"
        assert map_product_status("ARCHIVED") == "ARCHIVED"

    def test_unknown_defaults_to_draft(self):
        assert map_product_status("UNLISTED") == "DRAFT"
        assert map_product_status("") == "DRAFT"
        assert map_product_status(None) == "DRAFT"


class TestExtractAttributes:
    def test_copies_mapped_fields(self, shopify_product_node, sample_mappings):
        product = SourceProduct.from_node(shopify_product_node)

        attributes = extract_attributes(product, sample_mappings)

        assert attributes == {"brand": "Acme", "keywords": "running, trail"}

    def test_absent_field_is_skipped(self):
        product = SourceProduct(id="gid://shopify/Product/1", title="T", fields={"vendor": None})
        mappings = [AttributeMapping("vendor", "brand"), AttributeMapping("material", "fabric")]

        assert extract_attributes(product, mappings) == {}

    def test_unmapped_fields_are_not_copied(self, shopify_product_node):
        product = SourceProduct.from_node(shopify_product_node)
        assert extract_attributes(product, []) == {}


class TestVariantAttributes:
    def test_mapped_and_unmapped_options(self, sample_mappings):
        variant = SourceVariant(
            id="gid://shopify/ProductVariant/1",
            sku="A",
            selected_options=[("Color", "Red"), ("Size", "42")]
        )

        assert extract_variant_attributes(variant, sample_mappings) == {"colour": "Red", "size": "42"}

    def test_first_mapping_wins(self):
        variant = SourceVariant(id="v", sku="A", selected_options=[("Color", "Red")])
        mappings = [AttributeMapping("Color", "first"), AttributeMapping("Color", "second")]

        assert extract_variant_attributes(variant, mappings) == {"first": "Red"}


class TestMapProduct:
    def test_structural_fields(self, shopify_product_node, sample_mappings):
        product = map_product(SourceProduct.from_node(shopify_product_node), sample_mappings)

        assert product.external_id == "gid://shopify/Product/1001"
        assert product.name == "Trail Runner"
        assert product.description == "<p>Light trail shoe</p>"
        assert product.product_type == "Shoes"
        assert product.vendor == "Acme"
        assert product.status == "PUBLISHED"
        assert product.attributes["brand"] == "Acme"

    def test_variants(self, shopify_product_node, sample_mappings):
        product = map_product(SourceProduct.from_node(shopify_product_node), sample_mappings)

        assert len(product.variants) == 1
        variant = product.variants[0]
        assert variant.sku == "TR-RED-42"
        assert variant.price == "129.00"
        assert variant.inventory_quantity == 7
        assert variant.external_id == "gid://shopify/ProductVariant/2001"
        assert variant.attributes == {"colour": "Red", "size": "42"}

    def test_plain_description_when_no_html(self):
        source = SourceProduct(id="gid://shopify/Product/2", title="Cap", description="Plain")
        assert map_product(source, []).description == "Plain"

    def test_map_products_keeps_order(self, shopify_product_node):
        first = SourceProduct.from_node(shopify_product_node)
        second = SourceProduct(id="gid://shopify/Product/2", title="Cap", status="ARCHIVED")

        products = map_products([first, second], [])

        assert [p.external_id for p in products] == [first.id, second.id]
        assert products[1].status == "ARCHIVED"
