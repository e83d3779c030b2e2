"""Shopify product -> Nautical product transformation.

Structural fields (name, description, type, vendor, status, variants) go
through a fixed transform. Everything else reaches Nautical only through
the user's attribute mapping table.
"""

from typing import Any, Dict, Iterable, List, Sequence

from ..models.mapping import AttributeMapping
from ..models.product import Product, SourceProduct, SourceVariant, Variant

PRODUCT_STATUS_MAP = {
    "ACTIVE": "PUBLISHED",
    "DRAFT": "DRAFT",
    "ARCHIVED": "ARCHIVED",
}


def map_product_status(status: str) -> str:
    """Map a Shopify product status; unknown values become DRAFT."""
    return PRODUCT_STATUS_MAP.get((status or "").upper(), "DRAFT")


def _attribute_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def extract_attributes(source_product: SourceProduct, mappings: Iterable[AttributeMapping]) -> Dict[str, str]:
    """Copy every mapped field present on the source product."""
    attributes: Dict[str, str] = {}
    for mapping in mappings:
        value = source_product.fields.get(mapping.source_field)
        if value is not None:
            attributes[mapping.target_field] = _attribute_value(value)
    return attributes


def extract_variant_attributes(variant: SourceVariant, mappings: Sequence[AttributeMapping]) -> Dict[str, str]:
    """
    Map selected option values by option name.

    Options without a mapping keep their own name, lower-cased.
    """
    by_source = {}
    for mapping in mappings:
        # first mapping for a name wins
        by_source.setdefault(mapping.source_field, mapping.target_field)

    attributes: Dict[str, str] = {}
    for name, value in variant.selected_options:
        key = by_source.get(name, name.lower())
        attributes[key] = value
    return attributes


def map_variant(variant: SourceVariant, mappings: Sequence[AttributeMapping]) -> Variant:
    return Variant(
        sku=variant.sku,
        price=variant.price,
        compare_at_price=variant.compare_at_price,
        inventory_quantity=variant.inventory_quantity,
        attributes=extract_variant_attributes(variant, mappings),
        external_id=variant.id,
    )


def map_product(source_product: SourceProduct, mappings: Sequence[AttributeMapping]) -> Product:
    """
    Convert a Shopify product into a Nautical product draft.

    Args:
        source_product: Product read from Shopify
        mappings: Attribute mapping table for this run

    Returns:
        Product draft whose ``external_id`` is the Shopify product id
    """
    mappings = list(mappings)
    return Product(
        external_id=source_product.id,
        name=source_product.title,
        description=source_product.description_html or source_product.description,
        product_type=source_product.product_type,
        vendor=source_product.vendor,
        status=map_product_status(source_product.status),
        attributes=extract_attributes(source_product, mappings),
        variants=[map_variant(v, mappings) for v in source_product.variants],
    )


def map_products(source_products: Iterable[SourceProduct], mappings: Sequence[AttributeMapping]) -> List[Product]:
    return [map_product(product, mappings) for product in source_products]
