"""Product and variant data models for both platforms."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .nodes import connection_nodes, first_present, graphql_id, with_graphql_names

EXTERNAL_SOURCE = "shopify"

TARGET_STATUSES = ("PUBLISHED", "DRAFT", "ARCHIVED")


def _scalar_fields(node: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the fields of *node* a user mapping can address."""
    fields = {}
    for key, value in node.items():
        if isinstance(value, dict):
            continue
        if isinstance(value, list) and any(isinstance(v, dict) for v in value):
            continue
        fields[key] = value
    return fields


@dataclass
class SourceVariant:
    """A Shopify product variant as read from the Admin API."""

    id: str
    sku: Optional[str]
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    inventory_quantity: int = 0
    selected_options: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: Dict[str, Any], option_names: Optional[List[str]] = None) -> "SourceVariant":
        """Create instance from a GraphQL node or a REST webhook variant."""
        selected = [
            (opt["name"], opt["value"])
            for opt in node.get("selectedOptions") or []
        ]
        if not selected and option_names:
            # REST payloads carry option1..option3 positionally
            for position, name in enumerate(option_names, 1):
                value = node.get(f"option{position}")
                if value is not None:
                    selected.append((name, value))

        price = node.get("price")
        compare_at = first_present(node, "compareAtPrice", "compare_at_price")

        return cls(
            id=graphql_id(node, "ProductVariant"),
            sku=node.get("sku") or None,
            price=str(price) if price is not None else None,
            compare_at_price=str(compare_at) if compare_at is not None else None,
            inventory_quantity=int(first_present(node, "inventoryQuantity", "inventory_quantity", default=0)),
            selected_options=selected
        )


@dataclass
class SourceProduct:
    """A Shopify product as read from the Admin API or a webhook body."""

    id: str
    title: str
    description: Optional[str] = None
    description_html: Optional[str] = None
    product_type: Optional[str] = None
    vendor: Optional[str] = None
    status: str = "DRAFT"
    option_names: List[str] = field(default_factory=list)
    variants: List[SourceVariant] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "SourceProduct":
        """Create instance from a GraphQL ``Product`` node or a REST body."""
        if not node or node.get("id") is None:
            raise ValueError("Product payload has no id")

        option_names = [opt["name"] for opt in node.get("options") or [] if opt.get("name")]
        variants = [
            SourceVariant.from_node(v, option_names)
            for v in connection_nodes(node.get("variants"))
        ]

        fields = with_graphql_names(_scalar_fields(node))
        fields["id"] = graphql_id(node, "Product")

        return cls(
            id=fields["id"],
            title=node.get("title") or "",
            description=node.get("description"),
            description_html=first_present(node, "descriptionHtml", "body_html"),
            product_type=first_present(node, "productType", "product_type"),
            vendor=node.get("vendor"),
            status=str(node.get("status") or "DRAFT").upper(),
            option_names=option_names,
            variants=variants,
            fields=fields
        )


@dataclass
class Variant:
    """A variant in Nautical Commerce form."""

    sku: Optional[str]
    price: Optional[str]
    external_id: str
    compare_at_price: Optional[str] = None
    inventory_quantity: int = 0
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_input(self) -> Dict[str, Any]:
        """Convert to the Nautical GraphQL variant input."""
        return {
            "sku": self.sku,
            "price": self.price,
            "compareAtPrice": self.compare_at_price,
            "quantity": self.inventory_quantity,
            "attributes": self.attributes,
            "externalId": self.external_id,
            "externalSource": EXTERNAL_SOURCE,
        }


@dataclass
class Product:
    """A product draft in Nautical Commerce form."""

    external_id: str
    name: str
    description: Optional[str] = None
    product_type: Optional[str] = None
    vendor: Optional[str] = None
    status: str = "DRAFT"
    attributes: Dict[str, str] = field(default_factory=dict)
    variants: List[Variant] = field(default_factory=list)

    def __post_init__(self):
        if not self.external_id:
            raise ValueError("External id cannot be empty")

        if self.status not in TARGET_STATUSES:
            raise ValueError(f"Status must be one of {', '.join(TARGET_STATUSES)}")

    def to_input(self) -> Dict[str, Any]:
        """Convert to the Nautical ``ProductCreateInput``/``ProductUpdateInput``."""
        return {
            "name": self.name,
            "description": self.description,
            "productType": self.product_type,
            "vendor": self.vendor,
            "status": self.status,
            "attributes": self.attributes,
            "externalId": self.external_id,
            "externalSource": EXTERNAL_SOURCE,
            "variants": [variant.to_input() for variant in self.variants],
        }


@dataclass
class TargetProductRef:
    """The identity of a product found on Nautical Commerce."""

    id: str
    name: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "TargetProductRef":
        return cls(id=node["id"], name=node.get("name"))
