"""Order data models for both platforms."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .nodes import connection_nodes, first_present, graphql_id


def _money(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, dict):
        # MoneyBag / MoneyV2 shapes
        value = (value.get("shopMoney") or value).get("amount", "0")
    return Decimal(str(value))


@dataclass
class Address:
    """A postal address in Nautical Commerce form."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_source(cls, data: Optional[Dict[str, Any]]) -> Optional["Address"]:
        """Normalize a Shopify address; ``None`` stays ``None``."""
        if not data:
            return None
        return cls(
            first_name=first_present(data, "firstName", "first_name"),
            last_name=first_present(data, "lastName", "last_name"),
            address1=data.get("address1"),
            address2=data.get("address2"),
            city=data.get("city"),
            province=data.get("province"),
            postal_code=data.get("zip"),
            country=data.get("country"),
            phone=data.get("phone"),
        )

    def to_input(self) -> Dict[str, Any]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "province": self.province,
            "postalCode": self.postal_code,
            "country": self.country,
            "phone": self.phone,
        }


@dataclass
class SourceLineItem:
    """A Shopify order line; ``total_price`` is the line aggregate."""

    quantity: int
    total_price: Decimal
    sku: Optional[str] = None
    variant_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "SourceLineItem":
        quantity = int(node.get("quantity") or 0)
        variant = node.get("variant") or {}

        if "originalTotalPrice" in node or "originalTotalSet" in node:
            total = _money(first_present(node, "originalTotalPrice", "originalTotalSet"))
        else:
            # REST line items carry the unit price
            total = _money(node.get("price")) * quantity

        variant_id = variant.get("id")
        if variant_id is None and node.get("variant_id") is not None:
            variant_id = f"gid://shopify/ProductVariant/{node['variant_id']}"

        return cls(
            quantity=quantity,
            total_price=total,
            sku=variant.get("sku") or node.get("sku") or None,
            variant_id=variant_id,
            name=first_present(node, "name", "title")
        )


@dataclass
class SourceOrder:
    """A Shopify order as read from the Admin API or a webhook body."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    total_price: Decimal = Decimal("0")
    financial_status: Optional[str] = None
    line_items: List[SourceLineItem] = field(default_factory=list)
    shipping_address: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "SourceOrder":
        """Create instance from a GraphQL ``Order`` node or a REST body."""
        if not node or node.get("id") is None:
            raise ValueError("Order payload has no id")

        status = first_present(node, "displayFinancialStatus", "financial_status")
        return cls(
            id=graphql_id(node, "Order"),
            name=node.get("name"),
            email=node.get("email"),
            phone=node.get("phone"),
            total_price=_money(first_present(node, "totalPrice", "totalPriceSet", "total_price")),
            financial_status=str(status).upper() if status is not None else None,
            line_items=[
                SourceLineItem.from_node(item)
                for item in connection_nodes(first_present(node, "lineItems", "line_items"))
            ],
            shipping_address=first_present(node, "shippingAddress", "shipping_address"),
            billing_address=first_present(node, "billingAddress", "billing_address"),
            created_at=first_present(node, "createdAt", "created_at")
        )


@dataclass
class LineItem:
    """An order line in Nautical Commerce form."""

    sku: Optional[str]
    variant_id: Optional[str]
    quantity: int
    unit_price: Decimal

    def to_input(self) -> Dict[str, Any]:
        return {
            "productVariantId": self.variant_id,
            "quantity": self.quantity,
            "price": float(self.unit_price),
            "sku": self.sku,
        }


@dataclass
class Order:
    """An order draft in Nautical Commerce form."""

    external_id: str
    order_number: Optional[str]
    customer_email: Optional[str]
    customer_phone: Optional[str]
    status: str
    total_price: Decimal
    line_items: List[LineItem] = field(default_factory=list)
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None

    def to_input(self) -> Dict[str, Any]:
        """Convert to the Nautical ``OrderCreateInput``/``OrderUpdateInput``."""
        return {
            "externalId": self.external_id,
            "orderNumber": self.order_number,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "status": self.status,
            "totalPrice": float(self.total_price),
            "lineItems": [item.to_input() for item in self.line_items],
            "shippingAddress": self.shipping_address.to_input() if self.shipping_address else None,
            "billingAddress": self.billing_address.to_input() if self.billing_address else None,
        }


@dataclass
class TargetOrderRef:
    """The identity and status of an order found on Nautical Commerce."""

    id: str
    status: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "TargetOrderRef":
        return cls(id=node["id"], status=node.get("status"), created_at=node.get("createdAt"))
