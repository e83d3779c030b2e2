"""Inventory data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .nodes import connection_nodes


@dataclass
class InventoryLevel:
    """Stock available at one location."""

    location_id: str
    available: int
    location_name: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "InventoryLevel":
        """Create instance from a Shopify ``InventoryLevel`` node."""
        available = node.get("available")
        if available is None:
            for quantity in node.get("quantities") or []:
                if quantity.get("name") == "available":
                    available = quantity.get("quantity")
                    break

        location = node.get("location") or {}
        return cls(
            location_id=location.get("id", ""),
            available=int(available or 0),
            location_name=location.get("name")
        )


@dataclass
class InventoryItem:
    """Stock of one SKU on one platform."""

    sku: Optional[str]
    source_variant_id: Optional[str] = None
    target_variant_id: Optional[str] = None
    levels: List[InventoryLevel] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        """Sum of available stock across all locations."""
        return sum(level.available for level in self.levels)

    @classmethod
    def from_shopify_node(cls, node: Dict[str, Any]) -> "InventoryItem":
        """Create instance from a Shopify ``InventoryItem`` node."""
        variant = node.get("variant") or {}
        return cls(
            sku=variant.get("sku") or node.get("sku") or None,
            source_variant_id=variant.get("id"),
            levels=[
                InventoryLevel.from_node(level)
                for level in connection_nodes(node.get("inventoryLevels"))
            ]
        )

    @classmethod
    def from_nautical_variant(cls, variant: Dict[str, Any]) -> "InventoryItem":
        """Create instance from a Nautical variant node; one level holds its quantity."""
        return cls(
            sku=variant.get("sku") or None,
            source_variant_id=variant.get("externalId"),
            target_variant_id=variant.get("id"),
            levels=[InventoryLevel(location_id="default", available=int(variant.get("inventoryQuantity") or 0))]
        )


@dataclass
class InventoryUpdate:
    """A stock correction computed by the reconciler. Never persisted."""

    sku: str
    source_variant_id: Optional[str]
    target_variant_id: Optional[str]
    source_quantity: int
    target_quantity: int
    resolved_quantity: int

    @property
    def changes_target(self) -> bool:
        """Whether applying the update writes a new quantity to the target."""
        return self.resolved_quantity != self.target_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku": self.sku,
            "source_variant_id": self.source_variant_id,
            "target_variant_id": self.target_variant_id,
            "source_quantity": self.source_quantity,
            "target_quantity": self.target_quantity,
            "resolved_quantity": self.resolved_quantity,
        }
