"""Inventory reconciliation between Shopify and Nautical Commerce."""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..models.inventory import InventoryItem, InventoryUpdate


class ResolutionPolicy(str, Enum):
    """How the target-bound quantity is chosen when the platforms disagree."""

    MIN = "min"  # never overstate stock on either side
    SOURCE = "source"  # Shopify is the source of truth

    def resolve(self, source_quantity: int, target_quantity: int) -> int:
        if self is ResolutionPolicy.SOURCE:
            return source_quantity
        return min(source_quantity, target_quantity)


def index_by_sku(items: Iterable[InventoryItem], side: str, logger=None) -> Dict[str, InventoryItem]:
    """
    Build a ``sku -> item`` lookup.

    Items without a SKU are dropped. A SKU seen twice keeps the last item;
    this is a known limitation of joining on SKU.
    """
    index: Dict[str, InventoryItem] = {}
    for item in items:
        if not item.sku:
            continue
        if item.sku in index and logger is not None:
            logger.warn(f"Duplicate SKU in {side} inventory, keeping the last item", sku=item.sku)
        index[item.sku] = item
    return index


def compute_updates(
    source_inventory: Iterable[InventoryItem],
    target_inventory: Iterable[InventoryItem],
    policy: ResolutionPolicy = ResolutionPolicy.MIN,
    logger=None
) -> List[InventoryUpdate]:
    """
    Compute the stock corrections that bring both platforms into agreement.

    Only SKUs present on both sides are compared. The source quantity is the
    sum over all Shopify locations; the target quantity is the Nautical
    variant's recorded quantity. SKUs whose quantities already agree yield
    nothing. Output follows the order of the source inventory.

    Args:
        source_inventory: Shopify inventory items
        target_inventory: Nautical inventory items
        policy: Resolution policy for the target-bound quantity
        logger: Optional ``SyncLogger`` for duplicate-SKU warnings

    Returns:
        One ``InventoryUpdate`` per disagreeing SKU
    """
    source_index = index_by_sku(source_inventory, "source", logger)
    target_index = index_by_sku(target_inventory, "target", logger)

    updates: List[InventoryUpdate] = []
    for sku, source_item in source_index.items():
        target_item: Optional[InventoryItem] = target_index.get(sku)
        if target_item is None:
            continue

        source_quantity = source_item.total_quantity
        target_quantity = target_item.total_quantity
        if source_quantity == target_quantity:
            continue

        updates.append(InventoryUpdate(
            sku=sku,
            source_variant_id=source_item.source_variant_id,
            target_variant_id=target_item.target_variant_id,
            source_quantity=source_quantity,
            target_quantity=target_quantity,
            resolved_quantity=policy.resolve(source_quantity, target_quantity),
        ))

    return updates
