"""Order upsert-by-external-id into Nautical Commerce."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..models.order import Address, LineItem, Order, SourceOrder, TargetOrderRef

ORDER_STATUS_MAP = {
    "PAID": "PAID",
    "PARTIALLY_PAID": "PARTIALLY_PAID",
    "PENDING": "PENDING",
    "REFUNDED": "REFUNDED",
    "VOIDED": "VOIDED",
    "AUTHORIZED": "AUTHORIZED",
    "PARTIALLY_REFUNDED": "PARTIALLY_REFUNDED",
}

DEFAULT_ORDER_STATUS = "PENDING"


def map_order_status(financial_status: Optional[str]) -> str:
    """Map a Shopify financial status; unknown values become PENDING."""
    return ORDER_STATUS_MAP.get((financial_status or "").upper(), DEFAULT_ORDER_STATUS)


def transform_order(source_order: SourceOrder) -> Order:
    """
    Convert a Shopify order into a Nautical order draft.

    Unit price is the line total divided by its quantity, which assumes
    every unit of a line cost the same.
    """
    line_items = []
    for item in source_order.line_items:
        unit_price = item.total_price / item.quantity if item.quantity else Decimal("0")
        line_items.append(LineItem(
            sku=item.sku,
            variant_id=item.variant_id,
            quantity=item.quantity,
            unit_price=unit_price,
        ))

    return Order(
        external_id=source_order.id,
        order_number=source_order.name,
        customer_email=source_order.email,
        customer_phone=source_order.phone,
        status=map_order_status(source_order.financial_status),
        total_price=source_order.total_price,
        line_items=line_items,
        shipping_address=Address.from_source(source_order.shipping_address),
        billing_address=Address.from_source(source_order.billing_address),
    )


class OrderAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SKIP = "SKIP"


@dataclass
class OrderReconciliation:
    """Outcome of reconciling one Shopify order."""

    action: OrderAction
    target_order: Order
    target_id: Optional[str] = None


class OrderReconciler:
    """Create or update the Nautical copy of a Shopify order."""

    def __init__(self, nautical_client, logger):
        self.nautical = nautical_client
        self.logger = logger

    def reconcile_order(self, source_order: SourceOrder) -> OrderReconciliation:
        """
        Upsert *source_order* keyed by its Shopify id.

        An existing order whose status already matches is left alone.
        """
        target_order = transform_order(source_order)
        existing: Optional[TargetOrderRef] = self.nautical.find_order_by_external_id(source_order.id)

        if existing is None:
            created = self.nautical.create_order(target_order)
            self.logger.info("Created order", external_id=source_order.id, order_id=created.id)
            return OrderReconciliation(OrderAction.CREATE, target_order, created.id)

        if existing.status == target_order.status:
            self.logger.debug("Order already up to date", external_id=source_order.id, order_id=existing.id)
            return OrderReconciliation(OrderAction.SKIP, target_order, existing.id)

        self.nautical.update_order(existing.id, target_order)
        self.logger.info(
            "Updated order",
            external_id=source_order.id,
            order_id=existing.id,
            status=f"{existing.status}->{target_order.status}"
        )
        return OrderReconciliation(OrderAction.UPDATE, target_order, existing.id)
