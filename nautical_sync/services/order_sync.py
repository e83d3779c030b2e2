"""Order synchronization from Shopify into Nautical Commerce."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .order_reconciler import OrderAction, OrderReconciler, OrderReconciliation
from ..models.order import SourceOrder
from ..models.sync_result import SyncResult

_COUNTERS = {
    OrderAction.CREATE: "created_count",
    OrderAction.UPDATE: "updated_count",
    OrderAction.SKIP: "skipped_count",
}


class OrderSyncService:
    """Upsert recent Shopify orders, in bulk or one webhook at a time."""

    def __init__(self, shopify_client, nautical_client, logger, lookback_hours: int = 24):
        self.shopify = shopify_client
        self.logger = logger
        self.lookback_hours = lookback_hours
        self.reconciler = OrderReconciler(nautical_client, logger)

    def sync_order(self, source_order: SourceOrder) -> OrderReconciliation:
        """Reconcile a single order; errors are logged and re-raised."""
        try:
            outcome = self.reconciler.reconcile_order(source_order)
        except Exception as e:
            self.logger.error("Order sync failed", error=e, operation="reconcile_order", external_id=source_order.id)
            raise
        metric = _COUNTERS[outcome.action].replace("_count", "")
        self.logger.metric(f"orders.{metric}", 1, external_id=source_order.id)
        return outcome

    def sync_orders(self, since: Optional[datetime] = None) -> SyncResult:
        """
        Reconcile every Shopify order created at or after *since*.

        Args:
            since: Cursor owned by the caller; defaults to now minus the lookback window

        Returns:
            ``SyncResult`` with created/updated/skipped/failed counts
        """
        if since is None:
            since = datetime.now(timezone.utc) - timedelta(hours=self.lookback_hours)

        result = SyncResult(operation="order_sync", metadata={"since": since.isoformat()})
        self.logger.info("Starting order sync", since=since.isoformat())

        try:
            orders = self.shopify.fetch_orders(since)
        except Exception as e:
            self.logger.error("Order sync failed fetching Shopify orders", error=e, operation="fetch_orders")
            raise

        result.total_items = len(orders)

        for order in orders:
            try:
                outcome = self.reconciler.reconcile_order(order)
                counter = _COUNTERS[outcome.action]
                setattr(result, counter, getattr(result, counter) + 1)
            except Exception as e:
                self.logger.error(
                    "Failed to sync order",
                    error=e,
                    operation="reconcile_order",
                    external_id=order.id,
                    order_number=order.name
                )
                result.record_failure(order.id, e)

        result.finalize()
        self.logger.metric("orders.created", result.created_count)
        self.logger.metric("orders.updated", result.updated_count)
        self.logger.metric("orders.skipped", result.skipped_count)
        self.logger.info(
            "Order sync finished",
            total=result.total_items,
            created=result.created_count,
            updated=result.updated_count,
            skipped=result.skipped_count,
            failed=result.failed_count
        )
        return result
