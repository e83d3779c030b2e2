"""Inventory synchronization between Shopify and Nautical Commerce.

Flow:
  1. Fetch inventory from both platforms.
  2. Compute per-SKU corrections with the inventory reconciler.
  3. Write each resolved quantity to the Nautical variant; failures are
     counted per SKU and never stop the batch.
"""

from .inventory_reconciler import ResolutionPolicy, compute_updates
from ..models.sync_result import SyncResult


class InventorySyncService:
    """Bring Nautical stock in line with Shopify stock."""

    def __init__(self, shopify_client, nautical_client, logger, policy: ResolutionPolicy = ResolutionPolicy.MIN):
        self.shopify = shopify_client
        self.nautical = nautical_client
        self.logger = logger
        self.policy = policy

    def sync_inventory(self, dry_run: bool = False) -> SyncResult:
        """
        Run one full inventory pass.

        Args:
            dry_run: Compute and report corrections without writing them

        Returns:
            ``SyncResult`` whose ``metadata["updates"]`` lists every correction
        """
        result = SyncResult(operation="inventory_sync")
        self.logger.info("Starting inventory sync", policy=self.policy.value, dry_run=dry_run)

        try:
            source_inventory = self.shopify.fetch_inventory()
            target_inventory = self.nautical.fetch_inventory()
        except Exception as e:
            self.logger.error("Inventory sync failed fetching inventory", error=e, operation="fetch_inventory")
            raise

        updates = compute_updates(source_inventory, target_inventory, self.policy, self.logger)
        result.total_items = len(updates)
        result.metadata["updates"] = [update.to_dict() for update in updates]
        self.logger.info("Computed inventory corrections", count=len(updates))

        for update in updates:
            if not update.changes_target or dry_run:
                result.skipped_count += 1
                continue

            try:
                self.nautical.update_variant_quantity(update.target_variant_id, update.resolved_quantity)
                result.updated_count += 1
                self.logger.info(
                    "Updated Nautical stock",
                    sku=update.sku,
                    quantity=f"{update.target_quantity}->{update.resolved_quantity}"
                )
            except Exception as e:
                self.logger.error(
                    "Failed to update Nautical stock",
                    error=e,
                    operation="update_variant_quantity",
                    sku=update.sku
                )
                result.record_failure(update.sku, e)

        result.finalize()
        self.logger.metric("inventory.updates_applied", result.updated_count)
        self.logger.info(
            "Inventory sync finished",
            updated=result.updated_count,
            skipped=result.skipped_count,
            failed=result.failed_count,
            duration=f"{result.duration:.2f}s"
        )
        return result
