"""Main synchronization service orchestrator."""

from datetime import datetime
from typing import Dict, Optional

from .inventory_reconciler import ResolutionPolicy
from .inventory_sync import InventorySyncService
from .order_sync import OrderSyncService
from .product_import import ProductImportService
from .webhook_router import WebhookRouter
from .webhook_setup import WebhookSetupService
from ..api.nautical_client import NauticalClient
from ..api.shopify_client import ShopifyClient
from ..models.sync_result import SyncResult
from ..utils.config import AppConfig, get_config, load_attribute_mappings
from ..utils.exceptions import ConfigError
from ..utils.logger import SyncLogger, get_sync_collaborator


class _DeferredInventorySync:
    """Builds the inventory flow when an inventory event arrives, so the policy is read only then."""

    def __init__(self, service: "SyncService", logger: SyncLogger):
        self.service = service
        self.logger = logger

    def sync_inventory(self, dry_run: bool = False) -> SyncResult:
        return self.service.inventory_service(self.logger).sync_inventory(dry_run=dry_run)


class SyncService:
    """
    Main orchestrator for synchronization operations.

    Owns one Shopify and one Nautical client and builds the flow services
    on demand. Attribute mappings are read fresh at the start of every flow.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        logger: Optional[SyncLogger] = None,
        shopify_client: Optional[ShopifyClient] = None,
        nautical_client: Optional[NauticalClient] = None
    ):
        self.config = config or get_config()
        self.logger = logger or get_sync_collaborator()
        self.shopify = shopify_client or ShopifyClient.from_config(self.config, self.logger)
        self.nautical = nautical_client or NauticalClient.from_config(self.config, self.logger)

    @property
    def inventory_policy(self) -> ResolutionPolicy:
        try:
            return ResolutionPolicy(self.config.inventory.policy.lower())
        except ValueError:
            raise ConfigError(
                f"Unknown inventory policy: {self.config.inventory.policy}",
                details={"allowed": [p.value for p in ResolutionPolicy]}
            )

    def inventory_service(self, logger: Optional[SyncLogger] = None) -> InventorySyncService:
        return InventorySyncService(self.shopify, self.nautical, logger or self.logger, self.inventory_policy)

    def order_service(self) -> OrderSyncService:
        return OrderSyncService(
            self.shopify, self.nautical, self.logger,
            lookback_hours=self.config.orders.lookback_hours
        )

    def import_products(self) -> SyncResult:
        mappings = load_attribute_mappings(self.config)
        return ProductImportService(self.shopify, self.nautical, self.logger, mappings).import_products()

    def sync_inventory(self, dry_run: bool = False) -> SyncResult:
        return self.inventory_service().sync_inventory(dry_run=dry_run)

    def sync_orders(self, since: Optional[datetime] = None) -> SyncResult:
        return self.order_service().sync_orders(since)

    def setup_webhooks(self, callback_url: Optional[str] = None) -> SyncResult:
        callback_url = callback_url or self.config.env.webhook_callback_url
        if not callback_url:
            raise ConfigError("No webhook callback URL configured")
        return WebhookSetupService(self.shopify, self.logger).setup_webhooks(callback_url)

    def build_router(self, logger: Optional[SyncLogger] = None) -> WebhookRouter:
        """Build a router for one webhook delivery."""
        logger = logger or self.logger
        return WebhookRouter(
            self.nautical,
            logger,
            mappings=load_attribute_mappings(self.config),
            order_sync=OrderSyncService(self.shopify, self.nautical, logger),
            inventory_sync=_DeferredInventorySync(self, logger),
        )

    def test_connections(self) -> Dict[str, dict]:
        """Test connectivity to Shopify and Nautical Commerce."""
        self.logger.info("Testing API connections...")

        results = {
            "shopify": {"success": False, "error": None},
            "nautical": {"success": False, "error": None}
        }

        try:
            name = self.shopify.get_shop_name()
            results["shopify"]["success"] = True
            self.logger.info("Shopify connection successful", shop=name)
        except Exception as e:
            results["shopify"]["error"] = str(e)
            self.logger.error("Shopify connection failed", error=e)

        try:
            self.nautical.find_product_by_external_id("connection-test")
            results["nautical"]["success"] = True
            self.logger.info("Nautical connection successful", tenant=self.nautical.tenant_id)
        except Exception as e:
            results["nautical"]["error"] = str(e)
            self.logger.error("Nautical connection failed", error=e)

        return results

    def close(self):
        self.shopify.close()
        self.nautical.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
