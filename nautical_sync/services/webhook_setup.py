"""Registration of the Shopify webhooks this sync listens to."""

from typing import Sequence

from ..models.sync_result import SyncResult

DEFAULT_WEBHOOK_TOPICS = (
    "products/create",
    "products/update",
    "products/delete",
    "inventory_levels/update",
    "orders/create",
    "orders/updated",
)


class WebhookSetupService:
    """Subscribe a callback URL to every topic the router handles."""

    def __init__(self, shopify_client, logger):
        self.shopify = shopify_client
        self.logger = logger

    def setup_webhooks(self, callback_url: str, topics: Sequence[str] = DEFAULT_WEBHOOK_TOPICS) -> SyncResult:
        result = SyncResult(operation="setup_webhooks", total_items=len(topics))
        subscriptions = {}

        for topic in topics:
            try:
                subscriptions[topic] = self.shopify.register_webhook(topic, callback_url)
                result.created_count += 1
            except Exception as e:
                self.logger.error("Failed to register webhook", error=e, operation="register_webhook", topic=topic)
                result.record_failure(topic, e)

        result.metadata["subscriptions"] = subscriptions
        result.finalize()
        self.logger.info(
            f"Set up {result.created_count} webhooks",
            callback_url=callback_url,
            failed=result.failed_count
        )
        return result
