"""Routing of inbound Shopify webhook events.

Every event moves through RECEIVED -> CLASSIFIED -> UPSERTED | DELETED |
IGNORED -> ACKNOWLEDGED. Unsupported topics are acknowledged as IGNORED and
never raise. A handler error aborts only that event and propagates to the
host so Shopify redelivers it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .field_mapper import map_product
from .product_import import upsert_product
from ..models.mapping import AttributeMapping
from ..models.nodes import graphql_id
from ..models.order import SourceOrder
from ..models.product import SourceProduct

TOPIC_HEADER = "x-shopify-topic"

PRODUCT_UPSERT_TOPICS = ("products/create", "products/update")
PRODUCT_DELETE_TOPIC = "products/delete"
ORDER_TOPICS = ("orders/create", "orders/updated", "orders/paid")
INVENTORY_TOPIC = "inventory_levels/update"


class WebhookState(str, Enum):
    RECEIVED = "RECEIVED"
    CLASSIFIED = "CLASSIFIED"
    UPSERTED = "UPSERTED"
    DELETED = "DELETED"
    IGNORED = "IGNORED"
    ACKNOWLEDGED = "ACKNOWLEDGED"


@dataclass
class WebhookOutcome:
    """What happened to one webhook event."""

    topic: Optional[str]
    state: WebhookState = WebhookState.RECEIVED
    action: Optional[str] = None
    entity_id: Optional[str] = None
    message: str = ""
    history: List[WebhookState] = field(default_factory=list)

    def __post_init__(self):
        if not self.history:
            self.history.append(self.state)

    def transition(self, state: WebhookState, message: Optional[str] = None):
        self.state = state
        self.history.append(state)
        if message is not None:
            self.message = message

    @property
    def result_state(self) -> WebhookState:
        """The UPSERTED/DELETED/IGNORED state the event resolved to."""
        for state in reversed(self.history):
            if state in (WebhookState.UPSERTED, WebhookState.DELETED, WebhookState.IGNORED):
                return state
        return self.state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "state": self.state.value,
            "result": self.result_state.value,
            "action": self.action,
            "entity_id": self.entity_id,
            "message": self.message,
            "history": [state.value for state in self.history],
        }


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def unwrap_entity(body: Any) -> Dict[str, Any]:
    """Return the entity of a ``{"data": entity}`` body, or the bare body."""
    if not isinstance(body, dict):
        return {}
    data = body.get("data")
    if isinstance(data, dict):
        return data
    return body


class WebhookRouter:
    """Classify webhook events by topic and dispatch them."""

    def __init__(
        self,
        nautical_client,
        logger,
        mappings: Sequence[AttributeMapping] = (),
        order_sync=None,
        inventory_sync=None
    ):
        """
        Args:
            nautical_client: Target platform client
            logger: ``SyncLogger`` collaborator
            mappings: Attribute mapping table for product events
            order_sync: ``OrderSyncService``; order topics are ignored without it
            inventory_sync: ``InventorySyncService``; inventory topics are ignored without it
        """
        self.nautical = nautical_client
        self.logger = logger
        self.mappings = list(mappings)
        self.order_sync = order_sync
        self.inventory_sync = inventory_sync

        self._handlers: Dict[str, Callable[[Dict[str, Any], WebhookOutcome], None]] = {}
        for topic in PRODUCT_UPSERT_TOPICS:
            self._handlers[topic] = self._handle_product_upsert
        self._handlers[PRODUCT_DELETE_TOPIC] = self._handle_product_delete
        if order_sync is not None:
            for topic in ORDER_TOPICS:
                self._handlers[topic] = self._handle_order
        if inventory_sync is not None:
            self._handlers[INVENTORY_TOPIC] = self._handle_inventory

    @property
    def supported_topics(self) -> List[str]:
        return sorted(self._handlers)

    def route(self, headers: Mapping[str, str], body: Any) -> WebhookOutcome:
        """
        Process one webhook delivery.

        Raises:
            Exception: Whatever the topic handler raised; the event is not
                acknowledged and should be redelivered.
        """
        topic = get_header(headers, TOPIC_HEADER)
        outcome = WebhookOutcome(topic=topic)
        entity = unwrap_entity(body)

        handler = self._handlers.get(topic) if topic else None
        if handler is None:
            outcome.transition(WebhookState.IGNORED, f"Ignoring unsupported event type: {topic}")
            self.logger.info(outcome.message, topic=topic)
            outcome.transition(WebhookState.ACKNOWLEDGED)
            self.logger.metric("webhook.processed", 1, topic=topic, state=WebhookState.IGNORED.value)
            return outcome

        outcome.transition(WebhookState.CLASSIFIED)
        try:
            handler(entity, outcome)
        except Exception as e:
            self.logger.error(
                f"Failed to process {topic} event",
                error=e,
                operation="webhook",
                topic=topic,
                entity_id=outcome.entity_id or entity.get("id")
            )
            self.logger.metric("webhook.failed", 1, topic=topic)
            raise

        outcome.transition(WebhookState.ACKNOWLEDGED)
        self.logger.info(
            f"Successfully processed {topic} event",
            topic=topic,
            entity_id=outcome.entity_id,
            result=outcome.result_state.value
        )
        self.logger.metric("webhook.processed", 1, topic=topic, state=outcome.result_state.value)
        return outcome

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_product_upsert(self, entity: Dict[str, Any], outcome: WebhookOutcome) -> None:
        source_product = SourceProduct.from_node(entity)
        outcome.entity_id = source_product.id

        product = map_product(source_product, self.mappings)
        action, ref = upsert_product(self.nautical, product, self.logger)

        outcome.action = action.value
        outcome.transition(WebhookState.UPSERTED, f"Product {action.value.lower()}d: {ref.id}")

    def _handle_product_delete(self, entity: Dict[str, Any], outcome: WebhookOutcome) -> None:
        external_id = graphql_id(entity, "Product")
        if external_id is None:
            raise ValueError("Product delete payload has no id")
        outcome.entity_id = external_id

        existing = self.nautical.find_product_by_external_id(external_id)
        if existing is None:
            outcome.action = "NONE"
            outcome.transition(WebhookState.DELETED, "Product not found")
            self.logger.info("Nothing to delete in Nautical", external_id=external_id)
            return

        deleted_id = self.nautical.delete_product(existing.id)
        outcome.action = "DELETE"
        outcome.transition(WebhookState.DELETED, f"Product deleted: {deleted_id}")
        self.logger.info("Deleted product", external_id=external_id, product_id=deleted_id)

    def _handle_order(self, entity: Dict[str, Any], outcome: WebhookOutcome) -> None:
        source_order = SourceOrder.from_node(entity)
        outcome.entity_id = source_order.id

        reconciliation = self.order_sync.sync_order(source_order)
        outcome.action = reconciliation.action.value
        outcome.transition(WebhookState.UPSERTED, f"Order {reconciliation.action.value}")

    def _handle_inventory(self, entity: Dict[str, Any], outcome: WebhookOutcome) -> None:
        item_id = entity.get("inventory_item_id")
        outcome.entity_id = str(item_id) if item_id is not None else None

        result = self.inventory_sync.sync_inventory()
        outcome.action = "RECONCILE"
        outcome.transition(
            WebhookState.UPSERTED,
            f"Inventory reconciled: {result.updated_count} updated, {result.failed_count} failed"
        )
