"""Shopify Admin API client (GraphQL), the source platform."""

from datetime import datetime
from typing import List, Optional

from .base_client import GraphQLClient
from ..models.inventory import InventoryItem
from ..models.order import SourceOrder
from ..models.product import SourceProduct
from ..utils.config import AppConfig, get_config
from ..utils.exceptions import ShopifyAPIError
from ..utils.logger import SyncLogger

# Webhook topic -> GraphQL WebhookSubscriptionTopic enum
WEBHOOK_TOPIC_ENUMS = {
    "products/create": "PRODUCTS_CREATE",
    "products/update": "PRODUCTS_UPDATE",
    "products/delete": "PRODUCTS_DELETE",
    "inventory_levels/update": "INVENTORY_LEVELS_UPDATE",
    "orders/create": "ORDERS_CREATE",
    "orders/updated": "ORDERS_UPDATED",
    "orders/paid": "ORDERS_PAID",
}


class ShopifyClient(GraphQLClient):
    """Client for the Shopify Admin GraphQL API."""

    platform = "Shopify"
    api_error_cls = ShopifyAPIError

    def __init__(self, shop_url: str, access_token: str, api_version: str = "2024-01", page_size: int = 50, **kwargs):
        """
        Args:
            shop_url: Store domain, with or without scheme
            access_token: Admin API access token
            api_version: Admin API version segment
            page_size: Nodes requested per page
            **kwargs: Passed through to ``GraphQLClient``
        """
        if not shop_url.startswith("https://") and not shop_url.startswith("http://"):
            shop_url = f"https://{shop_url}"

        super().__init__(
            base_url=shop_url,
            endpoint=f"/admin/api/{api_version}/graphql.json",
            headers={"X-Shopify-Access-Token": access_token},
            **kwargs
        )
        self.api_version = api_version
        self.page_size = page_size

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None, logger: Optional[SyncLogger] = None) -> "ShopifyClient":
        """Build a client from application configuration."""
        config = config or get_config()
        return cls(
            shop_url=config.env.shopify_shop_url,
            access_token=config.env.shopify_access_token,
            api_version=config.shopify.api_version,
            page_size=config.http.page_size,
            logger=logger,
            timeout=config.http.timeout,
            max_attempts=config.retry.max_attempts,
            base_delay_ms=config.retry.base_delay_ms,
        )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    _QUERY_PRODUCTS = """
    query getProducts($first: Int!, $after: String) {
      products(first: $first, after: $after) {
        edges {
          node {
            id
            title
            handle
            description
            descriptionHtml
            productType
            vendor
            status
            tags
            options {
              id
              name
              values
            }
            variants(first: 100) {
              edges {
                node {
                  id
                  sku
                  price
                  compareAtPrice
                  inventoryQuantity
                  selectedOptions {
                    name
                    value
                  }
                }
              }
            }
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
    """

    def fetch_products(self) -> List[SourceProduct]:
        """Fetch every product with its variants."""
        products = [
            SourceProduct.from_node(node)
            for node in self.paginate(self._QUERY_PRODUCTS, "products", page_size=self.page_size)
        ]
        self.logger.info("Fetched products from Shopify", count=len(products))
        return products

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    _QUERY_INVENTORY = """
    query getInventoryItems($first: Int!, $after: String) {
      inventoryItems(first: $first, after: $after) {
        edges {
          node {
            id
            inventoryLevels(first: 50) {
              edges {
                node {
                  id
                  location {
                    id
                    name
                  }
                  quantities(names: ["available"]) {
                    name
                    quantity
                  }
                }
              }
            }
            variant {
              id
              sku
              product {
                id
                title
              }
            }
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
    """

    def fetch_inventory(self) -> List[InventoryItem]:
        """Fetch every inventory item with its per-location levels."""
        items = [
            InventoryItem.from_shopify_node(node)
            for node in self.paginate(self._QUERY_INVENTORY, "inventoryItems", page_size=self.page_size)
        ]
        self.logger.info("Fetched inventory from Shopify", count=len(items))
        return items

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    _QUERY_ORDERS = """
    query getOrders($first: Int!, $after: String, $query: String) {
      orders(first: $first, after: $after, query: $query) {
        edges {
          node {
            id
            name
            email
            phone
            createdAt
            displayFinancialStatus
            totalPriceSet {
              shopMoney {
                amount
              }
            }
            lineItems(first: 50) {
              edges {
                node {
                  id
                  name
                  quantity
                  originalTotalSet {
                    shopMoney {
                      amount
                    }
                  }
                  variant {
                    id
                    sku
                  }
                }
              }
            }
            shippingAddress {
              firstName
              lastName
              address1
              address2
              city
              province
              zip
              country
              phone
            }
            billingAddress {
              firstName
              lastName
              address1
              address2
              city
              province
              zip
              country
              phone
            }
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
    """

    def fetch_orders(self, created_at_min: datetime) -> List[SourceOrder]:
        """Fetch every order created at or after *created_at_min*."""
        search = f"created_at:>='{created_at_min.isoformat()}'"
        orders = [
            SourceOrder.from_node(node)
            for node in self.paginate(
                self._QUERY_ORDERS, "orders", variables={"query": search}, page_size=self.page_size
            )
        ]
        self.logger.info("Fetched orders from Shopify", count=len(orders), since=created_at_min.isoformat())
        return orders

    # ------------------------------------------------------------------
    # Webhook subscriptions
    # ------------------------------------------------------------------

    _MUTATION_WEBHOOK_CREATE = """
    mutation webhookSubscriptionCreate($topic: WebhookSubscriptionTopic!, $webhookSubscription: WebhookSubscriptionInput!) {
      webhookSubscriptionCreate(topic: $topic, webhookSubscription: $webhookSubscription) {
        webhookSubscription {
          id
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def register_webhook(self, topic: str, callback_url: str) -> str:
        """
        Subscribe *callback_url* to *topic* and return the subscription id.

        Raises:
            ValueError: If the topic is not one the sync handles
            ValidationError: If Shopify rejects the subscription
        """
        topic_enum = WEBHOOK_TOPIC_ENUMS.get(topic)
        if topic_enum is None:
            raise ValueError(f"Unsupported webhook topic: {topic}")

        payload = self.mutate(
            self._MUTATION_WEBHOOK_CREATE,
            {
                "topic": topic_enum,
                "webhookSubscription": {"callbackUrl": callback_url, "format": "JSON"},
            },
            "webhookSubscriptionCreate"
        )
        subscription_id = payload["webhookSubscription"]["id"]
        self.logger.info("Registered Shopify webhook", topic=topic, subscription_id=subscription_id)
        return subscription_id

    _QUERY_SHOP = """
    query getShop {
      shop {
        name
      }
    }
    """

    def get_shop_name(self) -> str:
        """Fetch the shop name; used to check connectivity."""
        data = self.execute(self._QUERY_SHOP, operation="shop")
        return (data.get("shop") or {}).get("name", "")
