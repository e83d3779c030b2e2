"""Nautical Commerce GraphQL client, the target platform."""

from typing import Any, Dict, List, Optional

import httpx

from .base_client import GraphQLClient
from ..models.inventory import InventoryItem
from ..models.nodes import connection_nodes
from ..models.order import Order, TargetOrderRef
from ..models.product import Product, TargetProductRef
from ..utils.config import AppConfig, get_config
from ..utils.exceptions import NauticalAPIError
from ..utils.logger import SyncLogger

TENANT_HEADER = "x-nautical-tenant"


class NauticalClient(GraphQLClient):
    """Client for the Nautical Commerce GraphQL API."""

    platform = "Nautical"
    api_error_cls = NauticalAPIError

    def __init__(self, api_url: str, api_key: str, tenant_id: str, page_size: int = 50, **kwargs):
        """
        Args:
            api_url: Full GraphQL endpoint URL
            api_key: Bearer token
            tenant_id: Tenant sent in ``x-nautical-tenant`` on every request
            page_size: Nodes requested per page
            **kwargs: Passed through to ``GraphQLClient``
        """
        url = httpx.URL(api_url)
        endpoint = url.raw_path.decode("ascii") or "/"
        super().__init__(
            base_url=f"{url.scheme}://{url.netloc.decode('ascii')}",
            endpoint=endpoint,
            headers={
                "Authorization": f"Bearer {api_key}",
                TENANT_HEADER: tenant_id,
            },
            **kwargs
        )
        self.tenant_id = tenant_id
        self.page_size = page_size

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None, logger: Optional[SyncLogger] = None) -> "NauticalClient":
        """Build a client from application configuration."""
        config = config or get_config()
        return cls(
            api_url=config.env.nautical_api_url,
            api_key=config.env.nautical_api_key,
            tenant_id=config.env.nautical_tenant_id,
            page_size=config.http.page_size,
            logger=logger,
            timeout=config.http.timeout,
            max_attempts=config.retry.max_attempts,
            base_delay_ms=config.retry.base_delay_ms,
        )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    _QUERY_FIND_PRODUCT = """
    query findProductByExternalId($externalId: String!) {
      products(filter: { externalId: { eq: $externalId } }, first: 1) {
        nodes {
          id
          name
        }
      }
    }
    """

    def find_product_by_external_id(self, external_id: str) -> Optional[TargetProductRef]:
        """Return the first product whose external id matches, or None. Not retried."""
        data = self.execute(self._QUERY_FIND_PRODUCT, {"externalId": external_id}, operation="findProduct")
        nodes = connection_nodes(data.get("products"))
        return TargetProductRef.from_node(nodes[0]) if nodes else None

    _MUTATION_PRODUCT_CREATE = """
    mutation productCreate($input: ProductCreateInput!) {
      productCreate(input: $input) {
        product {
          id
          name
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def create_product(self, product: Product) -> TargetProductRef:
        """Create *product*, stamped with its Shopify id as external id."""
        payload = self.mutate(self._MUTATION_PRODUCT_CREATE, {"input": product.to_input()}, "productCreate")
        return TargetProductRef.from_node(payload["product"])

    _MUTATION_PRODUCT_UPDATE = """
    mutation productUpdate($id: ID!, $input: ProductUpdateInput!) {
      productUpdate(id: $id, input: $input) {
        product {
          id
          name
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def update_product(self, product_id: str, product: Product) -> TargetProductRef:
        """Overwrite product *product_id* with *product*."""
        payload = self.mutate(
            self._MUTATION_PRODUCT_UPDATE,
            {"id": product_id, "input": product.to_input()},
            "productUpdate"
        )
        return TargetProductRef.from_node(payload["product"])

    _MUTATION_PRODUCT_DELETE = """
    mutation productDelete($id: ID!) {
      productDelete(id: $id) {
        deletedProductId
        userErrors {
          field
          message
        }
      }
    }
    """

    def delete_product(self, product_id: str) -> str:
        """Delete product *product_id* and return the deleted id."""
        payload = self.mutate(self._MUTATION_PRODUCT_DELETE, {"id": product_id}, "productDelete")
        return payload.get("deletedProductId") or product_id

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    _QUERY_INVENTORY = """
    query getInventory($first: Int!, $after: String) {
      products(first: $first, after: $after) {
        nodes {
          id
          externalId
          name
          variants {
            nodes {
              id
              sku
              inventoryQuantity
              externalId
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
        """Fetch one inventory item per variant of every product."""
        items = []
        for product in self.paginate(self._QUERY_INVENTORY, "products", page_size=self.page_size):
            for variant in connection_nodes(product.get("variants")):
                items.append(InventoryItem.from_nautical_variant(variant))
        self.logger.info("Fetched inventory from Nautical", count=len(items))
        return items

    _MUTATION_VARIANT_QUANTITY = """
    mutation variantUpdate($variantId: ID!, $quantity: Int!) {
      variantUpdate(id: $variantId, input: { inventoryQuantity: $quantity }) {
        variant {
          id
          sku
          inventoryQuantity
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def update_variant_quantity(self, variant_id: str, quantity: int) -> Dict[str, Any]:
        """Set the inventory quantity of variant *variant_id*."""
        payload = self.mutate(
            self._MUTATION_VARIANT_QUANTITY,
            {"variantId": variant_id, "quantity": quantity},
            "variantUpdate"
        )
        return payload.get("variant") or {}

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    _QUERY_FIND_ORDER = """
    query findOrderByExternalId($externalId: String!) {
      orders(filter: { externalId: { eq: $externalId } }, first: 1) {
        nodes {
          id
          status
          createdAt
        }
      }
    }
    """

    def find_order_by_external_id(self, external_id: str) -> Optional[TargetOrderRef]:
        """Return the first order whose external id matches, or None. Not retried."""
        data = self.execute(self._QUERY_FIND_ORDER, {"externalId": external_id}, operation="findOrder")
        nodes = connection_nodes(data.get("orders"))
        return TargetOrderRef.from_node(nodes[0]) if nodes else None

    _MUTATION_ORDER_CREATE = """
    mutation orderCreate($input: OrderCreateInput!) {
      orderCreate(input: $input) {
        order {
          id
          status
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def create_order(self, order: Order) -> TargetOrderRef:
        payload = self.mutate(self._MUTATION_ORDER_CREATE, {"input": order.to_input()}, "orderCreate")
        return TargetOrderRef.from_node(payload["order"])

    _MUTATION_ORDER_UPDATE = """
    mutation orderUpdate($id: ID!, $input: OrderUpdateInput!) {
      orderUpdate(id: $id, input: $input) {
        order {
          id
          status
        }
        userErrors {
          field
          message
        }
      }
    }
    """

    def update_order(self, order_id: str, order: Order) -> TargetOrderRef:
        payload = self.mutate(
            self._MUTATION_ORDER_UPDATE,
            {"id": order_id, "input": order.to_input()},
            "orderUpdate"
        )
        return TargetOrderRef.from_node(payload["order"])
