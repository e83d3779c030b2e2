"""Bulk product import from Shopify into Nautical Commerce.

Flow:
  1. Fetch every product (with variants) from Shopify, page by page.
  2. Map each product through the attribute mapping table.
  3. Upsert each product by external id; one failure never stops the batch.
"""

from enum import Enum
from typing import Sequence, Tuple

from .field_mapper import map_product
from ..models.mapping import AttributeMapping
from ..models.product import Product, TargetProductRef
from ..models.sync_result import SyncResult


class ProductAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"


def upsert_product(nautical_client, product: Product, logger) -> Tuple[ProductAction, TargetProductRef]:
    """
    Create or update *product* keyed by its external id.

    Safe to repeat: a second delivery of the same product finds the record
    the first one created and updates it.
    """
    existing = nautical_client.find_product_by_external_id(product.external_id)
    if existing is not None:
        updated = nautical_client.update_product(existing.id, product)
        logger.info("Updated product", external_id=product.external_id, product_id=updated.id)
        return ProductAction.UPDATE, updated

    created = nautical_client.create_product(product)
    logger.info("Created product", external_id=product.external_id, product_id=created.id)
    return ProductAction.CREATE, created


class ProductImportService:
    """Import all Shopify products into Nautical Commerce."""

    def __init__(self, shopify_client, nautical_client, logger, mappings: Sequence[AttributeMapping] = ()):
        self.shopify = shopify_client
        self.nautical = nautical_client
        self.logger = logger
        self.mappings = list(mappings)

    def import_products(self) -> SyncResult:
        result = SyncResult(operation="product_import")
        self.logger.info("Starting product import from Shopify", mappings=len(self.mappings))

        try:
            source_products = self.shopify.fetch_products()
        except Exception as e:
            self.logger.error("Product import failed fetching Shopify products", error=e, operation="fetch_products")
            raise

        result.total_items = len(source_products)

        for source_product in source_products:
            try:
                product = map_product(source_product, self.mappings)
                action, _ = upsert_product(self.nautical, product, self.logger)
                if action is ProductAction.CREATE:
                    result.created_count += 1
                else:
                    result.updated_count += 1
            except Exception as e:
                self.logger.error(
                    "Failed to import product",
                    error=e,
                    operation="import_product",
                    external_id=source_product.id,
                    title=source_product.title
                )
                result.record_failure(source_product.id, e)

        result.finalize()
        self.logger.metric("products.imported", result.created_count + result.updated_count)
        self.logger.info(
            "Product import finished",
            created=result.created_count,
            updated=result.updated_count,
            failed=result.failed_count,
            duration=f"{result.duration:.2f}s"
        )
        return result
