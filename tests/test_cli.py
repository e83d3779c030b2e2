"""Tests for the click CLI."""

import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock

from nautical_sync import cli as cli_module
from nautical_sync.models.sync_result import SyncResult
from nautical_sync.utils.exceptions import ConfigError


@pytest.fixture
def service(monkeypatch):
    service = MagicMock()
    service.__enter__.return_value = service
    service.__exit__.return_value = False
    monkeypatch.setattr(cli_module, "SyncService", lambda: service)
    return service


def run(*args):
    return CliRunner().invoke(cli_module.cli, list(args))


def test_import_products_success(service):
    result = SyncResult(operation="product_import", total_items=2, created_count=2)
    service.import_products.return_value = result

    outcome = run("import-products")

    assert outcome.exit_code == 0
    assert "product_import completed successfully" in outcome.output
    assert "Created:        2" in outcome.output


def test_failures_exit_non_zero(service):
    result = SyncResult(operation="order_sync", total_items=1)
    result.add_error("gid://shopify/Order/1", "APIError", "down")
    service.sync_orders.return_value = result

    outcome = run("sync-orders", "--since", "2024-01-15")

    assert outcome.exit_code == 1
    assert "gid://shopify/Order/1: down" in outcome.output
    since = service.sync_orders.call_args[0][0]
    assert (since.year, since.month, since.day) == (2024, 1, 15)


def test_sync_inventory_dry_run(service):
    result = SyncResult(operation="inventory_sync", total_items=1, skipped_count=1)
    result.metadata["updates"] = [
        {"sku": "A", "source_quantity": 5, "target_quantity": 8, "resolved_quantity": 5}
    ]
    service.sync_inventory.return_value = result

    outcome = run("sync-inventory", "--dry-run")

    assert outcome.exit_code == 0
    assert "DRY RUN" in outcome.output
    assert "A: Shopify 5 / Nautical 8" in outcome.output
    service.sync_inventory.assert_called_once_with(dry_run=True)


def test_config_error(service):
    service.setup_webhooks.side_effect = ConfigError("No webhook callback URL configured")

    outcome = run("setup-webhooks")

    assert outcome.exit_code == 1
    assert "No webhook callback URL configured" in outcome.output


def test_test_connection(service):
    service.test_connections.return_value = {
        "shopify": {"success": True, "error": None},
        "nautical": {"success": False, "error": "Unauthorized"},
    }

    outcome = run("test-connection")

    assert outcome.exit_code == 1
    assert "Connection failed: Unauthorized" in outcome.output
