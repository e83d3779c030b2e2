"""Operator CLI: run any flow by hand and print its result."""

import sys
from datetime import datetime, timezone
from typing import Callable, Optional

import click

from .models.sync_result import SyncResult
from .services.sync_service import SyncService
from .utils.config import get_config, load_attribute_mappings
from .utils.exceptions import ConfigError

RULE = "─" * 60
MAX_LISTED_ERRORS = 10


def _print_result(result: SyncResult):
    """Display a SyncResult the same way for every command."""
    click.echo()
    click.echo(RULE)
    if result.success:
        click.echo(click.style(f"✓ {result.operation} completed successfully!", fg="green", bold=True))
    else:
        click.echo(click.style(f"✗ {result.operation} completed with errors", fg="red", bold=True))
    click.echo()

    rows = (
        ("Total items", result.total_items, None),
        ("Created", result.created_count, "green"),
        ("Updated", result.updated_count, "green"),
        ("Skipped", result.skipped_count, None),
        ("Failed", result.failed_count, "red" if result.failed_count else None),
    )
    for label, value, colour in rows:
        click.echo(click.style(f"{label + ':':<16}{value}", fg=colour))
    click.echo(f"{'Duration:':<16}{result.duration:.2f}s")

    if result.errors:
        click.echo()
        click.echo(click.style(f"Errors ({result.failed_count}):", fg="red", bold=True))
        for number, error in enumerate(result.errors[:MAX_LISTED_ERRORS], 1):
            click.echo(f"  {number}. {error.entity_id}: {error.message}")
        hidden = result.failed_count - MAX_LISTED_ERRORS
        if hidden > 0:
            click.echo(f"  ... and {hidden} more, see {get_config().logging.files.sync}")

    click.echo(RULE)


def _run(operation: Callable[[SyncService], SyncResult]):
    """Run *operation* against a fresh SyncService and exit with its status."""
    try:
        with SyncService() as service:
            result = operation(service)
    except ConfigError as e:
        click.echo(click.style(f"✗ Configuration error: {e.message}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"✗ {type(e).__name__}: {e}", fg="red"), err=True)
        sys.exit(1)

    _print_result(result)
    sys.exit(0 if result.success else 1)


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Shopify → Nautical Commerce Synchronization CLI.

    Import products and keep inventory and orders in sync.
    """
    pass


@cli.command("import-products")
def import_products():
    """Import every Shopify product into Nautical Commerce (upsert by external id)."""
    click.echo("Importing products from Shopify...")
    _run(lambda service: service.import_products())


@cli.command("sync-inventory")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Compute corrections without writing them"
)
def sync_inventory(dry_run: bool):
    """Reconcile Nautical stock against Shopify stock."""
    if dry_run:
        click.echo(click.style("🔍 DRY RUN MODE - No changes will be made", fg="yellow", bold=True))

    def operation(service):
        result = service.sync_inventory(dry_run=dry_run)
        for update in result.metadata.get("updates", [])[:20]:
            click.echo(
                f"  {update['sku']}: Shopify {update['source_quantity']} / "
                f"Nautical {update['target_quantity']} → {update['resolved_quantity']}"
            )
        return result

    _run(operation)


@cli.command("sync-orders")
@click.option(
    "--since",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Only orders created at or after this UTC time (default: lookback window)"
)
def sync_orders(since: Optional[datetime]):
    """Create or update recent Shopify orders in Nautical Commerce."""
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    _run(lambda service: service.sync_orders(since))


@cli.command("setup-webhooks")
@click.option("--callback-url", default=None, help="Public URL of /webhooks/shopify")
def setup_webhooks(callback_url: Optional[str]):
    """Register the Shopify webhooks this service handles."""
    _run(lambda service: service.setup_webhooks(callback_url))


@cli.command("test-connection")
def test_connection():
    """Check both sets of credentials with one cheap read per platform."""
    click.echo("Testing API connections...")
    click.echo()

    try:
        with SyncService() as service:
            results = service.test_connections()
    except Exception as e:
        click.echo(click.style(f"✗ Error: {e}", fg="red"), err=True)
        sys.exit(1)

    labels = {"shopify": "Shopify Admin API", "nautical": "Nautical Commerce API"}
    for key, label in labels.items():
        if results[key]["success"]:
            click.echo(f"{label}: " + click.style("✓ connected", fg="green"))
        else:
            click.echo(f"{label}: " + click.style(f"✗ Connection failed: {results[key]['error']}", fg="red"))

    click.echo()
    if all(r["success"] for r in results.values()):
        click.echo(click.style("✓ All connections successful!", fg="green", bold=True))
        sys.exit(0)
    click.echo(click.style("⚠ Some connections failed", fg="yellow", bold=True))
    sys.exit(1)


def _masked(secret: str) -> str:
    return f"{secret[:6]}..." if secret else "(not set)"


@cli.command("config-info")
def config_info():
    """Print the effective configuration, secrets masked."""
    try:
        config = get_config()
        mappings = load_attribute_mappings(config)
    except Exception as e:
        click.echo(click.style(f"✗ Error loading config: {e}", fg="red"), err=True)
        sys.exit(1)

    sections = {
        "Environment": {
            "Environment": config.env.environment,
            "Log level": config.logging.level,
        },
        "Shopify": {
            "Shop URL": config.env.shopify_shop_url,
            "API version": config.shopify.api_version,
            "Access token": _masked(config.env.shopify_access_token),
            "Webhook secret": _masked(config.env.shopify_webhook_secret),
        },
        "Nautical Commerce": {
            "API URL": config.env.nautical_api_url,
            "Tenant": config.env.nautical_tenant_id,
            "API key": _masked(config.env.nautical_api_key),
        },
        "Sync": {
            "Page size": config.http.page_size,
            "Stock policy": config.inventory.policy,
            "Order lookback": f"{config.orders.lookback_hours} hours",
            "Retries": f"{config.retry.max_attempts} attempts, {config.retry.base_delay_ms}ms base delay",
            "Mappings": len(mappings),
            "Inventory every": f"{config.env.inventory_sync_interval_minutes} min",
            "Orders every": f"{config.env.order_sync_interval_minutes} min",
        },
    }

    for title, values in sections.items():
        click.echo(click.style(title, bold=True))
        for key, value in values.items():
            click.echo(f"  {key + ':':<17}{value}")
        click.echo()


if __name__ == "__main__":
    cli()
