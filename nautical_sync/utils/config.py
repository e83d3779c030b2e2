"""Configuration management using pydantic-settings.

Secrets and per-deployment values come from the environment (or ``.env``);
tuning knobs come from ``config/config.yml``.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError
from ..models.mapping import AttributeMapping, parse_attribute_mappings

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yml"


class HTTPConfig(BaseModel):
    """Outbound GraphQL transport."""
    timeout: float = 30
    page_size: int = 50


class RetryConfig(BaseModel):
    """Backoff for mutations and page fetches."""
    max_attempts: int = 3
    base_delay_ms: int = 1000


class ShopifyConfig(BaseModel):
    api_version: str = "2024-01"


class InventoryConfig(BaseModel):
    # "min" or "source"
    policy: str = "min"


class OrdersConfig(BaseModel):
    lookback_hours: int = 24


class MappingConfig(BaseModel):
    """Where the attribute mapping table lives when ATTRIBUTE_MAPPING is unset."""
    file: Optional[str] = None


class LogFiles(BaseModel):
    sync: str = "logs/sync.log"
    webhook: str = "logs/webhook.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LogFiles = LogFiles()


class WebhookConfig(BaseModel):
    validate_signature: bool = True


class SchedulerConfig(BaseModel):
    """APScheduler job options."""
    timezone: str = "UTC"
    max_instances: int = 1
    coalesce: bool = True
    misfire_grace_time: int = 300
    run_on_startup: bool = True


class YAMLConfig(BaseModel):
    """Shape of ``config/config.yml``; every section is optional."""
    http: HTTPConfig = HTTPConfig()
    retry: RetryConfig = RetryConfig()
    shopify: ShopifyConfig = ShopifyConfig()
    inventory: InventoryConfig = InventoryConfig()
    orders: OrdersConfig = OrdersConfig()
    mapping: MappingConfig = MappingConfig()
    logging: LoggingConfig = LoggingConfig()
    webhook: WebhookConfig = WebhookConfig()
    scheduler: SchedulerConfig = SchedulerConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Shopify (source)
    shopify_shop_url: str = Field(..., description="Shop domain, e.g. my-store.myshopify.com")
    shopify_access_token: str = Field(..., description="Shopify Admin API access token")
    shopify_webhook_secret: str = Field(default="", description="Shared secret for webhook HMACs")

    # Nautical Commerce (target)
    nautical_api_url: str = Field(..., description="Nautical Commerce GraphQL endpoint")
    nautical_api_key: str = Field(..., description="Nautical Commerce API key")
    nautical_tenant_id: str = Field(..., description="Sent as x-nautical-tenant")

    # JSON encoded {"mappings": [...]}, as saved by the mapping UI
    attribute_mapping: Optional[str] = Field(default=None, description="Attribute mapping JSON")
    webhook_callback_url: Optional[str] = Field(default=None, description="Public URL of /webhooks/shopify")

    environment: str = Field(default="development", description="development or production")
    log_level: Optional[str] = Field(default=None, description="Overrides logging.level")
    inventory_sync_interval_minutes: int = Field(default=60)
    order_sync_interval_minutes: int = Field(default=15)
    port: int = Field(default=8000, description="Webhook server port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


class AppConfig:
    """Environment settings plus the YAML tuning sections."""

    def __init__(self, config_path: Optional[Path] = None):
        self.env = Settings()
        self.yaml = YAMLConfig(**_read_yaml(config_path or DEFAULT_CONFIG_PATH))

        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def http(self) -> HTTPConfig:
        return self.yaml.http

    @property
    def retry(self) -> RetryConfig:
        return self.yaml.retry

    @property
    def shopify(self) -> ShopifyConfig:
        return self.yaml.shopify

    @property
    def inventory(self) -> InventoryConfig:
        return self.yaml.inventory

    @property
    def orders(self) -> OrdersConfig:
        return self.yaml.orders

    @property
    def mapping(self) -> MappingConfig:
        return self.yaml.mapping

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def webhook(self) -> WebhookConfig:
        return self.yaml.webhook

    @property
    def scheduler(self) -> SchedulerConfig:
        return self.yaml.scheduler

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()


def load_attribute_mappings(config: AppConfig) -> List[AttributeMapping]:
    """
    Read the attribute mapping table for one flow execution.

    ``ATTRIBUTE_MAPPING`` wins over ``mapping.file``. No configuration at
    all means no mappings.

    Raises:
        ConfigError: If the mapping JSON is malformed or the file is missing.
    """
    raw = config.env.attribute_mapping
    if raw is None and config.mapping.file:
        path = Path(config.mapping.file)
        if not path.exists():
            raise ConfigError(
                f"Attribute mapping file not found: {path}",
                details={"path": str(path)}
            )
        raw = path.read_text(encoding="utf-8")

    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Attribute mapping is not valid JSON: {e}", details={"error": str(e)})

    return parse_attribute_mappings(data)
