"""Shopify webhook signature validation middleware."""

import base64
import hashlib
import hmac
from typing import Optional

from ..utils.config import AppConfig, get_config
from ..utils.exceptions import WebhookValidationError
from ..utils.logger import get_webhook_logger

SIGNATURE_HEADER = "X-Shopify-Hmac-SHA256"


def compute_signature(secret: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 of *body*, as Shopify sends it."""
    return base64.b64encode(
        hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    ).decode("utf-8")


class WebhookValidator:
    """Validates Shopify webhook signatures and shop domains."""

    def __init__(self, secret: str, enabled: bool = True):
        self.secret = secret
        self.validate_enabled = enabled
        self.logger = get_webhook_logger()

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "WebhookValidator":
        config = config or get_config()
        return cls(
            secret=config.env.shopify_webhook_secret,
            enabled=config.webhook.validate_signature
        )

    def validate_signature(self, body: bytes, signature_header: Optional[str]) -> bool:
        """
        Validate the HMAC signature of a webhook body.

        Raises:
            WebhookValidationError: If the header is missing, the secret is
                unset or the signature does not match
        """
        if not self.validate_enabled:
            self.logger.warning("Webhook signature validation is disabled!")
            return True

        if not self.secret:
            raise WebhookValidationError("Webhook secret is not configured")

        if not signature_header:
            raise WebhookValidationError(
                "Missing webhook signature header",
                details={"header": SIGNATURE_HEADER}
            )

        expected_signature = compute_signature(self.secret, body)
        if not hmac.compare_digest(expected_signature, signature_header):
            raise WebhookValidationError(
                "Invalid webhook signature",
                details={"received": signature_header[:10] + "..."}
            )

        self.logger.debug("Webhook signature validated successfully")
        return True

    def validate_shopify_domain(self, shop_domain: Optional[str]) -> bool:
        """
        Check the sending shop domain looks like a Shopify store.

        Raises:
            WebhookValidationError: If the domain is missing or foreign
        """
        if not self.validate_enabled:
            return True

        if not shop_domain:
            raise WebhookValidationError("Missing shop domain in webhook")

        if not shop_domain.endswith(".myshopify.com"):
            raise WebhookValidationError(
                f"Invalid shop domain: {shop_domain}",
                details={"domain": shop_domain}
            )

        return True
