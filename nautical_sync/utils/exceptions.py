"""Custom exception classes for the application."""

from typing import Any, Dict, List, Optional


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class APIError(BaseAppException):
    """Raised when a remote platform call fails in a way worth retrying."""
    pass


class ShopifyAPIError(APIError):
    """Raised when the Shopify Admin API encounters an error."""
    pass


class NauticalAPIError(APIError):
    """Raised when the Nautical Commerce API encounters an error."""
    pass


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded (HTTP 429 or THROTTLED)."""
    pass


class GraphQLError(APIError):
    """Raised when a response carries a top-level GraphQL ``errors`` array."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None, details: dict = None):
        self.errors = errors or []
        details = dict(details or {})
        details.setdefault("errors", self.errors)
        super().__init__(message, details)


class AuthenticationError(BaseAppException):
    """Raised when authentication fails (HTTP 401/403)."""
    pass


class ValidationError(BaseAppException):
    """Raised when a platform rejects a mutation with ``userErrors``."""

    def __init__(self, message: str, user_errors: Optional[List[Dict[str, Any]]] = None, details: dict = None):
        self.user_errors = user_errors or []
        details = dict(details or {})
        details.setdefault("user_errors", self.user_errors)
        super().__init__(message, details)


class RetryExhaustedError(BaseAppException):
    """Raised when every retry attempt of an operation has failed."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None, attempts: int = 0):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(
            message,
            details={"attempts": attempts, "last_error": str(last_error) if last_error else None}
        )


class ConfigError(BaseAppException):
    """Raised when there's a configuration error."""
    pass


class WebhookValidationError(BaseAppException):
    """Raised when webhook signature validation fails."""
    pass
