"""Base GraphQL client with error classification and retry."""

import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

import httpx

from ..models.nodes import connection_nodes
from ..utils.exceptions import (
    APIError,
    AuthenticationError,
    GraphQLError,
    RateLimitError,
    ValidationError,
)
from ..utils.logger import SyncLogger, get_api_logger
from ..utils.retry import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_ATTEMPTS, with_retry


class BaseClient:
    """Base HTTP client with shared headers and lifecycle."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL for API requests
            headers: Optional default headers
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")

        default_headers = {
            "Content-Type": "application/json",
            "User-Agent": "Shopify-Nautical-Sync/1.0"
        }

        if headers:
            default_headers.update(headers)

        self.client = httpx.Client(
            base_url=self.base_url,
            headers=default_headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport
        )

    def post(self, endpoint: str, **kwargs) -> httpx.Response:
        """Make POST request."""
        return self.client.post(endpoint, **kwargs)

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def raise_for_user_errors(payload: Optional[Dict[str, Any]], operation: str) -> Dict[str, Any]:
    """
    Check an operation payload for business-level errors.

    Both ``userErrors`` and ``errors`` sub-arrays count.

    Raises:
        ValidationError: If either array is non-empty.
    """
    if payload is None:
        raise ValidationError(f"{operation} returned no payload")

    user_errors: List[Dict[str, Any]] = payload.get("userErrors") or payload.get("errors") or []
    if user_errors:
        messages = "; ".join(
            f"{e.get('field')}: {e.get('message')}" if e.get("field") else str(e.get("message"))
            for e in user_errors
        )
        raise ValidationError(f"{operation} rejected: {messages}", user_errors=user_errors)
    return payload


class GraphQLClient(BaseClient):
    """GraphQL transport shared by the Shopify and Nautical clients."""

    platform = "GraphQL"
    api_error_cls: Type[APIError] = APIError

    def __init__(
        self,
        base_url: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        logger: Optional[SyncLogger] = None,
        timeout: float = 30,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        super().__init__(base_url=base_url, headers=headers, timeout=timeout, transport=transport)
        self.endpoint = endpoint
        self.logger = logger or SyncLogger(get_api_logger())
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Low-level GraphQL helper
    # ------------------------------------------------------------------

    def _check_response(self, response: httpx.Response, operation: str) -> Dict[str, Any]:
        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                f"{self.platform} rejected credentials for {operation} (HTTP {status})",
                details={"status": status}
            )
        if status == 429:
            raise RateLimitError(
                f"{self.platform} rate limited {operation}",
                details={"status": status, "retry_after": response.headers.get("Retry-After")}
            )
        if status >= 500:
            raise self.api_error_cls(
                f"{self.platform} {operation} failed (HTTP {status})",
                details={"status": status, "response": response.text[:500]}
            )
        if status != 200:
            raise GraphQLError(
                f"{self.platform} rejected {operation} (HTTP {status})",
                details={"status": status, "response": response.text[:500]}
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise GraphQLError(
                f"{self.platform} {operation} returned a body that is not a GraphQL response",
                details={"status": status, "response": response.text[:500]}
            )

        errors = body.get("errors")
        if errors:
            if any((e.get("extensions") or {}).get("code") == "THROTTLED" for e in errors):
                raise RateLimitError(f"{self.platform} throttled {operation}", details={"errors": errors})
            raise GraphQLError(
                f"{self.platform} {operation} returned errors: {errors[0].get('message')}",
                errors=errors
            )
        return body.get("data") or {}

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None, operation: str = "query") -> Dict[str, Any]:
        """
        Execute a GraphQL operation once and return the ``data`` dict.

        Raises:
            AuthenticationError: On HTTP 401/403
            RateLimitError: On HTTP 429 or a THROTTLED error
            GraphQLError: On top-level GraphQL errors or other 4xx
            APIError: On transport failures and 5xx
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        self.logger.debug(f"{self.platform} {operation}", variables=variables)
        try:
            response = self.post(self.endpoint, json=payload)
        except httpx.TransportError as e:
            raise self.api_error_cls(
                f"{self.platform} {operation} transport error: {e}",
                details={"error": str(e)}
            )
        return self._check_response(response, operation)

    def _with_retry(self, operation: Callable[[], Any], name: str) -> Any:
        return with_retry(
            operation,
            self.logger,
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            operation_name=name,
            sleep=self.sleep,
        )

    def mutate(self, query: str, variables: Dict[str, Any], result_key: str) -> Dict[str, Any]:
        """Run a mutation with retry and return its checked payload."""
        data = self._with_retry(
            lambda: self.execute(query, variables, operation=result_key),
            f"{self.platform} {result_key}"
        )
        return raise_for_user_errors(data.get(result_key), result_key)

    def paginate(
        self,
        query: str,
        connection_key: str,
        variables: Optional[Dict[str, Any]] = None,
        page_size: int = 50
    ) -> Iterator[Dict[str, Any]]:
        """
        Yield every node of a cursor-paginated connection.

        The query must accept ``$first`` and ``$after`` and select
        ``pageInfo { hasNextPage endCursor }``. Each page fetch is retried.
        """
        cursor = None
        page = 0
        while True:
            page_vars = dict(variables or {})
            page_vars.update({"first": page_size, "after": cursor})
            data = self._with_retry(
                lambda: self.execute(query, page_vars, operation=connection_key),
                f"{self.platform} {connection_key} page {page + 1}"
            )
            connection = data.get(connection_key) or {}
            nodes = connection_nodes(connection)
            page += 1
            self.logger.debug(
                f"Fetched {connection_key} page",
                page=page,
                count=len(nodes)
            )
            yield from nodes

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            next_cursor = page_info.get("endCursor")
            if not next_cursor or next_cursor == cursor:
                raise self.api_error_cls(
                    f"{self.platform} {connection_key} page {page} has a next page but no new cursor",
                    details={"page": page, "end_cursor": next_cursor}
                )
            cursor = next_cursor
