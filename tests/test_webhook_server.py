"""Tests for the FastAPI webhook server."""

import json

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from nautical_sync.middleware.webhook_validator import SIGNATURE_HEADER, WebhookValidator, compute_signature
from nautical_sync.services.webhook_router import WebhookRouter
from nautical_sync.utils.exceptions import ValidationError
from nautical_sync.webhook_server import create_app

SECRET = "test_secret"
SHOP = "test-shop.myshopify.com"


class FakeService:
    """SyncService stand-in building a router over an in-memory target."""

    def __init__(self, nautical):
        self.nautical = nautical
        self.closed = False

    def build_router(self, logger):
        return WebhookRouter(self.nautical, MagicMock())

    def close(self):
        self.closed = True


@pytest.fixture
def services():
    return []


@pytest.fixture
def client(fake_nautical, services):
    def factory():
        service = FakeService(fake_nautical)
        services.append(service)
        return service

    app = create_app(service_factory=factory, validator=WebhookValidator(SECRET), start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


def post(client, topic, payload, secret=SECRET, shop=SHOP):
    body = json.dumps(payload).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Topic": topic,
        "X-Shopify-Shop-Domain": shop,
        SIGNATURE_HEADER: compute_signature(secret, body),
    }
    return client.post("/webhooks/shopify", content=body, headers=headers)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root(client):
    assert client.get("/").json()["status"] == "running"


def test_product_create(client, fake_nautical, services, shopify_product_node):
    response = post(client, "products/create", {"data": shopify_product_node})

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "UPSERTED"
    assert body["action"] == "CREATE"
    assert "gid://shopify/Product/1001" in fake_nautical.products
    assert services[0].closed


def test_unsupported_topic_is_acknowledged(client, fake_nautical):
    response = post(client, "customers/create", {"id": 1})

    assert response.status_code == 200
    assert response.json()["result"] == "IGNORED"
    assert fake_nautical.calls == []


def test_bad_signature(client, fake_nautical, shopify_product_node):
    response = post(client, "products/create", {"data": shopify_product_node}, secret="wrong")

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid webhook signature"
    assert fake_nautical.calls == []


def test_foreign_shop_domain(client):
    response = post(client, "products/create", {"id": 1}, shop="evil.example.com")

    assert response.status_code == 401


def test_invalid_json(client):
    body = b"{not json"
    response = client.post("/webhooks/shopify", content=body, headers={
        "X-Shopify-Topic": "products/create",
        "X-Shopify-Shop-Domain": SHOP,
        SIGNATURE_HEADER: compute_signature(SECRET, body),
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON payload"


def test_processing_failure_returns_500(client, fake_nautical, services, shopify_product_node):
    fake_nautical.create_product = MagicMock(side_effect=ValidationError("productCreate rejected"))

    response = post(client, "products/create", {"data": shopify_product_node})

    assert response.status_code == 500
    assert services[0].closed
