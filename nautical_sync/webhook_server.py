"""FastAPI receiver for Shopify webhooks.

Deliveries are processed inline. A failure answers HTTP 500 so Shopify
redelivers the event; the router's find-then-upsert keeps redelivery
harmless. The background scheduler runs in the same process.

Run with ``uvicorn nautical_sync.webhook_server:create_app --factory``.
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .middleware.webhook_validator import SIGNATURE_HEADER, WebhookValidator
from .scheduler import create_background_scheduler
from .services.sync_service import SyncService
from .services.webhook_router import TOPIC_HEADER
from .utils.config import AppConfig, get_config
from .utils.exceptions import WebhookValidationError
from .utils.logger import SyncLogger, get_error_logger, get_webhook_logger

SERVICE_NAME = "Shopify-Nautical Sync"
VERSION = "1.0.0"
SHOP_DOMAIN_HEADER = "X-Shopify-Shop-Domain"


def create_app(
    config: Optional[AppConfig] = None,
    service_factory: Optional[Callable[[], SyncService]] = None,
    validator: Optional[WebhookValidator] = None,
    start_scheduler: bool = True
) -> FastAPI:
    """
    Build the webhook application.

    Args:
        config: Application configuration (defaults to ``get_config()``)
        service_factory: Builds a ``SyncService`` per delivery
        validator: Signature and shop-domain validator
        start_scheduler: Whether the lifespan starts the background scheduler
    """
    config = config or get_config()
    logger = get_webhook_logger()
    sync_logger = SyncLogger(logger, get_error_logger())
    validator = validator or WebhookValidator.from_config(config)
    service_factory = service_factory or (lambda: SyncService(config=config, logger=sync_logger))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"{SERVICE_NAME} webhook server starting: environment={config.env.environment} "
            f"port={config.env.port} validate_signature={config.webhook.validate_signature}"
        )
        scheduler = create_background_scheduler(config) if start_scheduler else None
        if scheduler is not None:
            scheduler.start()

        yield

        if scheduler is not None:
            scheduler.shutdown(wait=True)
        logger.info(f"{SERVICE_NAME} webhook server stopped")

    app = FastAPI(
        title=f"{SERVICE_NAME} Webhook Server",
        description="Receives Shopify product, inventory and order events",
        version=VERSION,
        lifespan=lifespan,
    )

    @app.get("/")
    async def index():
        return {"service": SERVICE_NAME, "version": VERSION, "status": "running"}

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": config.env.environment,
        }

    @app.post("/webhooks/shopify")
    async def shopify_webhook(request: Request):
        """
        Route one Shopify delivery by its topic header.

        Unsupported topics answer 200 with result IGNORED.
        """
        raw = await request.body()
        topic = request.headers.get(TOPIC_HEADER)
        shop_domain = request.headers.get(SHOP_DOMAIN_HEADER)
        logger.info(f"Webhook {topic} from {shop_domain} ({len(raw)} bytes)")

        try:
            validator.validate_signature(raw, request.headers.get(SIGNATURE_HEADER))
            validator.validate_shopify_domain(shop_domain)
        except WebhookValidationError as e:
            logger.warning(f"Rejected webhook {topic}: {e.message}")
            raise HTTPException(status_code=401, detail=e.message)

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        service = service_factory()
        try:
            router = service.build_router(sync_logger)
            outcome = await run_in_threadpool(router.route, dict(request.headers), payload)
        except Exception:
            logger.exception(f"Webhook {topic} failed")
            raise HTTPException(status_code=500, detail=f"Failed to process {topic} event")
        finally:
            service.close()

        return outcome.to_dict()

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "status_code": exc.status_code}
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=get_config().env.port)
