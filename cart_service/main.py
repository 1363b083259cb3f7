"""
cart_service/main.py - Kit Store Cart Service

PURPOSE:
    Serves the shopping cart to the storefront views: catalog cards add to it, the cart
    page lists and edits it, the navigation bar shows its badge and the checkout step
    reads its summary. Each browser session owns one cart store.

API ENDPOINTS:
    GET    /cart                     - Cart contents with totals
    GET    /cart/badge               - Total units, for the navigation badge
    GET    /cart/summary             - Subtotal/total for the checkout step
    POST   /cart/items               - Add one unit of a product
    PUT    /cart/items/{product_id}  - Set a line's quantity (<= 0 removes it)
    DELETE /cart/items/{product_id}  - Remove a line
    DELETE /cart                     - Empty the cart
    GET    /health                   - Health check endpoint

    Every /cart request carries the session id in the X-Cart-Session header.

DATA STORAGE:
    - memory (default): carts live as long as the process
    - redis: key "cart:{session_id}", value is a JSON array of line items, 24h TTL

TESTING COMMANDS:
    1. Add a kit:
        curl -X POST http://localhost:8001/cart/items \
          -H "X-Cart-Session: demo" -H "Content-Type: application/json" \
          -d '{"id": "kit-starter", "name": "Starter Kit", "price": "59.99", "image": "/img/kit.jpg", "kind": "kit"}'

    2. Bump it to 3:
        curl -X PUT http://localhost:8001/cart/items/kit-starter \
          -H "X-Cart-Session: demo" -H "Content-Type: application/json" -d '{"quantity": 3}'

    3. Badge and summary:
        curl -H "X-Cart-Session: demo" http://localhost:8001/cart/badge
        curl -H "X-Cart-Session: demo" http://localhost:8001/cart/summary

USAGE:
    python -m cart_service.main
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from cart_service.config import Settings
from cart_service.routes import router
from cart_service.schemas import HealthResponse
from cart_service.sessions import (
    CartSessions,
    RepositoryFactory,
    build_redis_client,
    memory_repository_factory,
    redis_repository_factory,
)
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    repository_factory: Optional[RepositoryFactory] = None,
) -> FastAPI:
    """Build the FastAPI app. A repository_factory overrides the configured backend."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage app lifecycle."""
        setup_logging(settings.service_name, level=settings.log_level, timezone_name=settings.log_timezone)
        logger.info("Starting Cart Service...")

        redis_client = None
        factory = repository_factory
        if factory is None:
            if settings.storage_backend == "redis":
                try:
                    redis_client = build_redis_client(settings)
                    logger.info("Redis connected")
                except Exception as e:
                    logger.error(f"Failed to connect to Redis: {e}")
                    raise
                factory = redis_repository_factory(redis_client, settings.cart_ttl_seconds)
            else:
                factory = memory_repository_factory()

        app.state.carts = CartSessions(
            factory,
            max_sessions=settings.max_cart_sessions,
            idle_seconds=settings.session_idle_seconds or settings.cart_ttl_seconds,
        )

        yield

        logger.info("Shutting down Cart Service...")
        if redis_client is not None:
            redis_client.close()

    app = FastAPI(title="Cart Service", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="ok",
            service=settings.service_name,
            version=SERVICE_VERSION,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.cart_service_port)
