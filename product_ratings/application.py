"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_ratings.api.routes import include_api_routes
from product_ratings.config import settings
from product_ratings.services.product_registry import ProductRegistry
from product_ratings.services.storage.product_store import create_product_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the product registry on startup and release its store on shutdown."""

    store = create_product_store()
    app.state.registry = ProductRegistry(store)
    logger.info(
        "Product registry ready",
        extra={"storage": settings.STORAGE_BACKEND, "environment": settings.ENVIRONMENT},
    )

    try:
        yield
    finally:
        await store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Product Ratings",
        description="Product catalogue with rating history and averages",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
