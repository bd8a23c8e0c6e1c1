"""System-level routes such as health checks."""

from __future__ import annotations

from fastapi import APIRouter

from product_ratings.api.routes.products import RegistryDependency
from product_ratings.config import settings

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Hello World endpoint used by smoke tests."""

    return {"message": "Hello World"}


@router.get("/health")
async def health_check(registry: RegistryDependency) -> dict[str, str]:
    """Health check endpoint with storage connectivity check."""

    storage_status = "connected" if await registry.store.ping() else "disconnected"

    return {
        "status": "healthy",
        "storage": settings.STORAGE_BACKEND,
        "storage_status": storage_status,
        "environment": settings.ENVIRONMENT,
    }
