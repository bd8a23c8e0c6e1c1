"""Pytest configuration and fixtures for the product ratings service."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from product_ratings.api.routes.products import get_registry
from product_ratings.services.product_registry import ProductRegistry
from product_ratings.services.storage.product_store import (
    InMemoryProductStore,
    RedisProductStore,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)
        self.readings: list[datetime] = []

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        self.readings.append(self.current)
        return self.current


class SequentialIds:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"prod-{self.count}"


@pytest.fixture()
def clock():
    return SteppingClock()


@pytest.fixture()
def ids():
    return SequentialIds()


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    client = fakeredis.FakeRedis()
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()


@pytest_asyncio.fixture(params=["memory", "redis"])
async def store(request, redis_client):
    """Run store-backed tests against both storage backends."""
    if request.param == "redis":
        return RedisProductStore(redis_client, hash_key="test:products")
    return InMemoryProductStore()


@pytest.fixture()
def registry(store, ids, clock):
    return ProductRegistry(store, id_factory=ids, clock=clock)


@pytest_asyncio.fixture()
async def client(registry):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from product_ratings.main import app

    app.dependency_overrides[get_registry] = lambda: registry
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_registry, None)
