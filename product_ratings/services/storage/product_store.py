"""Durable key-value storage backends for product records."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis
from redis.exceptions import RedisError

from product_ratings.config import settings
from product_ratings.models.product import Product

logger = logging.getLogger(__name__)


class StorageCapacityError(ValueError):
    """Raised when a key or serialized record exceeds the store's bounds."""


class ProductStore(ABC):
    """Abstract key-value store mapping product ids to product records.

    Records are kept as JSON documents so every ``get`` hands back a fresh
    copy and callers cannot mutate stored state in place.
    """

    def __init__(
        self,
        max_key_bytes: int | None = None,
        max_value_bytes: int | None = None,
    ) -> None:
        self.max_key_bytes = max_key_bytes or settings.PRODUCT_MAX_KEY_BYTES
        self.max_value_bytes = max_value_bytes or settings.PRODUCT_MAX_VALUE_BYTES

    @abstractmethod
    async def get(self, product_id: str) -> Product | None:
        """Return the record stored under ``product_id`` if any."""
        pass

    @abstractmethod
    async def insert(self, product_id: str, product: Product) -> None:
        """Store ``product`` under ``product_id``, replacing any previous record."""
        pass

    @abstractmethod
    async def remove(self, product_id: str) -> Product | None:
        """Delete and return the record stored under ``product_id`` if any."""
        pass

    @abstractmethod
    async def values(self) -> list[Product]:
        """Return every stored record in the backend's native order."""
        pass

    async def ping(self) -> bool:
        """Report whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        pass

    def _encode(self, product_id: str, product: Product) -> str:
        key_size = len(product_id.encode("utf-8"))
        if key_size > self.max_key_bytes:
            raise StorageCapacityError(
                f"product key is {key_size} bytes, limit is {self.max_key_bytes}"
            )

        raw = product.model_dump_json(by_alias=True)
        value_size = len(raw.encode("utf-8"))
        if value_size > self.max_value_bytes:
            raise StorageCapacityError(
                f"product record is {value_size} bytes, "
                f"limit is {self.max_value_bytes}"
            )
        return raw

    @staticmethod
    def _decode(raw: str | bytes) -> Product:
        return Product.model_validate_json(raw)


class InMemoryProductStore(ProductStore):
    """Process-local store; insertion order is the native order."""

    def __init__(
        self,
        max_key_bytes: int | None = None,
        max_value_bytes: int | None = None,
    ) -> None:
        super().__init__(max_key_bytes, max_value_bytes)
        self._storage: dict[str, str] = {}

    async def get(self, product_id: str) -> Product | None:
        raw = self._storage.get(product_id)
        if raw is None:
            return None
        return self._decode(raw)

    async def insert(self, product_id: str, product: Product) -> None:
        self._storage[product_id] = self._encode(product_id, product)

    async def remove(self, product_id: str) -> Product | None:
        raw = self._storage.pop(product_id, None)
        if raw is None:
            return None
        return self._decode(raw)

    async def values(self) -> list[Product]:
        return [self._decode(raw) for raw in self._storage.values()]


class RedisProductStore(ProductStore):
    """Store backed by a single Redis hash keyed by product id."""

    def __init__(
        self,
        client: redis.Redis,
        hash_key: str | None = None,
        max_key_bytes: int | None = None,
        max_value_bytes: int | None = None,
    ) -> None:
        super().__init__(max_key_bytes, max_value_bytes)
        self._client = client
        self._hash_key = hash_key or settings.PRODUCTS_HASH_KEY

    async def get(self, product_id: str) -> Product | None:
        raw = await self._client.hget(self._hash_key, product_id)
        if not raw:
            return None
        return self._decode(raw)

    async def insert(self, product_id: str, product: Product) -> None:
        raw = self._encode(product_id, product)
        await self._client.hset(self._hash_key, product_id, raw)

    async def remove(self, product_id: str) -> Product | None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.hget(self._hash_key, product_id)
            pipe.hdel(self._hash_key, product_id)
            raw, _ = await pipe.execute()
        if not raw:
            return None
        return self._decode(raw)

    async def values(self) -> list[Product]:
        raws = await self._client.hvals(self._hash_key)
        return [self._decode(raw) for raw in raws]

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_redis_client() -> redis.Redis:
    """Build a Redis client from the configured URL."""

    return redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
    )


def create_product_store() -> ProductStore:
    """Instantiate the backend selected by ``STORAGE_BACKEND``."""

    if settings.uses_redis:
        logger.info("Using Redis product store at %s", settings.REDIS_URL)
        return RedisProductStore(create_redis_client())

    logger.info("Using in-memory product store")
    return InMemoryProductStore()
