"""Product registry: CRUD and rating operations over an injected store."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from product_ratings.models.product import AverageRating, Product, ProductPayload
from product_ratings.models.result import Err, ErrorKind, Ok, Result
from product_ratings.services.clock import MonotonicClock, new_product_id
from product_ratings.services.storage.product_store import (
    ProductStore,
    StorageCapacityError,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _boundary(operation: str):
    """Convert collaborator faults raised inside ``operation`` into ``Err`` values."""

    def decorator(func: Callable[..., Awaitable[Result]]):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Result:
            try:
                return await func(*args, **kwargs)
            except StorageCapacityError as exc:
                logger.warning("%s rejected by storage: %s", operation, exc)
                return Err(ErrorKind.INVALID_INPUT, str(exc))
            except Exception:
                logger.exception("%s failed unexpectedly", operation)
                return Err(ErrorKind.INTERNAL, f"{operation} failed")

        return wrapper

    return decorator


def validate_rating(rating: object) -> Err | None:
    """Return an ``Err`` when ``rating`` is not an integer between 1 and 5."""

    is_integer = isinstance(rating, int) and not isinstance(rating, bool)
    if not is_integer or not MIN_RATING <= rating <= MAX_RATING:
        return Err(
            ErrorKind.INVALID_INPUT,
            f"rating should be an integer between {MIN_RATING} and {MAX_RATING}",
        )
    return None


def _validate_payload(payload: ProductPayload) -> Err | None:
    blank = payload.blank_fields()
    if blank:
        return Err(
            ErrorKind.INVALID_INPUT,
            f"missing required fields: {', '.join(blank)}",
        )
    return None


def _not_found(product_id: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, f"a product with id={product_id} not found")


class ProductRegistry:
    """Owns the product store and applies every catalogue rule on top of it.

    Each read-modify-write sequence (lookup, mutate, insert) runs under a
    single ``asyncio.Lock`` so concurrent requests never lose an update.
    Operations return ``Ok``/``Err`` instead of raising.
    """

    def __init__(
        self,
        store: ProductStore,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._new_id = id_factory or new_product_id
        self._clock = clock if isinstance(clock, MonotonicClock) else MonotonicClock(clock)
        self._lock = asyncio.Lock()

    @property
    def store(self) -> ProductStore:
        return self._store

    @_boundary("list products")
    async def list_products(self) -> Result[list[Product]]:
        products = await self._store.values()
        if not products:
            return Err(ErrorKind.EMPTY_COLLECTION, "no products found")
        return Ok(products)

    @_boundary("get product")
    async def get_product(self, product_id: str) -> Result[Product]:
        if not product_id:
            return Err(ErrorKind.INVALID_INPUT, "product id is required")

        product = await self._store.get(product_id)
        if product is None:
            return _not_found(product_id)
        return Ok(product)

    @_boundary("add product")
    async def add_product(self, payload: ProductPayload) -> Result[Product]:
        """Create a product; names must be unique (exact, case-sensitive match).

        The uniqueness check scans every stored record, so inserts are O(n).
        """

        invalid = _validate_payload(payload)
        if invalid:
            return invalid

        async with self._lock:
            for existing in await self._store.values():
                if existing.name == payload.name:
                    logger.info(
                        "Rejected duplicate product name",
                        extra={"product_name": payload.name, "product_id": existing.id},
                    )
                    return Err(
                        ErrorKind.CONFLICT,
                        f"a product named {payload.name!r} already exists",
                    )

            product = Product(
                id=self._new_id(),
                name=payload.name,
                description=payload.description,
                url=payload.url,
                ratings=[],
                created_at=self._clock(),
                updated_at=None,
            )
            await self._store.insert(product.id, product)

        logger.info("Added product %s (%s)", product.id, product.name)
        return Ok(product)

    @_boundary("update product")
    async def update_product(
        self, product_id: str, payload: ProductPayload
    ) -> Result[Product]:
        invalid = _validate_payload(payload)
        if invalid:
            return invalid

        async with self._lock:
            product = await self._store.get(product_id)
            if product is None:
                return _not_found(product_id)

            updated = product.model_copy(
                update={
                    "name": payload.name,
                    "description": payload.description,
                    "url": payload.url,
                    "updated_at": self._clock(),
                }
            )
            await self._store.insert(product_id, updated)

        logger.info("Updated product %s", product_id)
        return Ok(updated)

    @_boundary("rate product")
    async def rate_product(self, product_id: str, rating: int) -> Result[Product]:
        invalid = validate_rating(rating)
        if invalid:
            return invalid

        async with self._lock:
            product = await self._store.get(product_id)
            if product is None:
                return _not_found(product_id)

            updated = product.model_copy(
                update={
                    "ratings": [*product.ratings, rating],
                    "updated_at": self._clock(),
                }
            )
            try:
                await self._store.insert(product_id, updated)
            except StorageCapacityError as exc:
                logger.warning(
                    "Rating history full",
                    extra={"product_id": product_id, "rating_count": len(product.ratings)},
                )
                return Err(
                    ErrorKind.INVALID_INPUT,
                    f"rating history of product id={product_id} is full after "
                    f"{len(product.ratings)} ratings ({exc})",
                )

        logger.info(
            "Rated product",
            extra={
                "product_id": product_id,
                "rating": rating,
                "rating_count": len(updated.ratings),
            },
        )
        return Ok(updated)

    @_boundary("delete product")
    async def delete_product(self, product_id: str) -> Result[Product]:
        async with self._lock:
            removed = await self._store.remove(product_id)

        if removed is None:
            return _not_found(product_id)

        logger.info("Deleted product %s", product_id)
        return Ok(removed)

    @_boundary("average rating")
    async def average_rating(self, product_id: str) -> Result[float]:
        """Mean of the product's ratings rounded to 2 decimals. Read-only."""

        summary = await self._summarize(product_id)
        if isinstance(summary, Err):
            return summary
        return Ok(summary.value.average)

    @_boundary("rating summary")
    async def rating_summary(self, product_id: str) -> Result[AverageRating]:
        """Average and rating count taken from a single read of the product."""

        return await self._summarize(product_id)

    async def _summarize(self, product_id: str) -> Result[AverageRating]:
        if not product_id:
            return Err(ErrorKind.INVALID_INPUT, "product id is required")

        product = await self._store.get(product_id)
        if product is None:
            return _not_found(product_id)
        if not product.ratings:
            return Err(ErrorKind.INVALID_INPUT, f"product with id={product_id} has no ratings")

        return Ok(
            AverageRating(
                product_id=product_id,
                average=round(sum(product.ratings) / len(product.ratings), 2),
                count=len(product.ratings),
            )
        )
