"""Routes for managing and rating products."""

from __future__ import annotations

import logging
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, status

from product_ratings.models.product import (
    AverageRating,
    Product,
    ProductPayload,
    RatingPayload,
)
from product_ratings.models.result import Err, ErrorKind, Result
from product_ratings.services.product_registry import ProductRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

T = TypeVar("T")

_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.EMPTY_COLLECTION: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_registry(request: Request) -> ProductRegistry:
    """FastAPI dependency returning the registry built at startup."""

    return request.app.state.registry


RegistryDependency = Annotated[ProductRegistry, Depends(get_registry)]


def _unwrap(result: Result[T]) -> T:
    """Return the value of an ``Ok`` or raise the matching HTTP error."""

    if isinstance(result, Err):
        logger.info("Product request failed: %s (%s)", result.message, result.kind)
        raise HTTPException(
            status_code=_STATUS_BY_KIND[result.kind],
            detail={"error": result.kind.value, "message": result.message},
        )
    return result.value


@router.get(
    "",
    response_model=list[Product],
    summary="List every stored product",
)
async def list_products(registry: RegistryDependency) -> list[Product]:
    return _unwrap(await registry.list_products())


@router.get(
    "/{product_id}",
    response_model=Product,
    summary="Fetch a single product",
)
async def get_product(product_id: str, registry: RegistryDependency) -> Product:
    return _unwrap(await registry.get_product(product_id))


@router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def add_product(
    payload: ProductPayload,
    registry: RegistryDependency,
) -> Product:
    """Create a product with an empty rating history.

    Fails with 400 when a field is empty and 409 when the name is taken.
    """

    return _unwrap(await registry.add_product(payload))


@router.put(
    "/{product_id}",
    response_model=Product,
    summary="Replace the name, description and URL of a product",
)
async def update_product(
    product_id: str,
    payload: ProductPayload,
    registry: RegistryDependency,
) -> Product:
    return _unwrap(await registry.update_product(product_id, payload))


@router.post(
    "/{product_id}/ratings",
    response_model=Product,
    summary="Append a rating between 1 and 5",
)
async def rate_product(
    product_id: str,
    payload: RatingPayload,
    registry: RegistryDependency,
) -> Product:
    """Append ``payload.rating`` to the product's history.

    The body must carry a JSON integer; strings, booleans and fractions get
    422. Each record is bounded by ``PRODUCT_MAX_VALUE_BYTES``, which caps the
    history at a few hundred ratings; once full, further ratings get 400.
    """

    return _unwrap(await registry.rate_product(product_id, payload.rating))


@router.delete(
    "/{product_id}",
    response_model=Product,
    summary="Delete a product and return the removed record",
)
async def delete_product(product_id: str, registry: RegistryDependency) -> Product:
    return _unwrap(await registry.delete_product(product_id))


@router.get(
    "/{product_id}/rating",
    response_model=AverageRating,
    summary="Average rating of a product",
)
async def average_rating(
    product_id: str,
    registry: RegistryDependency,
) -> AverageRating:
    """Return the mean rating rounded to 2 decimals.

    Fails with 400 when the product has not been rated yet.
    """

    return _unwrap(await registry.rating_summary(product_id))
