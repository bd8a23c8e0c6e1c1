"""Tests for the product HTTP endpoints."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from product_ratings.api.routes.products import get_registry
from product_ratings.main import app
from product_ratings.models.product import ProductPayload
from product_ratings.services.product_registry import ProductRegistry
from product_ratings.services.storage.product_store import InMemoryProductStore

CHAIR = {
    "name": "Chair",
    "description": "Wooden chair",
    "URL": "http://x/1.png",
}


async def _create(client, payload=None):
    response = await client.post("/products", json=payload or CHAIR)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_add_product(client):
    data = await _create(client)

    assert data["id"] == "prod-1"
    assert data["name"] == "Chair"
    assert data["URL"] == "http://x/1.png"
    assert data["ratings"] == []
    assert data["updated_at"] is None
    assert data["created_at"]


@pytest.mark.asyncio
async def test_add_product_with_empty_field(client):
    response = await client.post("/products", json={**CHAIR, "URL": ""})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_add_product_with_missing_field(client):
    response = await client.post(
        "/products", json={"name": "Chair", "description": "Wooden chair"}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_add_duplicate_product(client):
    await _create(client)

    response = await client.post("/products", json=CHAIR)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "conflict"


@pytest.mark.asyncio
async def test_list_products(client):
    empty = await client.get("/products")
    await _create(client)
    await _create(client, {**CHAIR, "name": "Table"})
    listed = await client.get("/products")

    assert empty.status_code == 404
    assert empty.json()["detail"] == {
        "error": "empty_collection",
        "message": "no products found",
    }
    assert listed.status_code == 200
    assert sorted(p["name"] for p in listed.json()) == ["Chair", "Table"]


@pytest.mark.asyncio
async def test_get_product(client):
    created = await _create(client)

    found = await client.get(f"/products/{created['id']}")
    missing = await client.get("/products/unknown")

    assert found.status_code == 200
    assert found.json() == created
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "not_found"


@pytest.mark.asyncio
async def test_update_product(client):
    created = await _create(client)

    response = await client.put(
        f"/products/{created['id']}",
        json={"name": "Stool", "description": "Tall stool", "URL": "http://x/2.png"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Stool"
    assert data["URL"] == "http://x/2.png"
    assert data["created_at"] == created["created_at"]
    assert data["updated_at"] is not None


@pytest.mark.asyncio
async def test_update_unknown_product(client):
    response = await client.put("/products/unknown", json=CHAIR)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rate_product_and_average(client):
    created = await _create(client)
    product_id = created["id"]

    unrated = await client.get(f"/products/{product_id}/rating")
    first = await client.post(f"/products/{product_id}/ratings", json={"rating": 4})
    second = await client.post(f"/products/{product_id}/ratings", json={"rating": 2})
    average = await client.get(f"/products/{product_id}/rating")

    assert unrated.status_code == 400
    assert first.status_code == 200
    assert second.json()["ratings"] == [4, 2]
    assert average.status_code == 200
    assert average.json() == {"product_id": product_id, "average": 3.0, "count": 2}


@pytest.mark.asyncio
async def test_rate_product_out_of_range(client):
    created = await _create(client)

    response = await client.post(
        f"/products/{created['id']}/ratings", json={"rating": 6}
    )
    product = await client.get(f"/products/{created['id']}")

    assert response.status_code == 400
    assert "between 1 and 5" in response.json()["detail"]["message"]
    assert product.json()["ratings"] == []


@pytest.mark.asyncio
async def test_rate_unknown_product(client):
    response = await client.post("/products/unknown/ratings", json={"rating": 3})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_product(client):
    created = await _create(client)

    deleted = await client.delete(f"/products/{created['id']}")
    again = await client.delete(f"/products/{created['id']}")
    fetched = await client.get(f"/products/{created['id']}")

    assert deleted.status_code == 200
    assert deleted.json() == created
    assert again.status_code == 404
    assert fetched.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [True, "4", 3.5])
async def test_rate_product_requires_json_integer(client, rating):
    created = await _create(client)

    response = await client.post(
        f"/products/{created['id']}/ratings", json={"rating": rating}
    )
    product = await client.get(f"/products/{created['id']}")

    assert response.status_code == 422
    assert product.json()["ratings"] == []


@pytest.mark.asyncio
async def test_update_product_with_blank_field(client):
    created = await _create(client)

    response = await client.put(
        f"/products/{created['id']}", json={**CHAIR, "description": " "}
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_average_rating_unknown_product(client):
    response = await client.get("/products/unknown/rating")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"


class _SlowReadStore(InMemoryProductStore):
    def __init__(self) -> None:
        super().__init__()
        self.read_done = asyncio.Event()

    async def get(self, product_id):
        product = await super().get(product_id)
        self.read_done.set()
        await asyncio.sleep(0.01)
        return product


@pytest.mark.asyncio
async def test_average_rating_survives_concurrent_delete(ids, clock):
    store = _SlowReadStore()
    registry = ProductRegistry(store, id_factory=ids, clock=clock)
    product = (await registry.add_product(ProductPayload(**CHAIR))).value
    await registry.rate_product(product.id, 4)
    await registry.rate_product(product.id, 2)
    store.read_done.clear()

    app.dependency_overrides[get_registry] = lambda: registry
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as test_client:
            average_task = asyncio.create_task(
                test_client.get(f"/products/{product.id}/rating")
            )
            await store.read_done.wait()
            deleted = await test_client.delete(f"/products/{product.id}")
            average = await average_task
    finally:
        app.dependency_overrides.pop(get_registry, None)

    assert deleted.status_code == 200
    assert average.status_code == 200
    assert average.json() == {"product_id": product.id, "average": 3.0, "count": 2}
