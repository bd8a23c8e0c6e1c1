"""API route registration."""

from fastapi import FastAPI

from product_ratings.api.routes import products, system


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(products.router)
