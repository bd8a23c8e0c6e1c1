"""FastAPI application entry point."""

from product_ratings.application import create_app

app = create_app()

__all__ = ["app"]
