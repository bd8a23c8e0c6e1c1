"""Product domain models and API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductPayload(BaseModel):
    """Caller-supplied fields used to create or update a product."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Display name, unique across the catalogue")
    description: str
    url: str = Field(..., alias="URL", description="Product image URL")

    def blank_fields(self) -> list[str]:
        """Return the wire names of required fields that are empty."""

        values = {"name": self.name, "description": self.description, "URL": self.url}
        return [key for key, value in values.items() if not value.strip()]


class Product(ProductPayload):
    """Internal representation persisted inside the registry."""

    id: str = Field(..., description="Opaque identifier assigned at creation")
    ratings: list[int] = Field(
        default_factory=list,
        description="Append-only rating history, each score between 1 and 5",
    )
    created_at: datetime = Field(..., description="Timestamp of creation")
    updated_at: datetime | None = Field(
        None,
        description="Timestamp of the most recent update or rating",
    )


class RatingPayload(BaseModel):
    """Request body for rating a product."""

    rating: int = Field(..., strict=True, description="Score between 1 and 5 inclusive")


class AverageRating(BaseModel):
    """Response body for the average rating query."""

    product_id: str
    average: float = Field(..., description="Mean rating rounded to 2 decimals")
    count: int = Field(..., ge=1, description="Number of ratings averaged")
