"""
Book model for the Book Lending MCP Server.

Books are the local copy of the upstream catalog, exposed as resources:
- library://books/list
- library://books/{external_id}

Only the stock counters are ever changed by the reservation lifecycle.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Book(BaseModel):
    """A book of the local catalog, keyed by its upstream catalog id."""

    external_id: int = Field(
        ...,
        description="Identifier assigned by the upstream catalog",
        ge=1,
        examples=[258027],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["El Gran Libro"],
    )

    author_name: list[str] = Field(
        default_factory=list,
        description="Author names as reported by the catalog",
    )

    price: Decimal = Field(
        ...,
        description="Daily rental price",
        ge=0,
        decimal_places=2,
        examples=["15.99"],
    )

    available_quantity: int = Field(
        ...,
        description="Copies on the shelf right now",
        ge=0,
    )

    stock_quantity: int = Field(
        ...,
        description="Copies owned in total",
        ge=0,
    )

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def validate_quantities(self) -> "Book":
        """Ensure available copies don't exceed stock."""
        if self.available_quantity > self.stock_quantity:
            raise ValueError("Available quantity cannot exceed stock quantity")
        return self

    @property
    def rented_quantity(self) -> int:
        """Copies currently out on loan."""
        return self.stock_quantity - self.available_quantity

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "external_id": 258027,
                "title": "El Gran Libro",
                "author_name": ["Ana Autora"],
                "price": "15.99",
                "available_quantity": 5,
                "stock_quantity": 10,
            }
        },
    )
