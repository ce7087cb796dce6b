"""
Reservation models for the Book Lending MCP Server.

- ReservationRequest: command accepted by the create_reservation tool
- ReturnRequest: command accepted by the return_book tool
- ReservationView: what every reservation tool and resource answers with

A reservation moves from ACTIVE to RETURNED exactly once. Monetary fields
are Decimals with two decimal places.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReservationStatus(str, Enum):
    """Lifecycle state of a reservation."""

    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"


class ReservationRequest(BaseModel):
    """Request to rent one book for a number of days."""

    user_id: int = Field(..., description="ID of the renting user", ge=1)
    book_external_id: int = Field(..., description="Catalog id of the book", ge=1)
    rental_days: int = Field(..., description="Length of the rental in days", ge=1)
    start_date: date = Field(..., description="First day of the rental")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": 1,
                "book_external_id": 258027,
                "rental_days": 7,
                "start_date": "2024-03-01",
            }
        }
    )


class ReturnRequest(BaseModel):
    """Request to close a reservation."""

    return_date: date = Field(..., description="Day the book came back")


class ReservationView(BaseModel):
    """
    Reservation snapshot with the user name and book title resolved.

    ``total_fee`` here is the stored base fee plus the late fee (a missing
    late fee counts as zero). Existing clients read the combined figure from
    this field, while the database keeps both amounts apart.
    """

    id: int
    user_id: int
    user_name: str
    book_external_id: int
    book_title: str
    rental_days: int
    start_date: date
    expected_return_date: date
    actual_return_date: date | None = None
    daily_rate: Decimal
    total_fee: Decimal
    late_fee: Decimal | None = None
    status: ReservationStatus
    created_at: datetime

