"""
Book Lending MCP Server Models.

Pydantic models for the data that crosses the MCP boundary:
- Book: local catalog entries
- Reservation commands and the reservation view
"""

from .book import Book
from .reservation import (
    ReservationRequest,
    ReservationStatus,
    ReservationView,
    ReturnRequest,
)

__all__ = [
    "Book",
    "ReservationRequest",
    "ReservationStatus",
    "ReservationView",
    "ReturnRequest",
]
