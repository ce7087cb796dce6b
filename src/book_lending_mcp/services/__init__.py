"""
Services of the Book Lending MCP Server.

- fees: pure rental and late fee arithmetic
- reservation_service: the reservation lifecycle and its reports
- catalog_service / catalog_client: local catalog upkeep and upstream sync
- errors: domain errors carrying their Spanish messages
"""

from .catalog_service import CatalogService, SyncResult
from .errors import ErrorKind, LendingError
from .reservation_service import AvailabilityOracle, ReservationService

__all__ = [
    "AvailabilityOracle",
    "CatalogService",
    "ErrorKind",
    "LendingError",
    "ReservationService",
    "SyncResult",
]
