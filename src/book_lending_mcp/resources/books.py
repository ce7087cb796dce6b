"""Book Resources - Local Catalog Access

Resources:
- library://books/list - Every book in the local catalog
- library://books/{external_id} - One book by its catalog id
- library://books/{external_id}/availability - Whether a copy can be rented
- library://catalog/status - Reachability of the external catalog API
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..services.catalog_service import get_catalog_client, get_catalog_service
from ..services.errors import LendingError
from ..services.reservation_service import get_reservation_service
from .uri_params import parse_id

logger = logging.getLogger(__name__)


async def list_books_handler() -> dict[str, Any]:
    try:
        books = get_catalog_service().list_books()
    except Exception as e:
        logger.exception("Error in books/list resource")
        raise ResourceError(f"Failed to retrieve book list: {e!s}") from e
    return {"books": [book.model_dump(mode="json") for book in books], "total": len(books)}


async def get_book_handler(external_id: str) -> dict[str, Any]:
    book_id = parse_id(external_id, "external id")
    logger.debug("MCP Resource Request - books/%s", book_id)
    try:
        return get_catalog_service().get_book(book_id).model_dump(mode="json")
    except LendingError as e:
        raise ResourceError(e.message) from e
    except Exception as e:
        logger.exception("Error in books/{external_id} resource")
        raise ResourceError(f"Failed to retrieve book details: {e!s}") from e


async def get_book_availability_handler(external_id: str) -> dict[str, Any]:
    """
    Whether the book has copies beyond those held by open reservations.

    The answer can be stale against a reservation committing at the same time.
    """
    book_id = parse_id(external_id, "external id")
    try:
        available = get_reservation_service().is_book_available(book_id)
    except LendingError as e:
        raise ResourceError(e.message) from e
    except Exception as e:
        logger.exception("Error in books/{external_id}/availability resource")
        raise ResourceError(f"Failed to check availability: {e!s}") from e
    return {"external_id": book_id, "available": available}


async def catalog_status_handler() -> dict[str, Any]:
    try:
        with get_catalog_client() as client:
            available = client.is_available()
            url = client.base_url
    except Exception as e:
        logger.exception("Error in catalog/status resource")
        raise ResourceError(f"Failed to check catalog status: {e!s}") from e
    return {
        "url": url,
        "available": available,
        "message": "API externa disponible" if available else "API externa no disponible",
    }


book_resources: list[dict[str, Any]] = [
    {
        "uri": "library://books/list",
        "name": "Book Catalog",
        "description": "Every book of the local catalog with price and stock",
        "mime_type": "application/json",
        "handler": list_books_handler,
    },
    {
        "uri": "library://books/{external_id}",
        "name": "Book Details",
        "description": "One book of the local catalog by its external catalog id",
        "mime_type": "application/json",
        "handler": get_book_handler,
    },
    {
        "uri": "library://books/{external_id}/availability",
        "name": "Book Availability",
        "description": "Whether a copy of the book is free to rent",
        "mime_type": "application/json",
        "handler": get_book_availability_handler,
    },
    {
        "uri": "library://catalog/status",
        "name": "External Catalog Status",
        "description": "Whether the external book API is reachable",
        "mime_type": "application/json",
        "handler": catalog_status_handler,
    },
]
