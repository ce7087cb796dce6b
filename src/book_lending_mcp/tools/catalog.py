"""
Catalog tools for the Book Lending MCP Server.

1. sync_catalog: pull the upstream catalog into the local book table
2. update_stock: change how many copies of a book are owned
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..services.catalog_service import get_catalog_client, get_catalog_service
from ..services.errors import LendingError
from .results import error_result, text_result

logger = logging.getLogger(__name__)


async def sync_catalog_handler(
    arguments: dict[str, Any] | None = None,  # noqa: ARG001
) -> dict[str, Any]:
    """
    Handler for the sync_catalog tool.

    New books enter with the configured default stock; books already known
    keep their stock and get title, authors and price refreshed.
    """
    try:
        try:
            with get_catalog_client() as client:
                result = get_catalog_service().sync_from_catalog(client)
        except LendingError as e:
            logger.warning("Catalog sync failed: %s", e.message)
            return error_result(e.message, e.kind.value)

        return text_result(
            "Libros sincronizados exitosamente desde la API externa "
            f"({result.created} nuevos, {result.updated} actualizados)",
            sync={"created": result.created, "updated": result.updated},
        )

    except Exception as e:
        logger.exception("Unexpected error in sync_catalog tool")
        return error_result(f"An unexpected error occurred: {e!s}")


class UpdateStockInput(BaseModel):
    """Input schema for the update_stock tool."""

    external_id: int = Field(..., description="Catalog id of the book", ge=1)
    stock_quantity: int = Field(..., description="Copies owned after the change", ge=0)


async def update_stock_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the update_stock tool."""
    try:
        try:
            params = UpdateStockInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid stock parameters: %s", e)
            return error_result(f"Invalid stock parameters: {e}")

        try:
            book = get_catalog_service().update_stock(params.external_id, params.stock_quantity)
        except LendingError as e:
            logger.info("Stock update rejected (%s): %s", e.kind.value, e.message)
            return error_result(e.message, e.kind.value)

        return text_result(
            f"Stock de '{book.title}' actualizado: {book.stock_quantity} "
            f"({book.available_quantity} disponibles)",
            book=book.model_dump(mode="json"),
        )

    except Exception as e:
        logger.exception("Unexpected error in update_stock tool")
        return error_result(f"An unexpected error occurred: {e!s}")


sync_catalog = {
    "name": "sync_catalog",
    "description": (
        "Synchronize the local catalog with the external book API. Adds new books with "
        "the default stock and refreshes titles, authors and prices of known ones."
    ),
    "inputSchema": {"type": "object", "properties": {}},
    "handler": sync_catalog_handler,
}

update_stock = {
    "name": "update_stock",
    "description": (
        "Set the number of copies owned of a book. Copies on loan stay on loan, so the "
        "new stock cannot be lower than the number of rented copies."
    ),
    "inputSchema": UpdateStockInput.model_json_schema(),
    "handler": update_stock_handler,
}
