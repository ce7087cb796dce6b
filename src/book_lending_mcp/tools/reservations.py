"""
Reservation tools for the Book Lending MCP Server.

Two tools change reservation state:
1. create_reservation: rent a book to a user for a number of days
2. return_book: close a reservation, charging a late fee when it is overdue

Each handler validates its raw arguments with a Pydantic schema, calls the
reservation service (which owns the transaction) and answers with a text
message plus the reservation view as structured data. Domain failures come
back as ``isError`` results carrying the service's message unchanged.
"""

import logging
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..models.reservation import ReservationRequest, ReturnRequest
from ..services.errors import LendingError
from ..services.reservation_service import get_reservation_service
from .results import error_result, text_result

logger = logging.getLogger(__name__)


# =============================================================================
# CREATE RESERVATION
# =============================================================================


async def create_reservation_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the create_reservation tool.

    Args:
        arguments: Raw arguments from the MCP tools/call request, shaped like
            ReservationRequest

    Returns:
        The new reservation, or an error result
    """
    try:
        try:
            request = ReservationRequest.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid reservation parameters: %s", e)
            return error_result(f"Invalid reservation parameters: {e}")

        try:
            view = get_reservation_service().create(request)
        except LendingError as e:
            logger.info("Reservation rejected (%s): %s", e.kind.value, e.message)
            return error_result(e.message, e.kind.value)

        message = (
            f"Reserva {view.id} creada: '{view.book_title}' para {view.user_name} "
            f"hasta el {view.expected_return_date.isoformat()}. Total: {view.total_fee}"
        )
        return text_result(message, reservation=view.model_dump(mode="json"))

    except Exception as e:
        logger.exception("Unexpected error in create_reservation tool")
        return error_result(f"An unexpected error occurred: {e!s}")


# =============================================================================
# RETURN BOOK
# =============================================================================


class ReturnBookInput(BaseModel):
    """Input schema for the return_book tool."""

    reservation_id: int = Field(
        ...,
        description="ID of the reservation being closed",
        ge=1,
        examples=[1, 42],
    )

    return_date: date = Field(
        default_factory=date.today,
        description="Day the book came back. Defaults to today",
        examples=["2024-03-08"],
    )


async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the return_book tool.

    A return date earlier than the reservation's start date is rejected
    here, before the service is asked to close anything.
    """
    try:
        try:
            params = ReturnBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid return parameters: %s", e)
            return error_result(f"Invalid return parameters: {e}")

        service = get_reservation_service()
        try:
            current = service.get_by_id(params.reservation_id)
            if params.return_date < current.start_date:
                return error_result(
                    "La fecha de devolución no puede ser anterior a la fecha de inicio "
                    f"({current.start_date.isoformat()})"
                )
            view = service.return_book(
                params.reservation_id, ReturnRequest(return_date=params.return_date)
            )
        except LendingError as e:
            logger.info("Return rejected (%s): %s", e.kind.value, e.message)
            return error_result(e.message, e.kind.value)

        if view.late_fee:
            message = (
                f"Reserva {view.id} devuelta con retraso. "
                f"Multa: {view.late_fee}. Total: {view.total_fee}"
            )
        else:
            message = f"Reserva {view.id} devuelta a tiempo. Total: {view.total_fee}"

        return text_result(message, reservation=view.model_dump(mode="json"))

    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return error_result(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

create_reservation = {
    "name": "create_reservation",
    "description": (
        "Rent a book to a user. Takes one copy off the shelf, snapshots the book's "
        "daily price and charges daily price x rental days. Fails if the user or book "
        "does not exist, no copy is available, or the user already holds the book."
    ),
    "inputSchema": ReservationRequest.model_json_schema(),
    "handler": create_reservation_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a rented book. Puts the copy back on the shelf and, when returned after "
        "the expected date, charges 15% of the book price per day late."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}
