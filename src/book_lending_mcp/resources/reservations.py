"""Reservation Resources - Rentals and Fees

Read-only views over the reservation lifecycle.

Resources:
- library://reservations/list - Every reservation
- library://reservations/active - Reservations not yet returned
- library://reservations/overdue - Active reservations past their return date
- library://reservations/{reservation_id} - One reservation
- library://reservations/{reservation_id}/total - Base fee plus late fee
- library://users/{user_id}/reservations - A user's reservations
- library://users/{user_id}/late-fees - Late fees charged to a user
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..models.reservation import ReservationView
from ..services.errors import LendingError
from ..services.reservation_service import get_reservation_service
from .uri_params import parse_id

logger = logging.getLogger(__name__)


def _listing(views: list[ReservationView]) -> dict[str, Any]:
    return {
        "reservations": [view.model_dump(mode="json") for view in views],
        "total": len(views),
    }


async def list_reservations_handler() -> dict[str, Any]:
    try:
        return _listing(get_reservation_service().list_all())
    except Exception as e:
        logger.exception("Error in reservations/list resource")
        raise ResourceError(f"Failed to retrieve reservations: {e!s}") from e


async def list_active_reservations_handler() -> dict[str, Any]:
    try:
        return _listing(get_reservation_service().list_active())
    except Exception as e:
        logger.exception("Error in reservations/active resource")
        raise ResourceError(f"Failed to retrieve active reservations: {e!s}") from e


async def list_overdue_reservations_handler() -> dict[str, Any]:
    """Active reservations whose expected return date is before today."""
    try:
        return _listing(get_reservation_service().list_overdue())
    except Exception as e:
        logger.exception("Error in reservations/overdue resource")
        raise ResourceError(f"Failed to retrieve overdue reservations: {e!s}") from e


async def get_reservation_handler(reservation_id: str) -> dict[str, Any]:
    reservation_pk = parse_id(reservation_id, "reservation id")
    logger.debug("MCP Resource Request - reservations/%s", reservation_pk)
    try:
        return get_reservation_service().get_by_id(reservation_pk).model_dump(mode="json")
    except LendingError as e:
        raise ResourceError(e.message) from e
    except Exception as e:
        logger.exception("Error in reservations/{reservation_id} resource")
        raise ResourceError(f"Failed to retrieve reservation: {e!s}") from e


async def get_reservation_total_handler(reservation_id: str) -> dict[str, Any]:
    """Amount owed for a reservation: stored base fee plus any late fee."""
    reservation_pk = parse_id(reservation_id, "reservation id")
    try:
        total = get_reservation_service().final_total(reservation_pk)
    except LendingError as e:
        raise ResourceError(e.message) from e
    except Exception as e:
        logger.exception("Error in reservations/{reservation_id}/total resource")
        raise ResourceError(f"Failed to compute reservation total: {e!s}") from e
    return {"reservation_id": reservation_pk, "final_total": str(total)}


async def list_user_reservations_handler(user_id: str) -> dict[str, Any]:
    user_pk = parse_id(user_id, "user id")
    try:
        return _listing(get_reservation_service().list_by_user(user_pk))
    except Exception as e:
        logger.exception("Error in users/{user_id}/reservations resource")
        raise ResourceError(f"Failed to retrieve user reservations: {e!s}") from e


async def get_user_late_fees_handler(user_id: str) -> dict[str, Any]:
    """
    Late fees charged to a user.

    Fees of returned reservations count: there is no payment record, so
    every charged fee is reported as pending.
    """
    user_pk = parse_id(user_id, "user id")
    try:
        pending = get_reservation_service().pending_late_fees(user_pk)
    except Exception as e:
        logger.exception("Error in users/{user_id}/late-fees resource")
        raise ResourceError(f"Failed to compute late fees: {e!s}") from e
    return {"user_id": user_pk, "pending_late_fees": str(pending)}


reservation_resources: list[dict[str, Any]] = [
    {
        "uri": "library://reservations/list",
        "name": "All Reservations",
        "description": "Every reservation, active and returned, ordered by id",
        "mime_type": "application/json",
        "handler": list_reservations_handler,
    },
    {
        "uri": "library://reservations/active",
        "name": "Active Reservations",
        "description": "Reservations whose book has not been returned yet",
        "mime_type": "application/json",
        "handler": list_active_reservations_handler,
    },
    {
        "uri": "library://reservations/overdue",
        "name": "Overdue Reservations",
        "description": "Active reservations whose expected return date has passed",
        "mime_type": "application/json",
        "handler": list_overdue_reservations_handler,
    },
    {
        "uri": "library://reservations/{reservation_id}",
        "name": "Reservation Details",
        "description": (
            "One reservation with user name and book title. total_fee includes any late fee"
        ),
        "mime_type": "application/json",
        "handler": get_reservation_handler,
    },
    {
        "uri": "library://reservations/{reservation_id}/total",
        "name": "Reservation Total",
        "description": "Final amount of a reservation: base fee plus late fee",
        "mime_type": "application/json",
        "handler": get_reservation_total_handler,
    },
    {
        "uri": "library://users/{user_id}/reservations",
        "name": "User Reservations",
        "description": "All reservations of a user",
        "mime_type": "application/json",
        "handler": list_user_reservations_handler,
    },
    {
        "uri": "library://users/{user_id}/late-fees",
        "name": "User Late Fees",
        "description": "Sum of the late fees charged to a user",
        "mime_type": "application/json",
        "handler": get_user_late_fees_handler,
    },
]
