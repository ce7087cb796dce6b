"""Mapping from reservation rows to the views returned to clients."""

from decimal import Decimal

from ..database.schema import Reservation as ReservationDB
from ..models.reservation import ReservationStatus, ReservationView


def final_total(reservation: ReservationDB) -> Decimal:
    """Base fee plus late fee, a missing amount counting as zero."""
    return (reservation.total_fee or Decimal("0.00")) + (reservation.late_fee or Decimal("0.00"))


def to_view(reservation: ReservationDB) -> ReservationView:
    """
    Build the client view of a reservation.

    The user and book relationships must be loadable, so call this while the
    row's session is still open.
    """
    return ReservationView(
        id=reservation.id,
        user_id=reservation.user_id,
        user_name=reservation.user.name,
        book_external_id=reservation.book_external_id,
        book_title=reservation.book.title,
        rental_days=reservation.rental_days,
        start_date=reservation.start_date,
        expected_return_date=reservation.expected_return_date,
        actual_return_date=reservation.actual_return_date,
        daily_rate=reservation.daily_rate,
        # Clients read the combined amount here
        total_fee=final_total(reservation),
        late_fee=reservation.late_fee,
        status=ReservationStatus(reservation.status.value),
        created_at=reservation.created_at,
    )
