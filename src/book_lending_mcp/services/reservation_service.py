"""
Reservation lifecycle service for the Book Lending MCP Server.

The service is the only place that opens a transaction for a reservation:
each public operation runs in one ``session_scope()``, so the reservation
row and the book stock it moves are committed together or not at all.

Lifecycle:
    create        ACTIVE, one copy taken from the shelf
    return_book   ACTIVE -> RETURNED, late fee charged, copy put back

Concurrency is settled by the database rather than by the checks below:
the stock decrement is a conditional UPDATE, and a partial unique index
rejects a second open reservation for the same user and book. The checks
only produce the precise error for the common, uncontended case.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal

from ..database.book_repository import BookRepository
from ..database.repository import DuplicateError
from ..database.reservation_repository import ReservationRepository
from ..database.schema import Reservation as ReservationDB
from ..database.schema import ReservationStatusEnum
from ..database.session import DatabaseManager, get_db_manager
from ..database.user_repository import UserRepository
from ..models.reservation import ReservationRequest, ReservationView, ReturnRequest
from . import fees
from .errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookUnavailableError,
    DuplicateActiveReservationError,
    ReservationNotFoundError,
    UserNotFoundError,
)
from .views import final_total, to_view

logger = logging.getLogger(__name__)


class AvailabilityOracle:
    """
    Answers whether a book has copies beyond those held by open reservations.

    With stock moved transactionally this agrees with ``available_quantity``
    alone; it can disagree with a transaction that is committing meanwhile.
    """

    def __init__(self, session):
        self.books = BookRepository(session)
        self.reservations = ReservationRepository(session)

    def available(self, book_external_id: int) -> bool:
        book = self.books.find_by_external_id(book_external_id)
        if book is None:
            raise BookNotFoundError()
        return book.available_quantity > self.reservations.count_active_by_book(book_external_id)


class ReservationService:
    """
    Orchestrates the reservation lifecycle.

    Args:
        db_manager: Source of transactional session scopes
        today: Clock used for the overdue report
        now: Clock used for creation timestamps
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.db_manager = db_manager
        self._today = today
        self._now = now

    # === Lifecycle ===

    def create(self, request: ReservationRequest) -> ReservationView:
        """
        Rent a book to a user.

        Raises:
            UserNotFoundError: If the user directory has no such user
            BookNotFoundError: If the book is not in the local catalog
            BookUnavailableError: If no copy is on the shelf
            DuplicateActiveReservationError: If the user already holds this book
        """
        with self.db_manager.session_scope() as session:
            users = UserRepository(session)
            books = BookRepository(session)
            reservations = ReservationRepository(session)

            user = users.get_user(request.user_id)
            if user is None:
                raise UserNotFoundError(request.user_id)

            book = books.find_by_external_id(request.book_external_id)
            if book is None:
                raise BookNotFoundError(request.book_external_id)

            if book.available_quantity <= 0:
                raise BookUnavailableError(book.available_quantity)

            if reservations.exists_active(request.user_id, request.book_external_id):
                raise DuplicateActiveReservationError()

            if not books.decrement_available(book.external_id):
                # Another transaction took the last copy after our read
                session.refresh(book)
                raise BookUnavailableError(book.available_quantity)

            reservation = ReservationDB(
                user=user,
                book=book,
                rental_days=request.rental_days,
                start_date=request.start_date,
                expected_return_date=request.start_date + timedelta(days=request.rental_days),
                daily_rate=book.price,
                total_fee=fees.base_fee(book.price, request.rental_days),
                late_fee=None,
                status=ReservationStatusEnum.ACTIVE,
                created_at=self._now(),
            )
            try:
                reservations.save(reservation)
            except DuplicateError as e:
                raise DuplicateActiveReservationError() from e

            logger.info(
                "Reservation %s created: user %s, book %s, %s days, fee %s",
                reservation.id,
                user.id,
                book.external_id,
                reservation.rental_days,
                reservation.total_fee,
            )
            return to_view(reservation)

    def return_book(self, reservation_id: int, request: ReturnRequest) -> ReservationView:
        """
        Close a reservation and put the copy back on the shelf.

        A return after the expected date is charged 15% of the book's current
        price per whole day late.
        A return date before the start date is not checked here.

        Raises:
            ReservationNotFoundError: If there is no such reservation
            AlreadyReturnedError: If the reservation is already closed
        """
        with self.db_manager.session_scope() as session:
            books = BookRepository(session)
            reservations = ReservationRepository(session)

            reservation = reservations.find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)

            if reservation.status != ReservationStatusEnum.ACTIVE:
                raise AlreadyReturnedError()

            late_days = fees.days_late(reservation.expected_return_date, request.return_date)
            charge = (
                fees.late_fee(reservation.book.price, late_days)
                if late_days > 0
                else Decimal("0.00")
            )

            if not reservations.mark_returned(reservation, request.return_date, charge):
                raise AlreadyReturnedError()
            books.increment_available(reservation.book_external_id)

            if late_days > 0:
                logger.info(
                    "Reservation %s returned %s days late, late fee %s",
                    reservation.id,
                    late_days,
                    charge,
                )
            else:
                logger.info("Reservation %s returned on time", reservation.id)
            return to_view(reservation)

    # === Reads ===

    def get_by_id(self, reservation_id: int) -> ReservationView:
        with self.db_manager.session_scope() as session:
            reservation = ReservationRepository(session).find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            return to_view(reservation)

    def list_all(self) -> list[ReservationView]:
        with self.db_manager.session_scope() as session:
            return [to_view(r) for r in ReservationRepository(session).find_all()]

    def list_by_user(self, user_id: int) -> list[ReservationView]:
        with self.db_manager.session_scope() as session:
            return [to_view(r) for r in ReservationRepository(session).find_by_user(user_id)]

    def list_active(self) -> list[ReservationView]:
        with self.db_manager.session_scope() as session:
            return [to_view(r) for r in ReservationRepository(session).find_active()]

    def list_overdue(self) -> list[ReservationView]:
        """Open reservations whose expected return date is before today."""
        today = self._today()
        with self.db_manager.session_scope() as session:
            return [to_view(r) for r in ReservationRepository(session).find_overdue(today)]

    def pending_late_fees(self, user_id: int) -> Decimal:
        """
        Sum of the late fees charged to a user.

        Returned reservations count too: nothing in the system records a
        payment, so every charged fee is still pending.
        """
        with self.db_manager.session_scope() as session:
            charged = ReservationRepository(session).find_late_fees(user_id)
        return sum(charged, Decimal("0.00"))

    def is_book_available(self, book_external_id: int) -> bool:
        with self.db_manager.session_scope() as session:
            return AvailabilityOracle(session).available(book_external_id)

    def final_total(self, reservation_id: int) -> Decimal:
        """Base fee plus late fee of a reservation."""
        with self.db_manager.session_scope() as session:
            reservation = ReservationRepository(session).find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError()
            return final_total(reservation)


def get_reservation_service() -> ReservationService:
    """Build a service bound to the global database manager."""
    return ReservationService(get_db_manager())
