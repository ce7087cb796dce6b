"""
Reservation repository implementation for the Book Lending MCP Server.

The reservation store port. Every reporting query of the lifecycle is one
indexed predicate here:

- by user:      user_id = :user_id
- active:       actual_return_date IS NULL
- overdue:      expected_return_date < :today AND actual_return_date IS NULL
- duplicate:    EXISTS active row for (user_id, book_external_id)
- in use:       COUNT active rows for book_external_id

Rows are loaded with their user and book so views can be built after the
session scope has closed.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..database.schema import Reservation as ReservationDB
from ..database.schema import ReservationStatusEnum
from .repository import BaseRepository, DuplicateError, safe_query


class ReservationRepository(BaseRepository[ReservationDB]):
    """Repository for reservations."""

    @property
    def model_class(self):
        return ReservationDB

    @property
    def primary_key(self):
        return ReservationDB.id

    def _select(self):
        return select(ReservationDB).options(
            joinedload(ReservationDB.user), joinedload(ReservationDB.book)
        )

    def _list(self, query, error_msg: str) -> Sequence[ReservationDB]:
        query = query.order_by(ReservationDB.id)
        return safe_query(
            self.session, lambda s: s.execute(query).scalars().all(), error_msg
        )

    def find_by_id(self, reservation_id: int) -> ReservationDB | None:
        query = self._select().where(ReservationDB.id == reservation_id)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "Failed to get reservation",
        )

    def save(self, db_obj: ReservationDB) -> ReservationDB:
        """
        Persist a reservation, assigning its id on first save.

        Raises:
            DuplicateError: If the row would give the (user, book) pair a
                second open reservation
        """
        try:
            return super().save(db_obj)
        except IntegrityError as e:
            raise DuplicateError(
                f"Active reservation already exists for user {db_obj.user_id} "
                f"and book {db_obj.book_external_id}"
            ) from e

    def mark_returned(
        self, reservation: ReservationDB, return_date: date, late_fee: Decimal
    ) -> bool:
        """
        Close an open reservation.

        The update only matches a row that is still open, so two returns of
        the same reservation cannot both succeed.

        Returns:
            True if the reservation was closed by this call
        """
        stmt = (
            update(ReservationDB)
            .where(
                ReservationDB.id == reservation.id,
                ReservationDB.actual_return_date.is_(None),
            )
            .values(
                actual_return_date=return_date,
                late_fee=late_fee,
                status=ReservationStatusEnum.RETURNED,
            )
            .execution_options(synchronize_session=False)
        )
        result = safe_query(
            self.session, lambda s: s.execute(stmt), "Failed to close reservation"
        )
        if result.rowcount != 1:
            return False
        safe_query(
            self.session, lambda s: s.refresh(reservation), "Failed to reload reservation"
        )
        return True

    def find_all(self) -> Sequence[ReservationDB]:
        return self._list(self._select(), "Failed to list reservations")

    def find_by_user(self, user_id: int) -> Sequence[ReservationDB]:
        return self._list(
            self._select().where(ReservationDB.user_id == user_id),
            "Failed to list reservations by user",
        )

    def find_active(self) -> Sequence[ReservationDB]:
        return self._list(
            self._select().where(ReservationDB.actual_return_date.is_(None)),
            "Failed to list active reservations",
        )

    def find_overdue(self, today: date) -> Sequence[ReservationDB]:
        """Active reservations whose expected return date is strictly before today."""
        return self._list(
            self._select().where(
                ReservationDB.expected_return_date < today,
                ReservationDB.actual_return_date.is_(None),
            ),
            "Failed to list overdue reservations",
        )

    def exists_active(self, user_id: int, book_external_id: int) -> bool:
        query = select(
            select(ReservationDB.id)
            .where(
                ReservationDB.user_id == user_id,
                ReservationDB.book_external_id == book_external_id,
                ReservationDB.actual_return_date.is_(None),
            )
            .exists()
        )
        return bool(
            safe_query(
                self.session,
                lambda s: s.execute(query).scalar(),
                "Failed to check for an active reservation",
            )
        )

    def count_active_by_book(self, book_external_id: int) -> int:
        query = (
            select(func.count())
            .select_from(ReservationDB)
            .where(
                ReservationDB.book_external_id == book_external_id,
                ReservationDB.actual_return_date.is_(None),
            )
        )
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one(),
            "Failed to count active reservations",
        )

    def find_late_fees(self, user_id: int) -> list[Decimal]:
        """Positive late fees charged to a user, in reservation order.

        Money is summed in Python: SQLite stores it as text.
        """
        query = (
            select(ReservationDB.late_fee)
            .where(ReservationDB.user_id == user_id, ReservationDB.late_fee.is_not(None))
            .order_by(ReservationDB.id)
        )
        fees = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to load late fees",
        )
        return [fee for fee in fees if fee > 0]
