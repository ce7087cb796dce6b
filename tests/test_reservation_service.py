"""
Tests for the reservation lifecycle service.

Covers creation and return of reservations with their stock moves, the
exact error messages clients rely on, the reporting reads, and the
invariants every stored reservation must satisfy.
"""

import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest
from sqlalchemy import func, select

from book_lending_mcp.database.schema import Book as BookDB
from book_lending_mcp.database.schema import Reservation as ReservationDB
from book_lending_mcp.database.schema import ReservationStatusEnum
from book_lending_mcp.models.reservation import (
    ReservationRequest,
    ReservationStatus,
    ReturnRequest,
)
from book_lending_mcp.services.catalog_client import CatalogBook, CatalogClient
from book_lending_mcp.services.catalog_service import CatalogService
from book_lending_mcp.services.errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookUnavailableError,
    DuplicateActiveReservationError,
    ErrorKind,
    ReservationNotFoundError,
    UserNotFoundError,
)
from book_lending_mcp.services.fees import base_fee, late_fee
from book_lending_mcp.services.reservation_service import ReservationService

USER_ID = 1
BOOK_ID = 258027
TODAY = date.today()


def _request(book_external_id: int = BOOK_ID, rental_days: int = 7, start: date = TODAY):
    return ReservationRequest(
        user_id=USER_ID,
        book_external_id=book_external_id,
        rental_days=rental_days,
        start_date=start,
    )


def _available(db_manager, external_id: int = BOOK_ID) -> int:
    with db_manager.session_scope() as session:
        return session.get(BookDB, external_id).available_quantity


def _stored(db_manager, reservation_id: int) -> ReservationDB:
    with db_manager.session_scope() as session:
        return session.get(ReservationDB, reservation_id)


def _reservation_count(db_manager) -> int:
    with db_manager.session_scope() as session:
        return session.execute(select(func.count()).select_from(ReservationDB)).scalar_one()


class TestCreateReservation:
    def test_create_success(self, seeded_db):
        created_at = datetime(2024, 3, 1, 10, 30)
        service = ReservationService(seeded_db, now=lambda: created_at)

        view = service.create(_request())

        assert view.id is not None
        assert view.user_id == USER_ID
        assert view.user_name == "Juan Pérez"
        assert view.book_external_id == BOOK_ID
        assert view.book_title == "El Gran Libro"
        assert view.start_date == TODAY
        assert view.expected_return_date == TODAY + timedelta(days=7)
        assert view.actual_return_date is None
        assert view.daily_rate == Decimal("15.99")
        assert view.total_fee == Decimal("111.93")
        assert view.late_fee is None
        assert view.status == ReservationStatus.ACTIVE
        assert view.created_at == created_at

        stored = _stored(seeded_db, view.id)
        assert stored.total_fee == Decimal("111.93")
        assert stored.daily_rate == Decimal("15.99")
        assert stored.status == ReservationStatusEnum.ACTIVE
        assert _available(seeded_db) == 4

    def test_user_not_found(self, service, seeded_db):
        with pytest.raises(UserNotFoundError) as exc_info:
            service.create(_request().model_copy(update={"user_id": 99}))

        assert str(exc_info.value) == "Usuario no encontrado con ID: 99"
        assert exc_info.value.kind == ErrorKind.USER_NOT_FOUND
        assert _reservation_count(seeded_db) == 0
        assert _available(seeded_db) == 5

    def test_user_is_checked_before_book(self, service):
        request = ReservationRequest(
            user_id=99, book_external_id=999, rental_days=3, start_date=TODAY
        )
        with pytest.raises(UserNotFoundError):
            service.create(request)

    def test_book_not_found(self, service, seeded_db):
        with pytest.raises(BookNotFoundError) as exc_info:
            service.create(_request(book_external_id=999))

        assert str(exc_info.value) == "Libro no encontrado con ID externo: 999"
        assert _reservation_count(seeded_db) == 0

    def test_book_unavailable(self, service, seeded_db, add_book):
        add_book(111, available=0, stock=2)

        with pytest.raises(BookUnavailableError) as exc_info:
            service.create(_request(book_external_id=111))

        assert str(exc_info.value) == "Libro no disponible. Stock actual: 0"
        assert exc_info.value.stock == 0
        assert _reservation_count(seeded_db) == 0
        assert _available(seeded_db, 111) == 0

    def test_duplicate_active_reservation(self, service, seeded_db):
        service.create(_request())

        with pytest.raises(DuplicateActiveReservationError) as exc_info:
            service.create(_request(rental_days=3))

        assert str(exc_info.value) == "El usuario ya tiene una reserva activa para este libro"
        assert _reservation_count(seeded_db) == 1
        assert _available(seeded_db) == 4

    def test_same_book_can_be_rented_again_after_return(self, service, seeded_db):
        first = service.create(_request())
        service.return_book(first.id, ReturnRequest(return_date=TODAY + timedelta(days=2)))

        second = service.create(_request(rental_days=3))

        assert second.id != first.id
        assert second.status == ReservationStatus.ACTIVE
        assert _available(seeded_db) == 4

    def test_last_copy_can_be_rented(self, service, seeded_db, add_book):
        add_book(222, price="5.00", available=1, stock=1)

        view = service.create(_request(book_external_id=222, rental_days=2))

        assert view.total_fee == Decimal("10.00")
        assert _available(seeded_db, 222) == 0

    def test_daily_rate_is_a_snapshot(self, service, seeded_db):
        view = service.create(_request())

        with seeded_db.session_scope() as session:
            session.get(BookDB, BOOK_ID).price = Decimal("30.00")

        reread = service.get_by_id(view.id)
        assert reread.daily_rate == Decimal("15.99")
        assert reread.total_fee == Decimal("111.93")


class TestReturnBook:
    def test_return_on_time(self, service, seeded_db):
        created = service.create(_request())
        assert _available(seeded_db) == 4

        view = service.return_book(
            created.id, ReturnRequest(return_date=TODAY + timedelta(days=7))
        )

        assert view.late_fee == Decimal("0.00")
        assert view.status == ReservationStatus.RETURNED
        assert view.actual_return_date == TODAY + timedelta(days=7)
        assert view.total_fee == Decimal("111.93")
        assert _available(seeded_db) == 5

    def test_early_return_has_no_late_fee(self, service):
        created = service.create(_request())

        view = service.return_book(
            created.id, ReturnRequest(return_date=TODAY + timedelta(days=1))
        )

        assert view.late_fee == 0

    def test_return_late(self, service, seeded_db):
        created = service.create(_request())

        view = service.return_book(
            created.id, ReturnRequest(return_date=TODAY + timedelta(days=10))
        )

        assert view.late_fee == Decimal("7.20")
        assert view.status == ReservationStatus.RETURNED
        # The view reports base plus late fee, storage keeps the base
        assert view.total_fee == Decimal("119.13")
        assert _stored(seeded_db, created.id).total_fee == Decimal("111.93")
        assert _stored(seeded_db, created.id).late_fee == Decimal("7.20")
        assert _available(seeded_db) == 5

    def test_late_fee_uses_current_book_price(self, service, seeded_db):
        created = service.create(_request())
        with seeded_db.session_scope() as session:
            session.get(BookDB, BOOK_ID).price = Decimal("20.00")

        view = service.return_book(
            created.id, ReturnRequest(return_date=TODAY + timedelta(days=10))
        )

        assert view.late_fee == Decimal("9.00")
        assert view.daily_rate == Decimal("15.99")
        assert view.total_fee == Decimal("120.93")
        assert _stored(seeded_db, created.id).total_fee == Decimal("111.93")

    def test_late_fee_follows_price_refreshed_by_catalog_sync(self, service, seeded_db):
        created = service.create(_request())
        client = Mock(spec=CatalogClient)
        client.fetch_books.return_value = [
            CatalogBook(id=BOOK_ID, title="El Gran Libro", price=Decimal("20.00"))
        ]
        CatalogService(seeded_db).sync_from_catalog(client)

        view = service.return_book(
            created.id, ReturnRequest(return_date=TODAY + timedelta(days=10))
        )

        assert view.late_fee == Decimal("9.00")

    def test_reservation_not_found(self, service):
        with pytest.raises(ReservationNotFoundError) as exc_info:
            service.return_book(999, ReturnRequest(return_date=TODAY))

        assert str(exc_info.value) == "Reserva no encontrada con ID: 999"

    def test_already_returned(self, service, seeded_db):
        created = service.create(_request())
        service.return_book(created.id, ReturnRequest(return_date=TODAY + timedelta(days=7)))

        with pytest.raises(AlreadyReturnedError) as exc_info:
            service.return_book(created.id, ReturnRequest(return_date=TODAY + timedelta(days=9)))

        assert str(exc_info.value) == "La reserva ya fue devuelta"
        assert _available(seeded_db) == 5
        assert _stored(seeded_db, created.id).late_fee == Decimal("0.00")

    def test_return_before_start_is_not_checked(self, service):
        created = service.create(_request())

        view = service.return_book(created.id, ReturnRequest(return_date=TODAY - timedelta(days=1)))

        assert view.status == ReservationStatus.RETURNED
        assert view.late_fee == 0


class TestReads:
    def test_get_by_id(self, service):
        created = service.create(_request())

        assert service.get_by_id(created.id) == created

    def test_get_by_id_not_found(self, service):
        with pytest.raises(ReservationNotFoundError, match="Reserva no encontrada con ID: 7"):
            service.get_by_id(7)

    def test_lists(self, service, add_book):
        add_book(301)
        add_book(302)
        first = service.create(_request())
        second = service.create(_request(book_external_id=301))
        third = service.create(_request(book_external_id=302))
        service.return_book(second.id, ReturnRequest(return_date=TODAY))

        assert [v.id for v in service.list_all()] == [first.id, second.id, third.id]
        assert [v.id for v in service.list_active()] == [first.id, third.id]
        assert [v.id for v in service.list_by_user(USER_ID)] == [first.id, second.id, third.id]
        assert service.list_by_user(42) == []

    def test_list_overdue_is_strictly_before_today(self, seeded_db, add_book, add_reservation):
        add_book(401)
        add_book(402)
        today = date(2024, 1, 20)
        service = ReservationService(seeded_db, today=lambda: today)

        overdue = add_reservation("100.00", start_date=date(2024, 1, 1), rental_days=5)
        add_reservation(
            "100.00", book_external_id=401, start_date=date(2024, 1, 15), rental_days=5
        )
        add_reservation(
            "100.00",
            returned=True,
            book_external_id=402,
            start_date=date(2024, 1, 1),
            rental_days=2,
        )

        assert [v.id for v in service.list_overdue()] == [overdue]

    def test_final_total_adds_late_fee(self, service, add_reservation):
        reservation_id = add_reservation("100.00", late_fee="15.00", returned=True)

        assert service.final_total(reservation_id) == Decimal("115.00")

    def test_final_total_without_late_fee(self, service, add_reservation):
        reservation_id = add_reservation("100.00")

        assert service.final_total(reservation_id) == Decimal("100.00")

    def test_final_total_not_found(self, service):
        with pytest.raises(ReservationNotFoundError) as exc_info:
            service.final_total(404)

        assert str(exc_info.value) == "Reserva no encontrada"

    def test_pending_late_fees(self, service, add_reservation):
        add_reservation("100.00", late_fee="15.00", returned=True)

        assert service.pending_late_fees(USER_ID) == Decimal("15.00")

    def test_pending_late_fees_ignores_zero(self, service, add_reservation):
        add_reservation("100.00", late_fee="0.00", returned=True)

        assert service.pending_late_fees(USER_ID) == 0

    def test_pending_late_fees_sums_all_reservations(self, service, add_book, add_reservation):
        add_book(501)
        add_book(502)
        add_reservation("50.00", late_fee="3.15", returned=True)
        add_reservation("50.00", late_fee="0.00", returned=True, book_external_id=501)
        add_reservation("50.00", late_fee="4.50", returned=True, book_external_id=502)

        assert service.pending_late_fees(USER_ID) == Decimal("7.65")

    def test_pending_late_fees_for_user_without_reservations(self, service):
        assert service.pending_late_fees(77) == Decimal("0.00")

    def test_is_book_available(self, service):
        assert service.is_book_available(BOOK_ID) is True

    def test_is_book_available_counts_open_reservations(
        self, service, add_book, add_reservation
    ):
        add_book(601, available=1, stock=2)
        add_reservation("10.00", book_external_id=601)

        assert service.is_book_available(601) is False

    def test_is_book_available_not_found(self, service):
        with pytest.raises(BookNotFoundError) as exc_info:
            service.is_book_available(999)

        assert str(exc_info.value) == "Libro no encontrado"


class TestInvariants:
    @pytest.mark.parametrize("seed", range(8))
    def test_stored_reservation_invariants(self, seed, seeded_db):
        rng = random.Random(seed)
        rental_days = rng.randint(1, 30)
        start = TODAY - timedelta(days=rng.randint(0, 60))
        return_offset = rng.randint(0, 45)
        service = ReservationService(seeded_db)

        created = service.create(_request(rental_days=rental_days, start=start))
        returned = service.return_book(
            created.id, ReturnRequest(return_date=start + timedelta(days=return_offset))
        )
        row = _stored(seeded_db, created.id)

        assert (row.status == ReservationStatusEnum.RETURNED) == (
            row.actual_return_date is not None
        )
        assert (row.expected_return_date - row.start_date).days == rental_days
        assert row.total_fee == base_fee(row.daily_rate, rental_days)
        late_days = (row.actual_return_date - row.expected_return_date).days
        if late_days <= 0:
            assert row.late_fee == 0
        else:
            assert row.late_fee == late_fee(Decimal("15.99"), late_days)
        assert returned.total_fee == row.total_fee + row.late_fee

    @pytest.mark.parametrize("rounds", [1, 3])
    def test_create_then_return_preserves_stock(self, rounds, service, seeded_db):
        before = _available(seeded_db)

        for i in range(rounds):
            created = service.create(_request(rental_days=i + 1))
            assert _available(seeded_db) == before - 1
            service.return_book(created.id, ReturnRequest(return_date=TODAY + timedelta(days=i)))

        assert _available(seeded_db) == before

    def test_at_most_one_active_reservation_per_pair(self, service, seeded_db):
        service.create(_request())
        for _ in range(3):
            with pytest.raises(DuplicateActiveReservationError):
                service.create(_request())

        with seeded_db.session_scope() as session:
            active = session.execute(
                select(func.count())
                .select_from(ReservationDB)
                .where(
                    ReservationDB.user_id == USER_ID,
                    ReservationDB.book_external_id == BOOK_ID,
                    ReservationDB.status == ReservationStatusEnum.ACTIVE,
                )
            ).scalar_one()
        assert active == 1
