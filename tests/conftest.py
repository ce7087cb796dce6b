"""Test configuration and fixtures for the Book Lending MCP Server.

1. Isolated databases - every test gets its own SQLite file
2. Configuration isolation - BOOK_LENDING_* settings point at that file
3. Seed rows - the user and book used throughout the lifecycle tests
"""

from collections.abc import Generator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from book_lending_mcp.config import reset_config
from book_lending_mcp.database.schema import Book as BookDB
from book_lending_mcp.database.schema import Reservation as ReservationDB
from book_lending_mcp.database.schema import ReservationStatusEnum
from book_lending_mcp.database.schema import User as UserDB
from book_lending_mcp.database.session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
)
from book_lending_mcp.services.catalog_service import CatalogService
from book_lending_mcp.services.reservation_service import ReservationService

USER_ID = 1
BOOK_ID = 258027

# === Configuration Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_lending.db"


@pytest.fixture(autouse=True)
def isolated_config(
    test_db_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point the global configuration and database manager at a temporary file."""
    for var in ("BOOK_LENDING_DEBUG", "BOOK_LENDING_LOG_LEVEL", "BOOK_LENDING_SERVER_NAME"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("BOOK_LENDING_DATABASE_PATH", str(test_db_path))
    monkeypatch.setenv("BOOK_LENDING_CATALOG_API_URL", "http://catalog.test/api")
    reset_config()
    reset_db_manager()

    yield

    reset_db_manager()
    reset_config()


# === Database Fixtures ===


@pytest.fixture
def db_manager() -> DatabaseManager:
    """The global database manager with a fresh schema."""
    manager = get_db_manager()
    manager.init_database()
    return manager


@pytest.fixture
def seeded_db(db_manager: DatabaseManager) -> DatabaseManager:
    """User 1 and book 258027 (15.99 a day, 5 of 10 copies on the shelf)."""
    with db_manager.session_scope() as session:
        session.add(UserDB(id=USER_ID, name="Juan Pérez", email="juan@example.com"))
        session.add(
            BookDB(
                external_id=BOOK_ID,
                title="El Gran Libro",
                author_name=["Ana Autora"],
                price=Decimal("15.99"),
                available_quantity=5,
                stock_quantity=10,
            )
        )
    return db_manager


@pytest.fixture
def add_book(db_manager: DatabaseManager):
    """Factory inserting a book with the given stock and price."""

    def _add(external_id: int, price: str = "20.00", available: int = 3, stock: int = 3):
        with db_manager.session_scope() as session:
            session.add(
                BookDB(
                    external_id=external_id,
                    title=f"Libro {external_id}",
                    author_name=[],
                    price=Decimal(price),
                    available_quantity=available,
                    stock_quantity=stock,
                )
            )

    return _add


@pytest.fixture
def add_reservation(db_manager: DatabaseManager):
    """Factory inserting a reservation row directly, bypassing the service."""

    def _add(
        total_fee: str,
        late_fee: str | None = None,
        returned: bool = False,
        user_id: int = USER_ID,
        book_external_id: int = BOOK_ID,
        start_date: date | None = None,
        rental_days: int = 5,
    ) -> int:
        start = start_date or date(2024, 1, 1)
        expected = date.fromordinal(start.toordinal() + rental_days)
        with db_manager.session_scope() as session:
            row = ReservationDB(
                user_id=user_id,
                book_external_id=book_external_id,
                rental_days=rental_days,
                start_date=start,
                expected_return_date=expected,
                actual_return_date=expected if returned else None,
                daily_rate=Decimal("20.00"),
                total_fee=Decimal(total_fee),
                late_fee=Decimal(late_fee) if late_fee is not None else None,
                status=ReservationStatusEnum.RETURNED if returned else ReservationStatusEnum.ACTIVE,
                created_at=datetime(2024, 1, 1, 9, 0),
            )
            session.add(row)
            session.flush()
            return row.id

    return _add


# === Service Fixtures ===


@pytest.fixture
def service(seeded_db: DatabaseManager) -> ReservationService:
    return ReservationService(seeded_db)


@pytest.fixture
def catalog_service(db_manager: DatabaseManager) -> CatalogService:
    return CatalogService(
        db_manager, default_stock_quantity=10, default_book_price=Decimal("10.00")
    )
