"""
Book repository implementation for the Book Lending MCP Server.

The book store port of the reservation core. Besides plain lookups it owns
the two stock moves of the reservation lifecycle, written as conditional
UPDATE statements so the database (not a read-then-write in Python) decides
whether a copy is left:

    UPDATE books SET available_quantity = available_quantity - 1
    WHERE external_id = :id AND available_quantity > 0
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import update

from ..database.schema import Book as BookDB
from .repository import BaseRepository, safe_query


class BookRepository(BaseRepository[BookDB]):
    """Repository for the local book catalog."""

    @property
    def model_class(self):
        return BookDB

    @property
    def primary_key(self):
        return BookDB.external_id

    def find_by_external_id(self, external_id: int) -> BookDB | None:
        """Find a book by the upstream catalog id."""
        return self.get_by_id(external_id)

    def find_all(self) -> Sequence[BookDB]:
        return self.get_all()

    def decrement_available(self, external_id: int) -> bool:
        """
        Take one copy out of stock.

        Returns:
            True if a copy was taken, False if none was available
        """
        stmt = (
            update(BookDB)
            .where(BookDB.external_id == external_id, BookDB.available_quantity > 0)
            .values(
                available_quantity=BookDB.available_quantity - 1,
                updated_at=datetime.now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = safe_query(
            self.session, lambda s: s.execute(stmt), "Failed to decrement book stock"
        )
        return self._applied(result.rowcount, external_id)

    def increment_available(self, external_id: int) -> bool:
        """
        Put one copy back in stock.

        Returns:
            True if the book row was updated
        """
        stmt = (
            update(BookDB)
            .where(BookDB.external_id == external_id)
            .values(
                available_quantity=BookDB.available_quantity + 1,
                updated_at=datetime.now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = safe_query(
            self.session, lambda s: s.execute(stmt), "Failed to increment book stock"
        )
        return self._applied(result.rowcount, external_id)

    def set_stock(self, external_id: int, stock_quantity: int) -> bool:
        """
        Change the owned stock, keeping the rented-out copies rented.

        Both counters move in one statement, so a reservation committing
        meanwhile cannot be lost:

            available = :stock - (stock - available)

        Returns:
            False if the book is missing or more copies are on loan than :stock
        """
        rented = BookDB.stock_quantity - BookDB.available_quantity
        stmt = (
            update(BookDB)
            .where(BookDB.external_id == external_id, rented <= stock_quantity)
            .values(
                stock_quantity=stock_quantity,
                available_quantity=stock_quantity - rented,
                updated_at=datetime.now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = safe_query(
            self.session, lambda s: s.execute(stmt), "Failed to update book stock"
        )
        return self._applied(result.rowcount, external_id)

    def _applied(self, rowcount: int, external_id: int) -> bool:
        """Reload an in-session book row after a bulk stock update touched it."""
        if rowcount != 1:
            return False
        safe_query(
            self.session,
            lambda s: s.get(BookDB, external_id, populate_existing=True),
            "Failed to reload book after stock update",
        )
        return True
