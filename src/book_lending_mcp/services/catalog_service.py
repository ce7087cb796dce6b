"""
Catalog service for the Book Lending MCP Server.

Keeps the local book table in step with the upstream catalog and lets an
operator adjust stock. Stock changes never touch the copies that are out on
loan: those are owned by the reservation lifecycle.
"""

import logging
from decimal import Decimal

from pydantic import BaseModel

from ..config import get_config
from ..database.book_repository import BookRepository
from ..database.schema import Book as BookDB
from ..database.session import DatabaseManager, get_db_manager
from ..models.book import Book
from .catalog_client import CatalogClient
from .errors import BookNotFoundError, InvalidStockError

logger = logging.getLogger(__name__)


class SyncResult(BaseModel):
    """Outcome of a catalog sync."""

    created: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated


class CatalogService:
    """
    Local catalog operations.

    Args:
        db_manager: Source of transactional session scopes
        default_stock_quantity: Stock given to books first seen in a sync
        default_book_price: Price for synced books the catalog leaves unpriced
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        default_stock_quantity: int = 10,
        default_book_price: Decimal = Decimal("10.00"),
    ):
        self.db_manager = db_manager
        self.default_stock_quantity = default_stock_quantity
        self.default_book_price = default_book_price

    def sync_from_catalog(self, client: CatalogClient) -> SyncResult:
        """
        Upsert every upstream book into the local catalog.

        New books start fully in stock. Existing books get their title,
        authors and price refreshed; their stock counters are left alone.

        Raises:
            CatalogUnavailableError: If the catalog cannot be read
        """
        catalog_books = client.fetch_books()
        result = SyncResult()

        with self.db_manager.session_scope() as session:
            books = BookRepository(session)
            for entry in catalog_books:
                book = books.find_by_external_id(entry.id)
                if book is None:
                    price = entry.price if entry.price is not None else self.default_book_price
                    books.save(
                        BookDB(
                            external_id=entry.id,
                            title=entry.title,
                            author_name=entry.author_name,
                            price=price,
                            stock_quantity=self.default_stock_quantity,
                            available_quantity=self.default_stock_quantity,
                        )
                    )
                    result.created += 1
                else:
                    book.title = entry.title
                    book.author_name = entry.author_name
                    if entry.price is not None:
                        book.price = entry.price
                    result.updated += 1

        logger.info(
            "Catalog sync finished: %d created, %d updated", result.created, result.updated
        )
        return result

    def list_books(self) -> list[Book]:
        with self.db_manager.session_scope() as session:
            return [Book.model_validate(b) for b in BookRepository(session).find_all()]

    def get_book(self, external_id: int) -> Book:
        with self.db_manager.session_scope() as session:
            book = BookRepository(session).find_by_external_id(external_id)
            if book is None:
                raise BookNotFoundError(external_id)
            return Book.model_validate(book)

    def update_stock(self, external_id: int, stock_quantity: int) -> Book:
        """
        Set the number of copies owned.

        Copies out on loan stay out on loan, so the shelf count becomes the
        new stock minus the rented copies.

        Raises:
            BookNotFoundError: If the book is not in the local catalog
            InvalidStockError: If the new stock is below the rented copies
        """
        if stock_quantity < 0:
            raise ValueError("stock_quantity must not be negative")

        with self.db_manager.session_scope() as session:
            books = BookRepository(session)
            book = books.find_by_external_id(external_id)
            if book is None:
                raise BookNotFoundError(external_id)

            if not books.set_stock(external_id, stock_quantity):
                session.refresh(book)
                raise InvalidStockError(book.stock_quantity - book.available_quantity)

            rented = book.stock_quantity - book.available_quantity

            logger.info(
                "Stock of book %s set to %d (%d on loan)", external_id, stock_quantity, rented
            )
            return Book.model_validate(book)


def get_catalog_service() -> CatalogService:
    """Build a service bound to the global database manager and configuration."""
    config = get_config()
    return CatalogService(
        get_db_manager(),
        default_stock_quantity=config.default_stock_quantity,
        default_book_price=config.default_book_price,
    )


def get_catalog_client() -> CatalogClient:
    """Build a client for the configured upstream catalog."""
    config = get_config()
    return CatalogClient(config.catalog_api_url, timeout=config.catalog_api_timeout)
