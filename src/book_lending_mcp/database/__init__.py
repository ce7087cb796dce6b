"""
Database package for the Book Lending MCP Server.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and transactional scopes (session.py)
- Repositories acting as the store ports of the reservation core

Services open one session scope per operation and hand the session to the
repositories, which flush but never commit.
"""

from .book_repository import BookRepository
from .repository import (
    BaseRepository,
    DuplicateError,
    RepositoryException,
    safe_query,
)
from .reservation_repository import ReservationRepository
from .schema import (
    Base,
    Book,
    Money,
    Reservation,
    ReservationStatusEnum,
    User,
)
from .session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
)
from .user_repository import UserRepository

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "BookRepository",
    "DatabaseManager",
    "DuplicateError",
    "Money",
    "RepositoryException",
    "Reservation",
    "ReservationRepository",
    "ReservationStatusEnum",
    "User",
    "UserRepository",
    "get_db_manager",
    "reset_db_manager",
    "safe_query",
]
