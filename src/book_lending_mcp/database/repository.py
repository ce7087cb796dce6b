"""
Repository pattern implementation for the Book Lending MCP Server.

Repositories are the persistence ports of the reservation core. They work on
a session handed to them by the caller and never commit: the service that
owns the operation decides the transaction boundary, so a reservation write
and its stock change always land together.

The base repository provides lookups shared by every entity, while the
specialized repositories add the predicates the reservation lifecycle needs.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .schema import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")


class RepositoryException(Exception):
    """Base exception for repository operations."""


class DuplicateError(RepositoryException):
    """Raised when attempting to create a duplicate entity."""


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a query, converting driver failures into ``RepositoryException``.

    Args:
        session: The database session
        query_func: Function that performs the query
        error_msg: Prefix for the raised error

    Raises:
        RepositoryException: If the query fails at the database level
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise RepositoryException(f"{error_msg}: {e!s}") from e


class BaseRepository(ABC, Generic[ModelType]):
    """
    Abstract base repository providing common lookups.

    All queries go through safe_query so callers only ever see
    RepositoryException for infrastructure failures.
    """

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def primary_key(self) -> Any:
        """Return the primary key column of the model."""

    def get_by_id(self, id: Any) -> ModelType | None:
        """
        Get entity by primary key.

        Returns:
            The ORM row or None if not found
        """
        return safe_query(
            self.session,
            lambda s: s.get(self.model_class, id),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def get_all(self) -> Sequence[ModelType]:
        """Get all entities ordered by primary key."""
        query = select(self.model_class).order_by(self.primary_key)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            f"Failed to list {self.model_class.__name__}",
        )

    def save(self, db_obj: ModelType) -> ModelType:
        """
        Add an entity to the session and flush it.

        Flushing assigns generated keys and surfaces constraint violations
        as IntegrityError while the caller's transaction is still open.
        """
        self.session.add(db_obj)
        self.session.flush()
        return db_obj

    def exists(self, id: Any) -> bool:
        """Check if entity exists by primary key."""
        query = select(func.count()).select_from(self.model_class).where(self.primary_key == id)
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return bool(count)
