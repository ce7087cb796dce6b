"""
SQLAlchemy database schema for the Book Lending MCP Server.

Three tables back the server:
1. books - the local catalog, keyed by the upstream catalog's external id
2. users - the user directory (read-only for the reservation core)
3. reservations - rentals of one book by one user

Invariants that must survive concurrent writers are enforced here rather than
in application code:
- A partial unique index allows a single open reservation per (user, book)
- A check constraint keeps available_quantity within [0, stock_quantity]
- A check constraint ties RETURNED status to a recorded return date
"""

import enum
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

CENTS = Decimal("0.01")


class ReservationStatusEnum(str, enum.Enum):
    """Database enum for reservation status."""

    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"


class Money(TypeDecorator):
    """
    Fixed-point money column with a scale of two.

    Native NUMERIC(12, 2) where the dialect supports decimals. SQLite has no
    decimal storage, so values are kept there as canonical strings and never
    pass through a binary float.
    """

    impl = Numeric(12, 2)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(12, 2, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
        return str(amount) if dialect.name == "sqlite" else amount

    def process_result_value(self, value, dialect):  # noqa: ARG002
        if value is None:
            return None
        return Decimal(str(value)).quantize(CENTS)


class Book(Base):
    """
    Books table - the local copy of the upstream catalog.

    MCP Usage:
    - Resource: library://books/list, library://books/{external_id}
    - Tools: create_reservation / return_book move available_quantity,
      sync_catalog and update_stock maintain the rest
    """

    __tablename__ = "books"

    external_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True,
                         autoincrement=False)
    title = Column(String(500), nullable=False)
    author_name = Column(JSON, nullable=False, default=list)
    price = Column(Money, nullable=False)
    available_quantity = Column(Integer, nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=True, default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="book")

    __table_args__ = (
        Index("idx_book_title", "title"),
        CheckConstraint("available_quantity >= 0", name="check_available_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="check_stock_non_negative"),
        CheckConstraint(
            "available_quantity <= stock_quantity", name="check_available_not_exceed_stock"
        ),
    )


class User(Base):
    """
    Users table - the user directory.

    The reservation core only ever reads these rows.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True)

    created_at = Column(DateTime, nullable=False, default=func.now())

    reservations = relationship("Reservation", back_populates="user")

    __table_args__ = (Index("idx_user_email", "email"),)


class Reservation(Base):
    """
    Reservations table - one rental of one book by one user.

    daily_rate and total_fee are snapshots taken at creation; later price
    changes on the book never alter them. late_fee stays NULL until return.
    """

    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    book_external_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("books.external_id"),
        nullable=False,
    )
    rental_days = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    expected_return_date = Column(Date, nullable=False)
    actual_return_date = Column(Date, nullable=True)
    daily_rate = Column(Money, nullable=False)
    total_fee = Column(Money, nullable=False)
    late_fee = Column(Money, nullable=True)
    status = Column(
        Enum(ReservationStatusEnum), nullable=False, default=ReservationStatusEnum.ACTIVE
    )

    created_at = Column(DateTime, nullable=False, default=func.now())

    user = relationship("User", back_populates="reservations")
    book = relationship("Book", back_populates="reservations")

    __table_args__ = (
        Index("idx_reservation_user", "user_id"),
        Index("idx_reservation_book_open", "book_external_id", "actual_return_date"),
        Index("idx_reservation_overdue", "expected_return_date", "actual_return_date"),
        # At most one open reservation per (user, book)
        Index(
            "uq_reservations_active_user_book",
            "user_id",
            "book_external_id",
            unique=True,
            sqlite_where=text("actual_return_date IS NULL"),
            postgresql_where=text("actual_return_date IS NULL"),
        ),
        CheckConstraint("rental_days >= 1", name="check_rental_days_positive"),
        CheckConstraint(
            "expected_return_date >= start_date", name="check_expected_after_start"
        ),
        CheckConstraint(
            "(status = 'RETURNED' AND actual_return_date IS NOT NULL) OR "
            "(status = 'ACTIVE' AND actual_return_date IS NULL)",
            name="check_status_matches_return_date",
        ),
    )
