"""
Domain errors of the book lending core.

Each error carries an ``ErrorKind`` so the MCP layer can report it in a
structured way, and a Spanish message that clients already match on.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure kinds surfaced to callers."""

    USER_NOT_FOUND = "USER_NOT_FOUND"
    BOOK_NOT_FOUND = "BOOK_NOT_FOUND"
    BOOK_UNAVAILABLE = "BOOK_UNAVAILABLE"
    DUPLICATE_ACTIVE_RESERVATION = "DUPLICATE_ACTIVE_RESERVATION"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    ALREADY_RETURNED = "ALREADY_RETURNED"
    INVALID_STOCK = "INVALID_STOCK"
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"


class LendingError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserNotFoundError(LendingError):
    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, user_id: int):
        super().__init__(f"Usuario no encontrado con ID: {user_id}")
        self.user_id = user_id


class BookNotFoundError(LendingError):
    """Raised when the local catalog has no book for an external id.

    Without an id the short message used by the availability check is kept.
    """

    kind = ErrorKind.BOOK_NOT_FOUND

    def __init__(self, external_id: int | None = None):
        if external_id is None:
            message = "Libro no encontrado"
        else:
            message = f"Libro no encontrado con ID externo: {external_id}"
        super().__init__(message)
        self.external_id = external_id


class BookUnavailableError(LendingError):
    kind = ErrorKind.BOOK_UNAVAILABLE

    def __init__(self, stock: int):
        super().__init__(f"Libro no disponible. Stock actual: {stock}")
        self.stock = stock


class DuplicateActiveReservationError(LendingError):
    kind = ErrorKind.DUPLICATE_ACTIVE_RESERVATION

    def __init__(self):
        super().__init__("El usuario ya tiene una reserva activa para este libro")


class ReservationNotFoundError(LendingError):
    kind = ErrorKind.RESERVATION_NOT_FOUND

    def __init__(self, reservation_id: int | None = None):
        if reservation_id is None:
            message = "Reserva no encontrada"
        else:
            message = f"Reserva no encontrada con ID: {reservation_id}"
        super().__init__(message)
        self.reservation_id = reservation_id


class AlreadyReturnedError(LendingError):
    kind = ErrorKind.ALREADY_RETURNED

    def __init__(self):
        super().__init__("La reserva ya fue devuelta")


class InvalidStockError(LendingError):
    """Raised when a stock update would leave fewer copies than are rented out."""

    kind = ErrorKind.INVALID_STOCK

    def __init__(self, rented: int):
        super().__init__(
            f"La cantidad de stock no puede ser menor a los libros reservados ({rented})"
        )
        self.rented = rented


class CatalogUnavailableError(LendingError):
    kind = ErrorKind.CATALOG_UNAVAILABLE

    def __init__(self, detail: str):
        super().__init__(f"Error al sincronizar libros desde la API externa: {detail}")
        self.detail = detail
