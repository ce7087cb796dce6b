"""
Fee arithmetic for reservations.

Pure functions over ``Decimal``. Amounts are rounded half-up to cents;
binary floats are refused so results are exact to the cent.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..database.schema import CENTS

# Share of the book price charged per day late
LATE_FEE_RATE = Decimal("0.15")


def round_half_up(amount: Decimal) -> Decimal:
    """Round an amount to cents, halves away from zero."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _money(value: Decimal | int, name: str) -> Decimal:
    if isinstance(value, float):
        raise TypeError(f"{name} must be a Decimal, not a float")
    amount = Decimal(value)
    if amount < 0:
        raise ValueError(f"{name} must not be negative")
    return amount


def base_fee(daily_rate: Decimal, rental_days: int) -> Decimal:
    """
    Rental fee for the whole period.

    Example:
        >>> base_fee(Decimal("10.00"), 5)
        Decimal('50.00')
    """
    rate = _money(daily_rate, "daily_rate")
    if rental_days < 1:
        raise ValueError("rental_days must be at least 1")
    return round_half_up(rate * rental_days)


def late_fee(book_price: Decimal, days_late: int) -> Decimal:
    """
    Penalty for returning a book ``days_late`` days after it was due.

    Only defined for at least one day late; callers charge nothing otherwise.

    Example:
        >>> late_fee(Decimal("20.00"), 3)
        Decimal('9.00')
    """
    price = _money(book_price, "book_price")
    if days_late < 1:
        raise ValueError("days_late must be at least 1")
    return round_half_up(price * LATE_FEE_RATE * days_late)


def days_late(expected_return_date: date, actual_return_date: date) -> int:
    """Whole calendar days past the expected return date, never negative."""
    return max((actual_return_date - expected_return_date).days, 0)
