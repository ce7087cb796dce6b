"""Book Lending MCP Resources Package

Resources are the read-only side of the server: the local catalog, the
reservations and the fees derived from them. State changes go through the
tools package instead.
"""

from .books import book_resources
from .reservations import reservation_resources

all_resources = book_resources + reservation_resources

__all__ = [
    "all_resources",
    "book_resources",
    "reservation_resources",
]
