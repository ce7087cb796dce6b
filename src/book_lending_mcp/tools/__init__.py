"""
MCP tools for the Book Lending Server.

Tools are the operations with side effects: renting and returning books,
and maintaining the local catalog. Each tool is a dictionary with its name,
description, input schema and async handler, collected in ``all_tools`` for
server registration.
"""

from .catalog import sync_catalog, update_stock
from .reservations import create_reservation, return_book

all_tools = [
    create_reservation,
    return_book,
    sync_catalog,
    update_stock,
]

__all__ = [
    "all_tools",
    "create_reservation",
    "return_book",
    "sync_catalog",
    "update_stock",
]
