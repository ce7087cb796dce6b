"""
Book Lending MCP Server Package.

An MCP (Model Context Protocol) server for a small book-lending back office:
a local book catalog synced from an external API, rentals against a user
directory, and the rental and late-return fees they produce.

Key Components:
- models: Pydantic models crossing the MCP boundary
- database: SQLAlchemy schema, sessions and repositories
- services: reservation lifecycle, fees and catalog sync
- config: configuration management with pydantic-settings
- resources: MCP resources (read-only endpoints)
- tools: MCP tools (operations with side effects)
"""

__version__ = "0.1.0"

from . import database

__all__ = [
    "__version__",
    "database",
]
