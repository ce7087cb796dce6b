"""
User repository implementation for the Book Lending MCP Server.

The user directory is read-only from the reservation core's point of view:
a lookup answers with the user row or ``None`` and never raises for a
missing user. Creation exists only for seeding and tests.
"""

from ..database.schema import User as UserDB
from .repository import BaseRepository


class UserRepository(BaseRepository[UserDB]):
    """Repository for the user directory."""

    @property
    def model_class(self):
        return UserDB

    @property
    def primary_key(self):
        return UserDB.id

    def get_user(self, user_id: int) -> UserDB | None:
        """
        Look up a user by id.

        Returns:
            The user row, or None when the directory has no such user
        """
        return self.get_by_id(user_id)

    def create_user(self, user_id: int, name: str, email: str) -> UserDB:
        """Add a user to the directory (seed data and tests)."""
        return self.save(UserDB(id=user_id, name=name, email=email))
