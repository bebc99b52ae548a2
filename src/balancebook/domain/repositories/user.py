"""User repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.user import User


class UserRepository(Protocol):
    """Repository for registered users."""

    def create(self, user: User) -> User:
        """Insert a user; raises ConstraintViolation on a duplicate id number."""
        ...

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve a user by ID."""
        ...

    def get_by_id_number(self, id_number: str) -> Optional[User]:
        """Retrieve a user by their unique id number."""
        ...

    def list_all(self) -> list[User]:
        """List all users."""
        ...

    def count(self) -> int:
        ...
