"""Balance repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.balance import Balance


class BalanceRepository(Protocol):
    """Repository for monthly balance entries."""

    def create(self, balance: Balance) -> Balance:
        """Insert a balance; raises ConstraintViolation on a duplicate (user, month)."""
        ...

    def get_by_id(self, balance_id: str) -> Optional[Balance]:
        ...

    def list_all(self) -> list[Balance]:
        ...

    def list_by_user(self, user_id: str) -> list[Balance]:
        """All balances recorded for one user id."""
        ...

    def upsert(self, balance: Balance) -> Balance:
        """Replace the record with the same id, inserting it if absent."""
        ...

    def count(self) -> int:
        ...
