"""Whole-store snapshot protocol."""

from __future__ import annotations

from typing import Protocol, Sequence

from ...models.balance import Balance
from ...models.user import User


class SnapshotRepository(Protocol):
    """Reads and replaces both collections as one unit."""

    def read_all(self) -> tuple[list[User], list[Balance]]:
        """Return detached copies of every user and balance."""
        ...

    def replace_all(self, users: Sequence[User], balances: Sequence[Balance]) -> None:
        """Clear both collections and insert the given records in one transaction."""
        ...
