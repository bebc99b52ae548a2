"""Concrete repository implementations using SQLModel."""

from .balance import SQLModelBalanceRepository
from .snapshot import SQLModelSnapshotRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelBalanceRepository",
    "SQLModelSnapshotRepository",
    "SQLModelUserRepository",
]
