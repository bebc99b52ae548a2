"""Repository protocol definitions for domain layer."""

from .balance import BalanceRepository
from .snapshot import SnapshotRepository
from .user import UserRepository

__all__ = ["BalanceRepository", "SnapshotRepository", "UserRepository"]
