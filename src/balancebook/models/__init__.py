"""SQLModel table exports."""

from .balance import Balance
from .snapshot import Snapshot
from .user import User

__all__ = ["Balance", "Snapshot", "User"]
