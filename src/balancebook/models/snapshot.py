"""Point-in-time copy of both collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .balance import Balance
from .types import utcnow
from .user import User


@dataclass
class Snapshot:
    """Detached users and balances plus the moment they were read."""

    users: list[User] = field(default_factory=list)
    balances: list[Balance] = field(default_factory=list)
    export_date: datetime = field(default_factory=utcnow)
