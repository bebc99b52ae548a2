"""Monthly balance entries."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from .types import UTCDateTime, utcnow
from .user import new_id


class Balance(SQLModel, table=True):
    """One balance amount recorded for a user and a ``YYYY-MM`` month.

    ``user_id`` is a soft reference: there is no foreign key, so a balance
    survives the disappearance of its user.
    """

    __tablename__: ClassVar[str] = "balances"
    __table_args__: ClassVar[tuple] = (
        UniqueConstraint("user_id", "month", name="uq_balances_user_month"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(nullable=False, index=True, max_length=36)
    amount: float = Field(nullable=False, description="Positive amount for the month")
    month: str = Field(nullable=False, index=True, max_length=7, description="YYYY-MM")
    description: Optional[str] = Field(default=None, max_length=1024)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UTCDateTime(), nullable=False),
    )
