"""Registered user records."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import ClassVar

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from .types import UTCDateTime, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """A registered person; ``id_number`` is unique across all users."""

    __tablename__: ClassVar[str] = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(nullable=False, max_length=255)
    phone: str = Field(nullable=False, max_length=64)
    address: str = Field(nullable=False, max_length=512)
    id_number: str = Field(nullable=False, unique=True, index=True, max_length=128)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UTCDateTime(), nullable=False),
    )
