"""SQLModel implementation of User repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...errors import ConstraintViolation
from ...models.user import User
from ..database import SessionFactory


class SQLModelUserRepository:
    """SQLModel-based user repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def create(self, user: User) -> User:
        """Insert a new user."""
        try:
            with self.session_factory() as session:
                session.add(user)
                session.commit()
                session.refresh(user)
                session.expunge(user)
        except IntegrityError as exc:
            raise ConstraintViolation(
                "users", f"A user with id number {user.id_number!r} already exists"
            ) from exc
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve a user by ID."""
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_id_number(self, id_number: str) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.id_number == id_number)).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[User]:
        """List all users, oldest registration first."""
        with self.session_factory() as session:
            statement = select(User).order_by(User.created_at)  # type: ignore[arg-type]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def count(self) -> int:
        with self.session_factory() as session:
            return session.exec(select(func.count()).select_from(User)).one()


__all__ = ["SQLModelUserRepository"]
