"""SQLModel implementation of Balance repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...errors import ConstraintViolation
from ...models.balance import Balance
from ..database import SessionFactory


def _duplicate_month(balance: Balance) -> ConstraintViolation:
    return ConstraintViolation(
        "balances",
        f"User {balance.user_id!r} already has a balance for {balance.month}",
    )


class SQLModelBalanceRepository:
    """SQLModel-based balance repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def create(self, balance: Balance) -> Balance:
        """Insert a new balance entry."""
        try:
            with self.session_factory() as session:
                session.add(balance)
                session.commit()
                session.refresh(balance)
                session.expunge(balance)
        except IntegrityError as exc:
            raise _duplicate_month(balance) from exc
        return balance

    def get_by_id(self, balance_id: str) -> Optional[Balance]:
        with self.session_factory() as session:
            obj = session.get(Balance, balance_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Balance]:
        with self.session_factory() as session:
            statement = select(Balance).order_by(Balance.created_at)  # type: ignore[arg-type]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_by_user(self, user_id: str) -> list[Balance]:
        """Get all balances for one user, ordered by month."""
        with self.session_factory() as session:
            statement = (
                select(Balance)
                .where(Balance.user_id == user_id)
                .order_by(Balance.month)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def upsert(self, balance: Balance) -> Balance:
        """Replace the stored row with the same id, inserting when none exists.

        The caller's instance is never attached; a fresh copy is merged so a
        detached object from an earlier session can be passed back in.
        """
        try:
            with self.session_factory() as session:
                merged = session.merge(Balance(**balance.model_dump()))
                session.commit()
                session.refresh(merged)
                session.expunge(merged)
        except IntegrityError as exc:
            raise _duplicate_month(balance) from exc
        return merged

    def count(self) -> int:
        with self.session_factory() as session:
            return session.exec(select(func.count()).select_from(Balance)).one()


__all__ = ["SQLModelBalanceRepository"]
