"""Whole-store read and replace for export/import."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...errors import ConstraintViolation
from ...models.balance import Balance
from ...models.user import User
from ..database import SessionFactory


class SQLModelSnapshotRepository:
    """Reads or replaces the users and balances tables together."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def read_all(self) -> tuple[list[User], list[Balance]]:
        """Load both collections in a single session."""
        with self.session_factory() as session:
            users = list(session.exec(select(User).order_by(User.created_at)).all())  # type: ignore[arg-type]
            balances = list(
                session.exec(select(Balance).order_by(Balance.created_at)).all()  # type: ignore[arg-type]
            )
            session.expunge_all()
        return users, balances

    def replace_all(self, users: Sequence[User], balances: Sequence[Balance]) -> None:
        """Delete every row and insert the given records.

        Everything happens in one transaction: on any failure the session is
        rolled back and the previous rows remain.
        """
        try:
            with self.session_factory() as session:
                connection = session.connection()
                connection.execute(delete(Balance))
                connection.execute(delete(User))
                session.add_all([User(**user.model_dump()) for user in users])
                session.flush()
                session.add_all([Balance(**balance.model_dump()) for balance in balances])
                session.flush()
        except IntegrityError as exc:
            raise ConstraintViolation(
                "import", f"Imported records violate a uniqueness constraint: {exc.orig}"
            ) from exc


__all__ = ["SQLModelSnapshotRepository"]
