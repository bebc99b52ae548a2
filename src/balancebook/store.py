"""The persistence store: users and balances behind one explicit handle."""

from __future__ import annotations

import threading
from typing import Any, Mapping, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError

from .config import BaseConfig
from .errors import ConstraintViolation, NotFound, StorageUnavailable
from .domain.repositories import BalanceRepository, SnapshotRepository, UserRepository
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelBalanceRepository,
    SQLModelSnapshotRepository,
    SQLModelUserRepository,
)
from .logging_config import get_logger
from .models import Balance, Snapshot, User
from .models.types import utcnow
from .services.data_transfer import snapshot_from_dict

logger = get_logger(__name__)


class BalanceStore:
    """Local store for users and their monthly balances.

    The database is opened lazily on first use; the schema is created if
    missing. Writes are serialized through a single writer lock so a bulk
    import never interleaves with single-record inserts.

    Example:
        with BalanceStore(config) as store:
            user = store.add_user(name="Ada", phone="555", address="1 Main", id_number="123")
            store.add_balance(user_id=user.id, amount=100.0, month="2024-01")
            snapshot = store.export_snapshot()
    """

    def __init__(
        self,
        config: Optional[BaseConfig] = None,
        *,
        database_url: Optional[str] = None,
    ) -> None:
        self.config = config or BaseConfig()
        self.database_url = database_url or self.config.DATABASE_URL
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[SessionFactory] = None
        self._users: Optional[UserRepository] = None
        self._balances: Optional[BalanceRepository] = None
        self._snapshots: Optional[SnapshotRepository] = None
        self._open_lock = threading.Lock()
        self._write_lock = threading.RLock()

    # -- lifecycle ---------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "BalanceStore":
        """Create the engine and schema if not done yet. Idempotent."""
        with self._open_lock:
            if self._engine is not None:
                return self
            try:
                engine = create_db_engine(self.config, self.database_url)
            except (ArgumentError, ImportError) as exc:
                logger.error("Could not create database engine", exc_info=True)
                raise StorageUnavailable(f"Cannot open database at {self.database_url}") from exc
            try:
                init_database(engine, self.config.SCHEMA_VERSION)
            except Exception:
                engine.dispose()
                raise
            factory = create_session_factory(engine)
            self._users = SQLModelUserRepository(factory)
            self._balances = SQLModelBalanceRepository(factory)
            self._snapshots = SQLModelSnapshotRepository(factory)
            self._session_factory = factory
            self._engine = engine
            logger.debug("Store opened", extra={"url": self.database_url})
        return self

    def close(self) -> None:
        """Dispose of the engine; the next operation reopens it."""
        with self._open_lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._users = self._balances = self._snapshots = None

    def __enter__(self) -> "BalanceStore":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def engine(self) -> Engine:
        self.open()
        assert self._engine is not None
        return self._engine

    @property
    def session_factory(self) -> SessionFactory:
        self.open()
        assert self._session_factory is not None
        return self._session_factory

    def _user_repo(self) -> UserRepository:
        self.open()
        assert self._users is not None
        return self._users

    def _balance_repo(self) -> BalanceRepository:
        self.open()
        assert self._balances is not None
        return self._balances

    def _snapshot_repo(self) -> SnapshotRepository:
        self.open()
        assert self._snapshots is not None
        return self._snapshots

    # -- users -------------------------------------------------------------

    def add_user(self, *, name: str, phone: str, address: str, id_number: str) -> User:
        """Register a user with a fresh id and timestamp.

        Raises:
            ConstraintViolation: if ``id_number`` is already registered.
        """
        user = User(name=name, phone=phone, address=address, id_number=id_number)
        with self._write_lock:
            try:
                created = self._user_repo().create(user)
            except ConstraintViolation:
                logger.warning("Duplicate id number rejected", extra={"id_number": id_number})
                raise
        logger.info("User registered", extra={"user_id": created.id})
        return created

    def get_all_users(self) -> list[User]:
        return self._user_repo().list_all()

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Return the user or ``None`` when no such id exists."""
        return self._user_repo().get_by_id(user_id)

    def get_user_by_id_number(self, id_number: str) -> Optional[User]:
        return self._user_repo().get_by_id_number(id_number)

    def require_user(self, user_id: str) -> User:
        """Like ``get_user_by_id`` but raises NotFound on a miss."""
        user = self.get_user_by_id(user_id)
        if user is None:
            raise NotFound(f"No user with id {user_id!r}")
        return user

    def count_users(self) -> int:
        return self._user_repo().count()

    # -- balances ----------------------------------------------------------

    def add_balance(
        self,
        *,
        user_id: str,
        amount: float,
        month: str,
        description: Optional[str] = None,
    ) -> Balance:
        """Record a balance for ``user_id`` and ``month``.

        The user id is stored as given; it is not checked against the users
        table.

        Raises:
            ConstraintViolation: if the user already has a balance for ``month``.
        """
        balance = Balance(
            user_id=user_id,
            amount=float(amount),
            month=month,
            description=description,
        )
        with self._write_lock:
            try:
                created = self._balance_repo().create(balance)
            except ConstraintViolation:
                logger.warning(
                    "Duplicate monthly balance rejected",
                    extra={"user_id": user_id, "month": month},
                )
                raise
        logger.info(
            "Balance recorded",
            extra={"balance_id": created.id, "user_id": user_id, "month": month},
        )
        return created

    def get_balances_by_user_id(self, user_id: str) -> list[Balance]:
        return self._balance_repo().list_by_user(user_id)

    def get_all_balances(self) -> list[Balance]:
        return self._balance_repo().list_all()

    def get_balance_by_id(self, balance_id: str) -> Optional[Balance]:
        return self._balance_repo().get_by_id(balance_id)

    def update_balance(self, balance: Balance) -> Balance:
        """Replace the stored balance with the same id (insert if absent)."""
        with self._write_lock:
            updated = self._balance_repo().upsert(balance)
        logger.info("Balance replaced", extra={"balance_id": updated.id})
        return updated

    def count_balances(self) -> int:
        return self._balance_repo().count()

    # -- export / import ---------------------------------------------------

    def export_snapshot(self) -> Snapshot:
        """Detached copies of all users and balances plus the export time."""
        users, balances = self._snapshot_repo().read_all()
        logger.debug(
            "Snapshot read", extra={"users": len(users), "balances": len(balances)}
        )
        return Snapshot(users=users, balances=balances, export_date=utcnow())

    def import_replace(self, snapshot: Union[Snapshot, Mapping[str, Any]]) -> Snapshot:
        """Replace both collections with the snapshot's contents, all or nothing.

        A raw mapping in the export file shape is validated first.

        Raises:
            InvalidFormat: the mapping does not have the export shape.
            ConstraintViolation: the records break a uniqueness rule; the
                previous data is kept.
        """
        if not isinstance(snapshot, Snapshot):
            snapshot = snapshot_from_dict(snapshot)

        with self._write_lock:
            try:
                self._snapshot_repo().replace_all(snapshot.users, snapshot.balances)
            except ConstraintViolation:
                logger.warning("Import rejected; previous data kept", exc_info=True)
                raise
        logger.info(
            "Import applied",
            extra={"users": len(snapshot.users), "balances": len(snapshot.balances)},
        )
        return snapshot


__all__ = ["BalanceStore"]
