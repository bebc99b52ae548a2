"""Engine, schema and session plumbing for the local SQLite store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..errors import StorageUnavailable
from ..logging_config import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def _install_sqlite_pragmas(engine: Engine, pragmas: dict[str, str]) -> None:
    """Apply PRAGMA settings on every new DBAPI connection."""

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        try:
            for key, value in pragmas.items():
                cursor.execute(f"PRAGMA {key}={value}")
        finally:
            cursor.close()


def create_db_engine(config: BaseConfig, database_url: Optional[str] = None) -> Engine:
    """Create the SQLModel engine described by ``config``."""

    url = database_url or config.DATABASE_URL
    engine = create_engine(url, **config.sqlalchemy_engine_options(url))
    if engine.dialect.name == "sqlite":
        _install_sqlite_pragmas(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine: Engine, schema_version: int = BaseConfig.SCHEMA_VERSION) -> None:
    """Create tables and indexes if missing and stamp the schema version.

    Safe to call on every open. A database stamped with a newer version than
    ``schema_version`` is refused.
    """
    from .. import models  # noqa: F401  # register tables with SQLModel metadata

    try:
        with engine.begin() as connection:
            current = 0
            if engine.dialect.name == "sqlite":
                current = connection.exec_driver_sql("PRAGMA user_version").scalar() or 0
            if current > schema_version:
                raise StorageUnavailable(
                    f"Database schema version {current} is newer than supported version {schema_version}"
                )
            SQLModel.metadata.create_all(connection)
            if engine.dialect.name == "sqlite" and current < schema_version:
                connection.exec_driver_sql(f"PRAGMA user_version = {int(schema_version)}")
                logger.info(
                    "Schema initialized",
                    extra={"from_version": current, "to_version": schema_version},
                )
    except OperationalError as exc:
        logger.error("Database could not be opened", extra={"url": str(engine.url)})
        raise StorageUnavailable(f"Cannot open database at {engine.url}: {exc}") from exc


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Return a zero-argument callable producing ``session_scope`` contexts."""

    def factory() -> ContextManager[Session]:
        return session_scope(engine)

    return factory
