"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from sqlalchemy.engine import make_url

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "BalanceBook"
    DB_FILENAME = "balancebook.db"
    LOG_FILENAME = "balancebook.log"
    EXPORT_DIRNAME = "exports"
    SCHEMA_VERSION = 1
    SQLITE_PRAGMAS = {"journal_mode": "wal", "busy_timeout": "5000"}

    def __init__(
        self,
        data_dir: Path | str | None = None,
        database_url: str | None = None,
    ) -> None:
        self.DEV_MODE = _env_bool("BALANCEBOOK_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.EXPORT_RETENTION = _env_int("BALANCEBOOK_EXPORT_RETENTION", 5)
        self.DATABASE_URL = database_url or os.getenv(
            "BALANCEBOOK_DATABASE_URL", self._build_sqlite_url()
        )

    def _resolve_data_dir(self, data_dir: Path | str | None = None) -> Path:
        """Return the directory holding the database, logs and exports."""

        data_root = data_dir if data_dir is not None else os.getenv("BALANCEBOOK_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Read-only install locations fall back to user-local storage.
            local_app_data = os.getenv("LOCALAPPDATA") or (Path.home() / ".local" / "share")
            fallback_path = Path(local_app_data).expanduser() / self.APP_NAME
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    @property
    def export_dir(self) -> Path:
        return Path(self.DATA_DIR) / self.EXPORT_DIRNAME

    def sqlalchemy_engine_options(self, database_url: str | None = None) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume.

        SQLite-only connect arguments are added only for SQLite URLs.
        """

        url = make_url(database_url or self.DATABASE_URL)
        if url.get_backend_name() != "sqlite":
            return {}
        connect_args: dict[str, Any] = {"check_same_thread": False}
        return {"connect_args": connect_args}


class TestingConfig(BaseConfig):
    """Configuration for the test-suite: explicit data directory, quiet console."""

    __test__ = False
    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str, database_url: str | None = None) -> None:
        super().__init__(data_dir=data_dir, database_url=database_url)
        self.DEV_MODE = False
        if not database_url:
            self.DATABASE_URL = self._build_sqlite_url()
