"""Pytest configuration and shared fixtures for BalanceBook tests.

Every test gets its own data directory under ``tmp_path`` so nothing touches
a real database, log directory or export folder.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from balancebook.config import TestingConfig
from balancebook.infra.database import create_db_engine, create_session_factory, init_database
from balancebook.models import Balance, User
from balancebook.store import BalanceStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01) -> None:
    """Assert two money values are equal within ``tolerance``."""

    assert abs(actual - expected) <= tolerance, f"{actual} != {expected} (±{tolerance})"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Keep developer environment variables out of the tests."""

    for name in (
        "BALANCEBOOK_DATA_DIR",
        "BALANCEBOOK_DATABASE_URL",
        "BALANCEBOOK_DEV_MODE",
        "BALANCEBOOK_EXPORT_RETENTION",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path: Path) -> TestingConfig:
    """Configuration rooted in a per-test data directory."""

    return TestingConfig(tmp_path / "instance")


@pytest.fixture
def db_engine(config):
    """Engine for a fresh SQLite file with the schema created."""

    engine = create_db_engine(config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Factory returning transactional session contexts, as the repositories expect."""

    return create_session_factory(db_engine)


@pytest.fixture
def store(config):
    """An open store on the per-test database."""

    with BalanceStore(config) as opened:
        yield opened


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(store):
    """Register users through the store with unique id numbers by default."""

    counter = {"n": 0}

    def _create_user(
        name: str = "Test User",
        phone: str = "555-0100",
        address: str = "1 Test Street",
        id_number: str | None = None,
    ) -> User:
        counter["n"] += 1
        return store.add_user(
            name=name,
            phone=phone,
            address=address,
            id_number=id_number or f"ID-{counter['n']:04d}",
        )

    return _create_user


@pytest.fixture
def balance_factory(store):
    """Record balances through the store."""

    def _create_balance(
        user: User,
        month: str = "2024-01",
        amount: float = 100.0,
        description: str | None = None,
    ) -> Balance:
        return store.add_balance(
            user_id=user.id, amount=amount, month=month, description=description
        )

    return _create_balance


def make_user(name: str = "Ada", id_number: str = "123", offset_minutes: int = 0) -> User:
    """Unsaved user with a deterministic timestamp, for pure report tests."""

    return User(
        name=name,
        phone="555-0100",
        address="1 Test Street",
        id_number=id_number,
        created_at=BASE_TIME + timedelta(minutes=offset_minutes),
    )


def make_balance(
    user_id: str,
    month: str = "2024-01",
    amount: float = 100.0,
    offset_minutes: int = 0,
    description: str | None = None,
) -> Balance:
    """Unsaved balance with a deterministic ``created_at``."""

    return Balance(
        user_id=user_id,
        amount=amount,
        month=month,
        description=description,
        created_at=BASE_TIME + timedelta(minutes=offset_minutes),
    )
