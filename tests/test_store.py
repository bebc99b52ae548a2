"""Behaviour of the persistence store."""

from __future__ import annotations

import sqlite3

import pytest

from balancebook.config import TestingConfig
from balancebook.errors import ConstraintViolation, NotFound, StorageUnavailable
from balancebook.models import Balance
from balancebook.services.reports import summarize_users
from balancebook.store import BalanceStore


def test_store_opens_lazily(config):
    store = BalanceStore(config)
    assert not store.is_open

    assert store.get_all_users() == []
    assert store.is_open

    store.close()
    assert not store.is_open


def test_add_user_generates_id_and_timestamp(store):
    user = store.add_user(name="Ada", phone="555", address="1 Main", id_number="123")

    assert user.id
    assert user.created_at.tzinfo is not None
    fetched = store.get_user_by_id(user.id)
    assert fetched is not None
    assert fetched.name == "Ada"
    assert fetched.id_number == "123"
    assert fetched.created_at == user.created_at


def test_duplicate_id_number_is_rejected(store, user_factory):
    user_factory(id_number="123")
    before = store.count_users()

    with pytest.raises(ConstraintViolation) as excinfo:
        store.add_user(name="Other", phone="1", address="2", id_number="123")

    assert excinfo.value.collection == "users"
    assert store.count_users() == before


def test_get_user_by_id_returns_none_for_unknown_id(store):
    assert store.get_user_by_id("no-such-id") is None


def test_require_user_raises_not_found(store):
    with pytest.raises(NotFound):
        store.require_user("no-such-id")


def test_get_user_by_id_number(store, user_factory):
    user = user_factory(id_number="A-77")

    assert store.get_user_by_id_number("A-77").id == user.id
    assert store.get_user_by_id_number("missing") is None


def test_duplicate_user_month_is_rejected(store, user_factory, balance_factory):
    user = user_factory()
    balance_factory(user, month="2024-01", amount=100.0)
    before = store.count_balances()

    with pytest.raises(ConstraintViolation) as excinfo:
        balance_factory(user, month="2024-01", amount=50.0)

    assert excinfo.value.collection == "balances"
    assert store.count_balances() == before


def test_same_month_allowed_for_different_users(store, user_factory, balance_factory):
    first = user_factory()
    second = user_factory()

    balance_factory(first, month="2024-01")
    balance_factory(second, month="2024-01")

    assert store.count_balances() == 2


def test_balances_by_user_id(store, user_factory, balance_factory):
    ada = user_factory(name="Ada")
    bob = user_factory(name="Bob")
    balance_factory(ada, month="2024-02", amount=20.0)
    balance_factory(ada, month="2024-01", amount=10.0)
    balance_factory(bob, month="2024-01", amount=99.0)

    rows = store.get_balances_by_user_id(ada.id)

    assert [b.month for b in rows] == ["2024-01", "2024-02"]
    assert {b.user_id for b in rows} == {ada.id}
    assert store.get_balances_by_user_id("nobody") == []
    assert len(store.get_all_balances()) == 3


def test_balance_may_reference_missing_user(store):
    balance = store.add_balance(user_id="ghost", amount=12.5, month="2024-03")

    assert balance.user_id == "ghost"
    assert store.get_user_by_id("ghost") is None
    assert store.get_balances_by_user_id("ghost")[0].id == balance.id


def test_update_balance_replaces_existing_record(store, user_factory, balance_factory):
    user = user_factory()
    balance = balance_factory(user, month="2024-01", amount=100.0)

    balance.amount = 250.0
    balance.description = "corrected"
    store.update_balance(balance)

    stored = store.get_balance_by_id(balance.id)
    assert stored.amount == 250.0
    assert stored.description == "corrected"
    assert stored.created_at == balance.created_at
    assert store.count_balances() == 1


def test_update_balance_inserts_when_absent(store):
    balance = Balance(user_id="u-1", amount=40.0, month="2024-05")

    result = store.update_balance(balance)

    assert result.id == balance.id
    assert store.get_balance_by_id(balance.id) is not None
    assert store.count_balances() == 1


def test_update_balance_colliding_month_is_rejected(store, user_factory, balance_factory):
    user = user_factory()
    balance_factory(user, month="2024-01")
    second = balance_factory(user, month="2024-02")

    second.month = "2024-01"
    with pytest.raises(ConstraintViolation):
        store.update_balance(second)

    assert store.get_balance_by_id(second.id).month == "2024-02"


def test_worked_example_from_registration_to_totals(store):
    ada = store.add_user(name="A", phone="1", address="x", id_number="123")
    store.add_balance(user_id=ada.id, amount=100.00, month="2024-01")
    with pytest.raises(ConstraintViolation):
        store.add_balance(user_id=ada.id, amount=50.00, month="2024-01")
    store.add_balance(user_id=ada.id, amount=50.00, month="2024-02")

    [summary] = summarize_users(store.get_all_users(), store.get_all_balances())

    assert summary.total_balance == 150.00
    assert summary.balance_count == 2


def test_schema_init_is_idempotent_across_reopen(config):
    with BalanceStore(config) as first:
        user = first.add_user(name="Ada", phone="1", address="x", id_number="123")

    with BalanceStore(config) as second:
        assert [u.id for u in second.get_all_users()] == [user.id]
        with pytest.raises(ConstraintViolation):
            second.add_user(name="Dup", phone="1", address="x", id_number="123")


def test_schema_version_is_recorded(config):
    with BalanceStore(config) as store:
        store.count_users()

    db_path = config.DATA_DIR / config.DB_FILENAME
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == config.SCHEMA_VERSION


def test_newer_schema_version_is_refused(tmp_path):
    config = TestingConfig(tmp_path / "instance")
    db_path = config.DATA_DIR / config.DB_FILENAME
    conn = sqlite3.connect(db_path)
    conn.execute(f"PRAGMA user_version = {config.SCHEMA_VERSION + 1}")
    conn.commit()
    conn.close()

    store = BalanceStore(config)
    with pytest.raises(StorageUnavailable):
        store.get_all_users()
    assert not store.is_open


def test_unopenable_database_raises_storage_unavailable(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    config = TestingConfig(tmp_path / "instance")
    store = BalanceStore(config, database_url=f"sqlite:///{blocker / 'db.sqlite'}")

    with pytest.raises(StorageUnavailable):
        store.open()


def test_bad_database_url_raises_storage_unavailable(config):
    store = BalanceStore(config, database_url="not a url")

    with pytest.raises(StorageUnavailable):
        store.open()
