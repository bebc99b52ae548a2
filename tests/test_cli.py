"""End-to-end tests for the command-line interface."""

from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

from balancebook.cli import main
from balancebook.logging_config import ROOT_LOGGER_NAME


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    yield tmp_path / "data"
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def invoke(runner, data_dir):
    def _invoke(*args, input=None):
        return runner.invoke(main, ["--data-dir", str(data_dir), *args], input=input)

    return _invoke


def _register(invoke, name="Ada", id_number="123") -> str:
    result = invoke("users", "add", name, "555", "1 Main", id_number)
    assert result.exit_code == 0, result.output
    return result.output.strip().rsplit("(", 1)[1].rstrip(")")


def test_register_and_list_users(invoke):
    result = invoke("users", "add", "Ada", "555", "1 Main", "123")

    assert result.exit_code == 0
    assert result.output.startswith("Registered Ada (")

    listing = invoke("users", "list")
    assert listing.exit_code == 0
    assert "Ada" in listing.output
    assert "123" in listing.output


def test_empty_lists(invoke):
    assert "No users registered yet" in invoke("users", "list").output
    assert "No balance entries yet" in invoke("balances", "list").output


def test_duplicate_id_number_fails_cleanly(invoke):
    _register(invoke)

    result = invoke("users", "add", "Bob", "1", "x", "123")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_add_and_list_balances(invoke):
    user_id = _register(invoke)

    added = invoke("balances", "add", user_id, "1,250.50", "--month", "2024-01", "--description", "rent")
    assert added.exit_code == 0, added.output
    assert "Recorded $1,250.50 for 2024-01" in added.output

    listing = invoke("balances", "list", "--user-id", user_id)
    assert "2024-01" in listing.output
    assert "rent" in listing.output


def test_invalid_amount_is_rejected(invoke):
    user_id = _register(invoke)

    result = invoke("balances", "add", user_id, "0", "--month", "2024-01")

    assert result.exit_code == 1
    assert "positive amount" in result.output


def test_show_unknown_user(invoke):
    result = invoke("users", "show", "nope")

    assert result.exit_code == 1
    assert "No user with id" in result.output


def test_show_user_with_balances(invoke):
    user_id = _register(invoke)
    invoke("balances", "add", user_id, "100", "--month", "2024-01")
    invoke("balances", "add", user_id, "50", "--month", "2024-02")

    result = invoke("users", "show", user_id)

    assert result.exit_code == 0
    assert "Total:   $150.00 in 2 entries" in result.output


def test_report(invoke):
    user_id = _register(invoke)
    invoke("balances", "add", user_id, "100", "--month", "2024-01")
    invoke("balances", "add", "ghost", "5", "--month", "2024-01")

    result = invoke("report")

    assert result.exit_code == 0
    assert "Total Users:    1" in result.output
    assert "Total Balances: 2" in result.output
    assert "Total Amount:   $105.00" in result.output
    assert "Unknown User" in result.output


def test_report_on_empty_store(invoke):
    result = invoke("report")

    assert result.exit_code == 0
    assert "No users registered yet" in result.output
    assert "No balance entries yet" in result.output


def test_export_then_import_round_trip(invoke, tmp_path):
    user_id = _register(invoke)
    invoke("balances", "add", user_id, "100", "--month", "2024-01")
    out_dir = tmp_path / "out"

    exported = invoke("export", "--output-dir", str(out_dir))
    assert exported.exit_code == 0, exported.output
    [export_file] = list(out_dir.glob("user-balance-data-*.json"))
    payload = json.loads(export_file.read_text(encoding="utf-8"))
    assert payload["users"][0]["id"] == user_id

    _register(invoke, name="Bob", id_number="456")
    imported = invoke("import", str(export_file), "--yes")

    assert imported.exit_code == 0, imported.output
    assert "Imported 1 users and 1 balance entries" in imported.output
    assert "Bob" not in invoke("users", "list").output


def test_import_requires_confirmation(invoke, tmp_path):
    source = tmp_path / "backup.json"
    source.write_text(json.dumps({"users": [], "balances": []}), encoding="utf-8")
    _register(invoke)

    declined = invoke("import", str(source), input="n\n")

    assert declined.exit_code == 1
    assert "Ada" in invoke("users", "list").output


def test_import_invalid_file(invoke, tmp_path):
    source = tmp_path / "bad.json"
    source.write_text(json.dumps({"users": []}), encoding="utf-8")

    result = invoke("import", str(source), "--yes")

    assert result.exit_code == 1
    assert "Invalid file format" in result.output


def test_import_missing_file(invoke, tmp_path):
    result = invoke("import", str(tmp_path / "absent.json"), "--yes")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_import_non_utf8_file_fails_cleanly(invoke, tmp_path):
    source = tmp_path / "bad.json"
    source.write_bytes(b'{"users": [], "balances": [], "x": "\xff\xfe"}')

    result = invoke("import", str(source), "--yes")

    assert result.exit_code == 1
    assert "Invalid file format" in result.output
    assert not isinstance(result.exception, UnicodeDecodeError)
