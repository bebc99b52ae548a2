"""JSON export/import of the whole store."""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..errors import InvalidFormat
from ..logging_config import get_logger
from ..models import Balance, Snapshot, User
from ..models.types import utcnow
from .entries import is_valid_month

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from ..store import BalanceStore

logger = get_logger(__name__)

EXPORT_PREFIX = "user-balance-data-"
DEFAULT_RETENTION = 5


@dataclass(frozen=True)
class ImportSummary:
    """Counts reported after a successful import."""

    users: int
    balances: int


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "phone": user.phone,
        "address": user.address,
        "idNumber": user.id_number,
        "createdAt": _iso(user.created_at),
    }


def balance_to_dict(balance: Balance) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": balance.id,
        "userId": balance.user_id,
        "amount": balance.amount,
        "month": balance.month,
    }
    if balance.description:
        payload["description"] = balance.description
    payload["createdAt"] = _iso(balance.created_at)
    return payload


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Render a snapshot in the export file shape (camelCase keys)."""

    return {
        "users": [user_to_dict(user) for user in snapshot.users],
        "balances": [balance_to_dict(balance) for balance in snapshot.balances],
        "exportDate": _iso(snapshot.export_date),
    }


def _parse_timestamp(value: Any, where: str) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidFormat(f"{where}: invalid timestamp {value!r}") from exc
    else:
        raise InvalidFormat(f"{where}: invalid timestamp {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(record: Mapping[str, Any], key: str, where: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        raise InvalidFormat(f"{where}: field '{key}' must be a string")
    return value


def _user_from_dict(record: Any, index: int) -> User:
    where = f"users[{index}]"
    if not isinstance(record, Mapping):
        raise InvalidFormat(f"{where}: expected an object")
    created = record.get("createdAt")
    return User(
        id=_text(record, "id", where),
        name=_text(record, "name", where),
        phone=_text(record, "phone", where),
        address=_text(record, "address", where),
        id_number=_text(record, "idNumber", where),
        created_at=utcnow() if created is None else _parse_timestamp(created, where),
    )


def _balance_from_dict(record: Any, index: int) -> Balance:
    where = f"balances[{index}]"
    if not isinstance(record, Mapping):
        raise InvalidFormat(f"{where}: expected an object")

    amount = record.get("amount")
    if isinstance(amount, str):
        try:
            amount = float(amount)
        except ValueError as exc:
            raise InvalidFormat(f"{where}: amount {record.get('amount')!r} is not a number") from exc
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidFormat(f"{where}: field 'amount' must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidFormat(f"{where}: amount must be a positive number")

    month = record.get("month")
    if not is_valid_month(month):
        raise InvalidFormat(f"{where}: month {month!r} must use the YYYY-MM format")

    description = record.get("description")
    if description is not None and not isinstance(description, str):
        raise InvalidFormat(f"{where}: field 'description' must be a string")

    created = record.get("createdAt")
    return Balance(
        id=_text(record, "id", where),
        user_id=_text(record, "userId", where),
        amount=float(amount),
        month=month,
        description=description or None,
        created_at=utcnow() if created is None else _parse_timestamp(created, where),
    )


def snapshot_from_dict(payload: Any) -> Snapshot:
    """Validate an export-shaped mapping and build a Snapshot.

    Raises:
        InvalidFormat: when ``users``/``balances`` are missing or not lists, or
            a record is malformed.
    """

    if not isinstance(payload, Mapping):
        raise InvalidFormat("Invalid file format: expected a JSON object")
    users = payload.get("users")
    balances = payload.get("balances")
    if not isinstance(users, list) or not isinstance(balances, list):
        raise InvalidFormat("Invalid file format: 'users' and 'balances' must be lists")

    export_date = payload.get("exportDate")
    return Snapshot(
        users=[_user_from_dict(record, idx) for idx, record in enumerate(users)],
        balances=[_balance_from_dict(record, idx) for idx, record in enumerate(balances)],
        export_date=utcnow() if export_date is None else _parse_timestamp(export_date, "exportDate"),
    )


def dumps_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2)


def loads_snapshot(text: str) -> Snapshot:
    """Parse export JSON text; malformed JSON is reported as InvalidFormat."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidFormat(f"Invalid file format: {exc.msg}") from exc
    return snapshot_from_dict(payload)


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{EXPORT_PREFIX}{today.isoformat()}.json"


def _ensure_secure_directory(directory: Path) -> None:
    """Create the directory and set restrictive permissions when possible."""

    directory.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(directory, 0o700)
    except (NotImplementedError, PermissionError):  # pragma: no cover - platform specific
        pass


def _prune_old_exports(directory: Path, keep: int) -> list[Path]:
    """Remove export files beyond the retention count; returns what was removed."""

    exports = sorted(
        directory.glob(f"{EXPORT_PREFIX}*.json"),
        key=lambda file: (file.stat().st_mtime, file.name),
        reverse=True,
    )
    removed: list[Path] = []
    for old in exports[max(keep, 1):]:
        try:
            old.unlink()
            removed.append(old)
        except OSError:  # pragma: no cover - best-effort cleanup
            logger.warning("Could not remove old export", extra={"path": str(old)})
    return removed


def write_export(
    store: "BalanceStore",
    output_dir: Optional[Path] = None,
    *,
    retention: Optional[int] = None,
    today: Optional[date] = None,
) -> Path:
    """Write the current store contents to ``user-balance-data-<date>.json``.

    Defaults to the configured export directory and retention count. Returns
    the written path.
    """

    out_dir = Path(output_dir) if output_dir is not None else store.config.export_dir
    _ensure_secure_directory(out_dir)

    snapshot = store.export_snapshot()
    path = out_dir / export_filename(today)
    path.write_text(dumps_snapshot(snapshot), encoding="utf-8")

    keep = retention if retention is not None else getattr(
        store.config, "EXPORT_RETENTION", DEFAULT_RETENTION
    )
    _prune_old_exports(out_dir, keep=keep)

    logger.info(
        "Export written",
        extra={"path": str(path), "users": len(snapshot.users), "balances": len(snapshot.balances)},
    )
    return path


def import_file(store: "BalanceStore", path: Path) -> ImportSummary:
    """Replace all store data with the contents of an export file."""

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Import file not found: {source}")
    try:
        raw = source.read_bytes()
    except (IsADirectoryError, PermissionError) as exc:
        raise InvalidFormat(f"Cannot read import file {source}: {exc.strerror}") from exc
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidFormat(f"Invalid file format: not UTF-8 text ({exc.reason})") from exc
    snapshot = loads_snapshot(text)
    store.import_replace(snapshot)
    return ImportSummary(users=len(snapshot.users), balances=len(snapshot.balances))


__all__ = [
    "DEFAULT_RETENTION",
    "EXPORT_PREFIX",
    "ImportSummary",
    "balance_to_dict",
    "dumps_snapshot",
    "export_filename",
    "import_file",
    "loads_snapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
    "user_to_dict",
    "write_export",
]
