"""Field validation for registrations and balance entries."""

from __future__ import annotations

import math
import re
from datetime import date
from typing import TYPE_CHECKING, Optional, Union

from ..errors import InvalidInput
from ..models.balance import Balance
from ..models.user import User

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from ..store import BalanceStore

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def is_valid_month(token: object) -> bool:
    """Return True for ``YYYY-MM`` tokens with a month between 01 and 12."""

    return isinstance(token, str) and MONTH_PATTERN.match(token) is not None


def current_month(today: Optional[date] = None) -> str:
    """The ``YYYY-MM`` token for ``today`` (defaults to the local date)."""

    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}"


def parse_amount(raw: Union[str, int, float, None]) -> float:
    """Parse a user-supplied amount and require it to be a finite positive number."""

    if raw is None or isinstance(raw, bool):
        raise InvalidInput("Amount is required")
    if isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if not text:
            raise InvalidInput("Amount is required")
        try:
            value = float(text)
        except ValueError as exc:
            raise InvalidInput(f"Amount {raw!r} is not a number") from exc
    else:
        value = float(raw)
    if not math.isfinite(value) or value <= 0:
        raise InvalidInput("Please enter a valid positive amount")
    return value


def _required(label: str, value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInput(f"{label} is required")
    return cleaned


def register_user(
    store: "BalanceStore",
    *,
    name: str,
    phone: str,
    address: str,
    id_number: str,
) -> User:
    """Validate registration fields and add the user.

    All four fields are required. A duplicate id number surfaces as
    ConstraintViolation from the store.
    """

    return store.add_user(
        name=_required("Name", name),
        phone=_required("Phone", phone),
        address=_required("Address", address),
        id_number=_required("ID number", id_number),
    )


def record_balance(
    store: "BalanceStore",
    *,
    user_id: str,
    amount: Union[str, int, float, None],
    month: Optional[str] = None,
    description: Optional[str] = None,
    today: Optional[date] = None,
) -> Balance:
    """Validate a balance entry and add it.

    ``month`` defaults to the current month. The user id is not checked
    against the users table; balances only hold a soft reference.
    """

    user_id = _required("User", user_id)
    value = parse_amount(amount)
    month = (month or "").strip() or current_month(today)
    if not is_valid_month(month):
        raise InvalidInput(f"Month {month!r} must use the YYYY-MM format")
    note = (description or "").strip() or None
    return store.add_balance(user_id=user_id, amount=value, month=month, description=note)


__all__ = [
    "MONTH_PATTERN",
    "current_month",
    "is_valid_month",
    "parse_amount",
    "record_balance",
    "register_user",
]
