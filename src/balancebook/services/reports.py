"""Reporting aggregation over in-memory user and balance snapshots."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..models.balance import Balance
from ..models.user import User

RECENT_LIMIT = 10
UNKNOWN_USER = "Unknown User"


@dataclass(slots=True)
class UserBalanceSummary:
    """Per-user totals shown in the balance summary table."""

    user: User
    total_balance: float
    balance_count: int
    last_balance: Optional[Balance]


@dataclass(slots=True)
class RecentEntry:
    """A balance resolved against its user for display."""

    balance: Balance
    user_name: str
    user: Optional[User] = None


@dataclass(slots=True)
class BalanceReport:
    """Everything the reports screen renders."""

    total_users: int
    total_balances: int
    total_amount: float
    summaries: list[UserBalanceSummary] = field(default_factory=list)
    recent: list[RecentEntry] = field(default_factory=list)


def _latest(balances: Iterable[Balance]) -> Optional[Balance]:
    """Most recent balance by ``created_at``; the first one wins on ties."""

    latest: Optional[Balance] = None
    for balance in balances:
        if latest is None or balance.created_at > latest.created_at:
            latest = balance
    return latest


def grand_total(balances: Iterable[Balance]) -> float:
    """Sum of every balance amount, independent of input order.

    No rounding happens here; ``format_currency`` rounds for display.
    """

    return math.fsum(float(b.amount) for b in balances)


def summarize_users(
    users: Sequence[User], balances: Iterable[Balance]
) -> list[UserBalanceSummary]:
    """Compute total, count and latest entry for each user, in ``users`` order."""

    by_user: dict[str, list[Balance]] = {}
    for balance in balances:
        by_user.setdefault(balance.user_id, []).append(balance)

    summaries = []
    for user in users:
        own = by_user.get(user.id, [])
        summaries.append(
            UserBalanceSummary(
                user=user,
                total_balance=grand_total(own),
                balance_count=len(own),
                last_balance=_latest(own),
            )
        )
    return summaries


def recent_entries(
    users: Iterable[User], balances: Iterable[Balance], limit: int = RECENT_LIMIT
) -> list[RecentEntry]:
    """Newest balances first, at most ``limit`` of them.

    Balances whose user no longer exists are labelled ``Unknown User``.
    """

    lookup = {user.id: user for user in users}
    ordered = sorted(balances, key=lambda b: b.created_at, reverse=True)
    entries = []
    for balance in ordered[: max(limit, 0)]:
        owner = lookup.get(balance.user_id)
        entries.append(
            RecentEntry(
                balance=balance,
                user_name=owner.name if owner is not None else UNKNOWN_USER,
                user=owner,
            )
        )
    return entries


def build_report(users: Sequence[User], balances: Sequence[Balance]) -> BalanceReport:
    return BalanceReport(
        total_users=len(users),
        total_balances=len(balances),
        total_amount=grand_total(balances),
        summaries=summarize_users(users, balances),
        recent=recent_entries(users, balances),
    )


def format_currency(amount: float) -> str:
    """Format as US dollars, e.g. ``$1,234.50`` or ``-$12.00``."""

    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


__all__ = [
    "BalanceReport",
    "RECENT_LIMIT",
    "RecentEntry",
    "UNKNOWN_USER",
    "UserBalanceSummary",
    "build_report",
    "format_currency",
    "grand_total",
    "recent_entries",
    "summarize_users",
]
