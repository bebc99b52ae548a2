"""Command-line interface for BalanceBook."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .errors import BalanceBookError
from .logging_config import setup_logging
from .models.types import utcnow
from .services import data_transfer, entries, reports
from .store import BalanceStore


def _handle_errors(func):
    """Turn store and validation errors into clean CLI failures."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (BalanceBookError, FileNotFoundError) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _fmt_date(value) -> str:
    return value.date().isoformat() if value is not None else "-"


def _echo_table(headers: list[str], rows: list[list[str]]) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    click.echo("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip())
    click.echo("  ".join("-" * w for w in widths))
    for row in rows:
        click.echo("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the database, logs and exports (default: $BALANCEBOOK_DATA_DIR or ./instance).",
)
@click.option("--database-url", default=None, help="SQLAlchemy URL overriding the default SQLite file.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Echo log messages to the console.")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], database_url: Optional[str], verbose: bool) -> None:
    """Register users and record their monthly balances."""

    config = BaseConfig(data_dir=data_dir, database_url=database_url)
    setup_logging(config, console=verbose)
    store = BalanceStore(config)
    ctx.obj = store
    ctx.call_on_close(store.close)


@main.group()
def users() -> None:
    """Register and list users."""


@users.command("add")
@click.argument("name")
@click.argument("phone")
@click.argument("address")
@click.argument("id_number")
@click.pass_obj
@_handle_errors
def users_add(store: BalanceStore, name: str, phone: str, address: str, id_number: str) -> None:
    """Register a new user."""

    user = entries.register_user(
        store, name=name, phone=phone, address=address, id_number=id_number
    )
    click.echo(f"Registered {user.name} ({user.id})")


@users.command("list")
@click.pass_obj
@_handle_errors
def users_list(store: BalanceStore) -> None:
    """List registered users."""

    rows = [
        [u.id, u.name, u.phone, u.id_number, _fmt_date(u.created_at)]
        for u in store.get_all_users()
    ]
    if not rows:
        click.echo("No users registered yet")
        return
    _echo_table(["ID", "Name", "Phone", "ID Number", "Registered"], rows)


@users.command("show")
@click.argument("user_id")
@click.pass_obj
@_handle_errors
def users_show(store: BalanceStore, user_id: str) -> None:
    """Show one user and their balance entries."""

    user = store.require_user(user_id)
    click.echo(f"{user.name}  (ID number {user.id_number})")
    click.echo(f"Phone:   {user.phone}")
    click.echo(f"Address: {user.address}")
    own = store.get_balances_by_user_id(user.id)
    click.echo(f"Total:   {reports.format_currency(reports.grand_total(own))} in {len(own)} entries")
    for balance in own:
        click.echo(f"  {balance.month}  {reports.format_currency(balance.amount)}  {balance.description or '-'}")


@main.group()
def balances() -> None:
    """Record and list monthly balances."""


@balances.command("add")
@click.argument("user_id")
@click.argument("amount")
@click.option("--month", default=None, help="YYYY-MM (default: current month).")
@click.option("--description", default=None)
@click.pass_obj
@_handle_errors
def balances_add(
    store: BalanceStore,
    user_id: str,
    amount: str,
    month: Optional[str],
    description: Optional[str],
) -> None:
    """Add a balance for a user and month."""

    balance = entries.record_balance(
        store, user_id=user_id, amount=amount, month=month, description=description
    )
    click.echo(
        f"Recorded {reports.format_currency(balance.amount)} for {balance.month} ({balance.id})"
    )


@balances.command("list")
@click.option("--user-id", default=None, help="Only balances for this user id.")
@click.pass_obj
@_handle_errors
def balances_list(store: BalanceStore, user_id: Optional[str]) -> None:
    """List balance entries."""

    rows_source = (
        store.get_balances_by_user_id(user_id) if user_id else store.get_all_balances()
    )
    if not rows_source:
        click.echo("No balance entries yet")
        return
    rows = [
        [
            b.id,
            b.user_id,
            b.month,
            reports.format_currency(b.amount),
            b.description or "-",
            _fmt_date(b.created_at),
        ]
        for b in rows_source
    ]
    _echo_table(["ID", "User", "Month", "Amount", "Description", "Added"], rows)


@main.command("report")
@click.pass_obj
@_handle_errors
def report(store: BalanceStore) -> None:
    """Print totals, per-user summaries and the latest entries."""

    snapshot = store.export_snapshot()
    result = reports.build_report(snapshot.users, snapshot.balances)

    click.echo(f"Total Users:    {result.total_users}")
    click.echo(f"Total Balances: {result.total_balances}")
    click.echo(f"Total Amount:   {reports.format_currency(result.total_amount)}")
    click.echo("")
    click.echo("User Balance Summary")
    if result.summaries:
        _echo_table(
            ["User", "ID Number", "Total Balance", "Balance Count", "Last Entry"],
            [
                [
                    s.user.name,
                    s.user.id_number,
                    reports.format_currency(s.total_balance),
                    str(s.balance_count),
                    (
                        f"{s.last_balance.month} ({_fmt_date(s.last_balance.created_at)})"
                        if s.last_balance
                        else "No entries"
                    ),
                ]
                for s in result.summaries
            ],
        )
    else:
        click.echo("No users registered yet")
    click.echo("")
    click.echo("Recent Balance Entries")
    if result.recent:
        _echo_table(
            ["User", "Month", "Amount", "Description", "Date Added"],
            [
                [
                    entry.user_name,
                    entry.balance.month,
                    reports.format_currency(entry.balance.amount),
                    entry.balance.description or "-",
                    _fmt_date(entry.balance.created_at),
                ]
                for entry in result.recent
            ],
        )
    else:
        click.echo("No balance entries yet")


@main.command("export")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where to write the JSON file (default: <data-dir>/exports).",
)
@click.pass_obj
@_handle_errors
def export_cmd(store: BalanceStore, output_dir: Optional[Path]) -> None:
    """Export all users and balances to JSON."""

    path = data_transfer.write_export(store, output_dir, today=utcnow().date())
    click.echo(f"Export written: {path}")


@main.command("import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt.")
@click.pass_obj
@_handle_errors
def import_cmd(store: BalanceStore, file: Path, yes: bool) -> None:
    """Replace all data with the contents of an export file."""

    if not yes:
        click.confirm(
            "Importing replaces all existing users and balances. Continue?", abort=True
        )
    summary = data_transfer.import_file(store, file)
    click.echo(f"Imported {summary.users} users and {summary.balances} balance entries")


if __name__ == "__main__":  # pragma: no cover
    main()
