# ruff: noqa: I001
"""CLI for the ``credit_ledger`` package.

A Typer app over the SQL repository. Environment variables (notably
``DATABASE_URL``) are loaded from a local ``.env`` with ``python-dotenv``
before any command runs; ``--database-url`` overrides them. Business logic
lives in :mod:`credit_ledger.ledger` (writes) and :mod:`credit_ledger.api`
(reports); this module only parses arguments and renders ``rich`` tables.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .amounts import format_amount
from .errors import LedgerError
from .logging_setup import configure_logging
from .models import AccountKind, TransactionType
from .persistence import SqlLedgerRepository
from .settings import LedgerSettings, settings_from_env

app = typer.Typer(
    name="credit-ledger",
    help="Customer and supplier credit ledger: balances, overdue accounts, balance history.",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


# ---- Small module-level helpers used by CLI commands -------------------------


@contextmanager
def _repository(ctx: typer.Context) -> Iterator[SqlLedgerRepository]:
    """Yield a repository bound to a fresh session; turn ledger errors into exit code 1."""

    from ledger_db.client import session_scope

    database_url = (ctx.obj or {}).get("database_url")
    try:
        with session_scope(database_url=database_url) as session:
            yield SqlLedgerRepository(session)
    except typer.Exit:
        raise
    except LedgerError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ValidationError as e:
        err_console.print(f"[red]Invalid value:[/red] {e}")
        raise typer.Exit(1) from e
    except RuntimeError as e:
        # Missing DATABASE_URL and similar configuration problems.
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _effective_settings(repo: SqlLedgerRepository) -> LedgerSettings:
    return settings_from_env(repo.get_settings())


def _parse_when(raw: str | None, settings: LedgerSettings) -> datetime | None:
    if raw is None:
        return None
    from .dates import parse_timestamp

    try:
        return parse_timestamp(raw, settings.tzinfo)
    except ValueError as e:
        err_console.print(f"[red]Invalid date:[/red] {raw!r}")
        raise typer.Exit(2) from e


# ---- Account commands ----------------------------------------------------------


@app.command("accounts")
def accounts_cmd(
    ctx: typer.Context,
    kind: Annotated[AccountKind | None, typer.Option(help="Only list this kind")] = None,
) -> None:
    """List accounts with their balance and total debits/payments."""

    from .api import account_summaries

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        summaries = account_summaries(repo, kind)

    table = Table(title="Accounts")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Balance", justify="right")
    table.add_column("Debts/Purchases", justify="right")
    table.add_column("Payments", justify="right")
    for s in summaries:
        style = "red" if s.account.balance > 0 else "green"
        table.add_row(
            s.account.id,
            s.account.name,
            s.account.kind.value,
            f"[{style}]{format_amount(s.account.balance, settings.currency)}[/{style}]",
            format_amount(s.totals.debits, settings.currency),
            format_amount(s.totals.payments, settings.currency),
        )
    console.print(table)


@app.command("open-account")
def open_account_cmd(
    ctx: typer.Context,
    kind: Annotated[AccountKind, typer.Argument(help="customer or supplier")],
    name: Annotated[str, typer.Argument(help="Display name")],
    opening_balance: Annotated[
        str, typer.Option(help="Balance carried over from before the ledger")
    ] = "0",
    email: Annotated[str, typer.Option()] = "",
    phone: Annotated[str, typer.Option()] = "",
    contact: Annotated[str, typer.Option()] = "",
    category: Annotated[str, typer.Option()] = "",
    settlement_day: Annotated[
        str | None, typer.Option(help="Settlement (customer) or visit (supplier) day")
    ] = None,
) -> None:
    """Open a customer or supplier account."""

    from .ledger import Ledger

    with _repository(ctx) as repo:
        account = Ledger(repo).open_account(
            kind,
            name,
            opening_balance=opening_balance,
            email=email,
            phone=phone,
            contact=contact,
            category=category,
            settlement_day=settlement_day,
        )
    console.print(
        f"[green]Opened[/green] {account.kind.value} {account.name} [dim]{account.id}[/dim]"
    )


@app.command("close-account")
def close_account_cmd(
    ctx: typer.Context,
    account_id: Annotated[str, typer.Argument()],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Delete an account and all of its transactions."""

    from .ledger import Ledger

    if not yes:
        typer.confirm(f"Delete account {account_id} and all its transactions?", abort=True)
    with _repository(ctx) as repo:
        account = Ledger(repo).close_account(account_id)
    console.print(f"[yellow]Closed[/yellow] {account.name} [dim]{account.id}[/dim]")


# ---- Transaction commands ------------------------------------------------------


@app.command("record")
def record_cmd(
    ctx: typer.Context,
    account_id: Annotated[str, typer.Argument()],
    type: Annotated[TransactionType, typer.Argument(help="debt, purchase or payment")],
    amount: Annotated[str, typer.Argument(help="Positive amount, e.g. 12.50")],
    when: Annotated[
        str | None, typer.Option("--date", help="ISO date/datetime (default: now)")
    ] = None,
    description: Annotated[str, typer.Option()] = "",
) -> None:
    """Record a debt/purchase or a payment."""

    from .ledger import Ledger

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        account, tx = Ledger(repo).record_transaction(
            account_id,
            type,
            amount,
            date=_parse_when(when, settings),
            description=description,
        )
    console.print(
        f"Recorded {tx.type.value} {format_amount(tx.amount, settings.currency)} "
        f"[dim]{tx.id}[/dim]; balance now {format_amount(account.balance, settings.currency)}"
    )


@app.command("amend")
def amend_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument()],
    amount: Annotated[str | None, typer.Option()] = None,
    when: Annotated[str | None, typer.Option("--date")] = None,
    description: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Change the amount, date or description of a transaction."""

    from .ledger import Ledger

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        account, tx = Ledger(repo).amend_transaction(
            transaction_id,
            amount=amount,
            date=_parse_when(when, settings),
            description=description,
        )
    console.print(
        f"Amended [dim]{tx.id}[/dim]; balance now "
        f"{format_amount(account.balance, settings.currency)}"
    )


@app.command("remove")
def remove_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument()],
) -> None:
    """Delete a transaction."""

    from .ledger import Ledger

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        account = Ledger(repo).remove_transaction(transaction_id)
    console.print(
        f"Removed [dim]{transaction_id}[/dim]; balance now "
        f"{format_amount(account.balance, settings.currency)}"
    )


# ---- Reports -------------------------------------------------------------------


@app.command("balance")
def balance_cmd(
    ctx: typer.Context,
    account_id: Annotated[str, typer.Argument()],
) -> None:
    """Show an account's balance, totals and payment due date."""

    from .api import account_assessment
    from .balance import compute_totals
    from .dates import local_day, utc_now

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        account = repo.get_account(account_id)
        totals = compute_totals(repo.list_transactions(account_id))
        assessment = account_assessment(repo, account_id, settings=settings)

    cur = settings.currency
    console.print(f"[bold]{account.name}[/bold] ({account.kind.value}) [dim]{account.id}[/dim]")
    console.print(f"  Balance:  {format_amount(account.balance, cur)}")
    console.print(f"  Debits:   {format_amount(totals.debits, cur)}")
    console.print(f"  Payments: {format_amount(totals.payments, cur)}")
    if assessment.due_date is None:
        console.print("  Due date: -")
        return
    today = local_day(utc_now(), settings.tzinfo)
    if assessment.is_overdue(today):
        console.print(
            f"  Due date: [red]{assessment.due_date.isoformat()} "
            f"({assessment.days_overdue(today)} day(s) overdue)[/red]"
        )
    else:
        console.print(f"  Due date: {assessment.due_date.isoformat()}")


@app.command("history")
def history_cmd(
    ctx: typer.Context,
    account_id: Annotated[str, typer.Argument()],
) -> None:
    """Print the daily balance series of an account."""

    from .api import balance_history
    from .history import is_chartable

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        points = balance_history(repo, account_id, settings=settings)

    if not is_chartable(points):
        console.print("[yellow]Not enough transaction data to chart the balance history.[/yellow]")
    table = Table(title=f"Balance history ({account_id})")
    table.add_column("Day")
    table.add_column("Balance", justify="right")
    for p in points:
        table.add_row(p.day.isoformat(), format_amount(p.balance, settings.currency))
    console.print(table)


@app.command("overdue")
def overdue_cmd(
    ctx: typer.Context,
    today: Annotated[
        str | None, typer.Option(help="Evaluate as of this day (YYYY-MM-DD)")
    ] = None,
    include_suppliers: Annotated[bool, typer.Option(help="Scan supplier accounts too")] = False,
) -> None:
    """List overdue accounts, most overdue first."""

    from .api import overdue_report

    as_of: date | None = None
    if today is not None:
        try:
            as_of = date.fromisoformat(today)
        except ValueError as e:
            err_console.print(f"[red]Invalid date:[/red] {today!r}")
            raise typer.Exit(2) from e

    with _repository(ctx) as repo:
        settings = _effective_settings(repo)
        rows = overdue_report(
            repo,
            today=as_of,
            settings=settings,
            kind=None if include_suppliers else AccountKind.CUSTOMER,
        )

    if not rows:
        console.print("[green]No overdue accounts.[/green]")
        return
    table = Table(title=f"Overdue accounts (terms: {settings.payment_terms_days} days)")
    table.add_column("Name")
    table.add_column("Balance", justify="right")
    table.add_column("Oldest unpaid")
    table.add_column("Due")
    table.add_column("Days overdue", justify="right", style="red")
    table.add_column("Settlement day")
    for row in rows:
        table.add_row(
            row.account.name,
            format_amount(row.account.balance, settings.currency),
            row.oldest_unpaid_debt_date.astimezone(settings.tzinfo).date().isoformat(),
            row.due_date.isoformat(),
            str(row.days_overdue),
            row.account.settlement_day or "-",
        )
    console.print(table)


# ---- Settings and data management ----------------------------------------------


@app.command("settings")
def settings_cmd(
    ctx: typer.Context,
    payment_terms_days: Annotated[int | None, typer.Option()] = None,
    currency: Annotated[str | None, typer.Option()] = None,
    timezone: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Show stored settings, or update them when options are given."""

    updates = {
        k: v
        for k, v in {
            "payment_terms_days": payment_terms_days,
            "currency": currency,
            "timezone": timezone,
        }.items()
        if v is not None
    }
    with _repository(ctx) as repo:
        current = repo.get_settings()
        if updates:
            current = LedgerSettings.model_validate({**current.model_dump(), **updates})
            with repo.atomic():
                repo.save_settings(current)
    for key, value in current.model_dump().items():
        console.print(f"{key} = {value}")


@app.command("export-json")
def export_json_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(dir_okay=False)],
) -> None:
    """Write a full JSON backup."""

    from .backup import export_backup, write_backup

    with _repository(ctx) as repo:
        backup = export_backup(repo)
    write_backup(path, backup)
    console.print(
        f"Exported {len(backup.accounts)} account(s) and "
        f"{len(backup.transactions)} transaction(s) to {path}"
    )


@app.command("import-json")
def import_json_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, readable=True)],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Replace all data with the content of a JSON backup."""

    from .backup import read_backup, restore_backup

    if not yes:
        typer.confirm("This replaces ALL existing data. Continue?", abort=True)
    with _repository(ctx) as repo:
        n_accounts, n_tx = restore_backup(repo, read_backup(path))
    console.print(f"Restored {n_accounts} account(s) and {n_tx} transaction(s)")


@app.command("export-csv")
def export_csv_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(dir_okay=False, help="Output file, or - for stdout")],
    kind: Annotated[AccountKind, typer.Option()] = AccountKind.CUSTOMER,
) -> None:
    """Export accounts as CSV."""

    import sys

    from .backup import export_accounts_csv

    with _repository(ctx) as repo:
        if str(path) == "-":
            export_accounts_csv(repo, sys.stdout, kind)
            return
        with path.open("w", encoding="utf-8", newline="") as f:
            count = export_accounts_csv(repo, f, kind)
    console.print(f"Exported {count} account(s) to {path}")


@app.command("import-csv")
def import_csv_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, readable=True)],
    kind: Annotated[AccountKind, typer.Option()] = AccountKind.CUSTOMER,
    replace: Annotated[
        bool, typer.Option(help="Delete existing accounts of this kind (and their transactions)")
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Import accounts from CSV; the balance column seeds each opening balance."""

    from .backup import import_accounts_csv

    if replace and not yes:
        typer.confirm(
            f"This deletes every {kind.value} account and its transactions. Continue?",
            abort=True,
        )
    with _repository(ctx) as repo:
        with path.open(encoding="utf-8", newline="") as f:
            count = import_accounts_csv(repo, f, kind, replace=replace)
    console.print(f"Imported {count} {kind.value} account(s) from {path}")


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the ledger tables (development/SQLite setups; production uses Alembic)."""

    from ledger_db.client import create_schema

    try:
        create_schema(database_url=(ctx.obj or {}).get("database_url"))
    except RuntimeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print("[green]Database schema ready.[/green]")


@app.callback()
def _root(
    ctx: typer.Context,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option(help="Log level (default: CREDIT_LEDGER_LOG_LEVEL or INFO)")
    ] = None,
) -> None:
    """Root command: load ``.env`` and configure logging before any subcommand."""

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    ctx.obj = {"database_url": database_url}


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m credit_ledger.cli`
    app()
