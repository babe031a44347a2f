from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from credit_ledger import cli
from credit_ledger.ledger import Ledger
from credit_ledger.persistence import SqlLedgerRepository
from ledger_db.client import session_scope
from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.ledger import dt

runner = CliRunner()


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch):
    # Keep rich tables on one line per row regardless of the runner's terminal.
    monkeypatch.setattr(cli.console, "width", 200)
    monkeypatch.setattr(cli.err_console, "width", 200)


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")


def _invoke(db_url: str, *args: str):
    return runner.invoke(cli.app, ["--database-url", db_url, *args])


def _seed_alice(db_url: str) -> None:
    with session_scope(database_url=db_url) as session:
        ledger = Ledger(SqlLedgerRepository(session))
        ledger.open_account(
            "customer",
            "Alice",
            account_id="c1",
            created_at=dt("2024-01-01"),
            settlement_day="Friday",
        )
        ledger.record_transaction("c1", "debt", "100", date=dt("2024-01-05"), transaction_id="t1")
        ledger.record_transaction("c1", "payment", "40", date=dt("2024-01-10"), transaction_id="t2")


def test_init_db_creates_schema(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.sqlite3'}"

    result = runner.invoke(cli.app, ["--database-url", url, "init-db"])

    assert result.exit_code == 0, result.output
    assert "Database schema ready" in result.output


def test_missing_database_url_is_reported():
    result = runner.invoke(cli.app, ["accounts"])

    assert result.exit_code == 1
    assert "DATABASE_URL" in result.output


def test_open_account_and_record(db_url: str):
    opened = _invoke(db_url, "open-account", "customer", "Bob", "--phone", "0600")
    assert opened.exit_code == 0, opened.output

    with session_scope(database_url=db_url) as session:
        (bob,) = SqlLedgerRepository(session).list_accounts()
    assert bob.phone == "0600"

    recorded = _invoke(db_url, "record", bob.id, "debt", "12.50", "--date", "2024-03-01")
    assert recorded.exit_code == 0, recorded.output
    assert "balance now 12.50 €" in recorded.output

    listed = _invoke(db_url, "accounts")
    assert "Bob" in listed.output
    assert "12.50 €" in listed.output


def test_ledger_errors_exit_with_code_one(db_url: str):
    _seed_alice(db_url)

    wrong_kind = _invoke(db_url, "record", "c1", "purchase", "5")
    unknown = _invoke(db_url, "balance", "nobody")
    huge = _invoke(db_url, "record", "c1", "debt", "1e30")

    assert wrong_kind.exit_code == 1
    assert unknown.exit_code == 1
    assert "nobody" in unknown.output
    assert huge.exit_code == 1
    assert "out of range" in huge.output


def test_bad_date_exits_with_code_two(db_url: str):
    _seed_alice(db_url)

    result = _invoke(db_url, "record", "c1", "debt", "5", "--date", "someday")

    assert result.exit_code == 2
    with session_scope(database_url=db_url) as session:
        assert len(SqlLedgerRepository(session).list_transactions("c1")) == 2


def test_amend_and_remove(db_url: str):
    _seed_alice(db_url)

    amended = _invoke(db_url, "amend", "t1", "--amount", "90")
    removed = _invoke(db_url, "remove", "t2")

    assert amended.exit_code == 0, amended.output
    assert "balance now 50.00 €" in amended.output
    assert removed.exit_code == 0, removed.output
    assert "balance now 90.00 €" in removed.output


def test_overdue_report_uses_stored_terms(db_url: str):
    _seed_alice(db_url)
    assert _invoke(db_url, "settings", "--payment-terms-days", "15").exit_code == 0

    late = _invoke(db_url, "overdue", "--today", "2024-01-25")
    on_time = _invoke(db_url, "overdue", "--today", "2024-01-20")

    assert late.exit_code == 0, late.output
    assert "Alice" in late.output
    assert "2024-01-20" in late.output
    assert "Friday" in late.output
    assert "No overdue accounts." in on_time.output


def test_environment_overrides_payment_terms(db_url: str, monkeypatch: pytest.MonkeyPatch):
    _seed_alice(db_url)
    monkeypatch.setenv("CREDIT_LEDGER_PAYMENT_TERMS_DAYS", "60")

    result = _invoke(db_url, "overdue", "--today", "2024-01-25")

    assert "No overdue accounts." in result.output


def test_history_and_degenerate_history(db_url: str):
    _seed_alice(db_url)
    _invoke(db_url, "open-account", "customer", "Nobody")

    with session_scope(database_url=db_url) as session:
        empty = next(a for a in SqlLedgerRepository(session).list_accounts() if a.name == "Nobody")

    full = _invoke(db_url, "history", "c1")
    sparse = _invoke(db_url, "history", empty.id)

    assert full.exit_code == 0, full.output
    for day, amount in (("2024-01-01", "0.00"), ("2024-01-05", "100.00"), ("2024-01-10", "60.00")):
        assert day in full.output
        assert amount in full.output
    assert "Not enough transaction data" not in full.output
    assert "Not enough transaction data" in sparse.output


def test_csv_import_seeds_balances(db_url: str, tmp_path: Path):
    source = tmp_path / "customers.csv"
    source.write_text(
        "name,phone,balance,createdAt\nZoe,0611,\"1,250.00 €\",2024-01-01\nYann,,,\n",
        encoding="utf-8",
    )

    result = _invoke(db_url, "import-csv", str(source))

    assert result.exit_code == 0, result.output
    assert "Imported 2 customer account(s)" in result.output
    with session_scope(database_url=db_url) as session:
        balances = {a.name: a.balance for a in SqlLedgerRepository(session).list_accounts()}
    assert balances == {"Zoe": Decimal("1250.00"), "Yann": Decimal("0.00")}

    again = _invoke(db_url, "import-csv", str(source), "--replace", "--yes")
    assert again.exit_code == 0, again.output
    with session_scope(database_url=db_url) as session:
        assert len(SqlLedgerRepository(session).list_accounts()) == 2


def test_csv_import_rejects_rows_without_name(db_url: str, tmp_path: Path):
    source = tmp_path / "customers.csv"
    source.write_text("name,balance\nZoe,10\n,20\n", encoding="utf-8")

    result = _invoke(db_url, "import-csv", str(source))

    assert result.exit_code == 1
    assert "line 3" in result.output
    with session_scope(database_url=db_url) as session:
        assert SqlLedgerRepository(session).list_accounts() == []


def test_json_backup_round_trip_between_databases(db_url: str, tmp_path: Path):
    _seed_alice(db_url)
    backup = tmp_path / "backup.json"
    other = bootstrap_sqlite_db(tmp_path / "other.sqlite3")

    exported = _invoke(db_url, "export-json", str(backup))
    imported = _invoke(other, "import-json", str(backup), "--yes")

    assert exported.exit_code == 0, exported.output
    assert json.loads(backup.read_text(encoding="utf-8"))["schema_version"] == 1
    assert imported.exit_code == 0, imported.output
    assert "Restored 1 account(s) and 2 transaction(s)" in imported.output
    with session_scope(database_url=other) as session:
        assert SqlLedgerRepository(session).get_account("c1").balance == Decimal("60.00")


def test_import_requires_confirmation(db_url: str, tmp_path: Path):
    _seed_alice(db_url)
    backup = tmp_path / "backup.json"
    _invoke(db_url, "export-json", str(backup))

    result = runner.invoke(
        cli.app, ["--database-url", db_url, "import-json", str(backup)], input="n\n"
    )

    assert result.exit_code == 1


def test_csv_export_to_stdout(db_url: str):
    _seed_alice(db_url)

    result = _invoke(db_url, "export-csv", "-")

    lines = result.stdout.splitlines()
    assert lines[0] == "id,name,email,phone,created_at,balance,settlement_day"
    assert lines[1].startswith("c1,Alice,,,2024-01-01T00:00:00+00:00,60.00,Friday")
