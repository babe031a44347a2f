"""End-to-end: a small shop's month of credit, persisted in SQLite.

Alice buys on credit on the 5th and pays part of it on the 10th; Bob owes a
little but has paid off his oldest tab; the flour mill is owed money from
before the ledger was opened. Reports are computed over the stored data.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

from credit_ledger import api
from credit_ledger.ledger import Ledger
from credit_ledger.models import AccountKind, BalancePoint
from credit_ledger.persistence import SqlLedgerRepository
from credit_ledger.settings import LedgerSettings
from ledger_db.client import session_scope
from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.ledger import dt


def test_month_of_credit(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "shop.sqlite3")

    with session_scope(database_url=url) as session:
        repo = SqlLedgerRepository(session)
        with repo.atomic():
            repo.save_settings(LedgerSettings(payment_terms_days=15))
        ledger = Ledger(repo, clock=lambda: dt("2024-01-01"))

        alice = ledger.open_account("customer", "Alice", account_id="alice")
        ledger.record_transaction(alice.id, "debt", "100", date=dt("2024-01-05"))
        ledger.record_transaction(alice.id, "payment", "40", date=dt("2024-01-10"))

        bob = ledger.open_account("customer", "Bob", account_id="bob")
        ledger.record_transaction(bob.id, "debt", "30", date=dt("2024-01-02"))
        ledger.record_transaction(bob.id, "payment", "30", date=dt("2024-01-08"))
        ledger.record_transaction(bob.id, "debt", "20", date=dt("2024-01-20"))

        mill = ledger.open_account(
            "supplier", "Flour Mill", account_id="mill", opening_balance="200"
        )
        ledger.record_transaction(mill.id, "purchase", "150", date=dt("2024-01-03"))
        ledger.record_transaction(mill.id, "payment", "100", date=dt("2024-01-04"))

    with session_scope(database_url=url) as session:
        repo = SqlLedgerRepository(session)

        assert repo.get_account("alice").balance == Decimal("60.00")
        assert repo.get_account("mill").balance == Decimal("250.00")

        overdue = api.overdue_report(repo, today=date(2024, 1, 25))
        assert [(o.account.id, o.due_date, o.days_overdue) for o in overdue] == [
            ("alice", date(2024, 1, 20), 5),
        ]

        # The mill balance is mostly the opening balance, which no purchase explains.
        everyone = api.overdue_report(repo, today=date(2024, 2, 10), kind=None)
        assert [(o.account.id, o.days_overdue) for o in everyone] == [("alice", 21), ("bob", 6)]
        assert everyone[1].oldest_unpaid_debt_date == dt("2024-01-20")

        assert api.balance_history(repo, "alice") == [
            BalancePoint(day=date(2024, 1, 1), date=dt("2024-01-01"), balance=Decimal("0")),
            BalancePoint(day=date(2024, 1, 5), date=dt("2024-01-05"), balance=Decimal("100")),
            BalancePoint(day=date(2024, 1, 10), date=dt("2024-01-10"), balance=Decimal("60")),
        ]
        assert [p.balance for p in api.balance_history(repo, "mill")] == [
            Decimal("200"),
            Decimal("350"),
            Decimal("250"),
        ]

        summaries = {s.account.id: s for s in api.account_summaries(repo, AccountKind.CUSTOMER)}
        assert summaries["bob"].totals.debits == Decimal("50.00")
        assert summaries["bob"].totals.payments == Decimal("30.00")
