"""Public read-side API for the ``credit_ledger`` package.

The three core contracts are pure functions over an in-memory snapshot:

- :func:`compute_net_balance` (balance accumulator)
- :func:`compute_overdue_accounts` (overdue reconstructor)
- :func:`compute_balance_history` (balance history replayer)

The remaining helpers read a consistent snapshot from a
:class:`~credit_ledger.repository.LedgerRepository` and apply those functions
with the stored merchant settings.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from .balance import compute_net_balance, compute_totals, derive_initial_balance
from .dates import local_day, utc_now
from .history import compute_balance_history
from .logging_setup import get_logger
from .models import (
    AccountKind,
    AccountSummary,
    BalancePoint,
    DebtAssessment,
    OverdueAccount,
    Transaction,
)
from .overdue import assess_account, compute_overdue_accounts, most_overdue_first
from .repository import LedgerRepository
from .settings import LedgerSettings

logger = get_logger("credit_ledger.api")


def _resolve_settings(
    repository: LedgerRepository, settings: LedgerSettings | None
) -> LedgerSettings:
    return settings if settings is not None else repository.get_settings()


def overdue_report(
    repository: LedgerRepository,
    *,
    today: date | None = None,
    settings: LedgerSettings | None = None,
    kind: AccountKind | None = AccountKind.CUSTOMER,
) -> list[OverdueAccount]:
    """Overdue accounts, most overdue first.

    ``today`` defaults to the current calendar day in the settings timezone.
    Payment terms are merchant-wide, so by default only customer accounts are
    scanned; pass ``kind=None`` to include suppliers.
    """

    cfg = _resolve_settings(repository, settings)
    tz = cfg.tzinfo
    if today is None:
        today = local_day(utc_now(), tz)
    accounts = repository.list_accounts(kind)
    transactions = repository.list_transactions()
    found = compute_overdue_accounts(accounts, transactions, cfg.payment_terms_days, today, tz)
    logger.info(
        "overdue report for %s: %d of %d account(s) overdue (terms=%d days)",
        today.isoformat(),
        len(found),
        len(accounts),
        cfg.payment_terms_days,
    )
    return most_overdue_first(found)


def account_assessment(
    repository: LedgerRepository,
    account_id: str,
    *,
    settings: LedgerSettings | None = None,
) -> DebtAssessment:
    cfg = _resolve_settings(repository, settings)
    account = repository.get_account(account_id)
    return assess_account(
        account,
        repository.list_transactions(account_id),
        cfg.payment_terms_days,
        cfg.tzinfo,
    )


def balance_history(
    repository: LedgerRepository,
    account_id: str,
    *,
    settings: LedgerSettings | None = None,
) -> list[BalancePoint]:
    cfg = _resolve_settings(repository, settings)
    account = repository.get_account(account_id)
    return compute_balance_history(account, repository.list_transactions(account_id), cfg.tzinfo)


def account_summaries(
    repository: LedgerRepository, kind: AccountKind | None = None
) -> list[AccountSummary]:
    """Accounts with their total debits/payments (list-view aggregates)."""

    by_account: dict[str, list[Transaction]] = defaultdict(list)
    for tx in repository.list_transactions():
        by_account[tx.account_id].append(tx)
    return [
        AccountSummary(account=a, totals=compute_totals(by_account.get(a.id, ())))
        for a in repository.list_accounts(kind)
    ]


__all__ = [
    # Core contracts
    "compute_net_balance",
    "compute_overdue_accounts",
    "compute_balance_history",
    "derive_initial_balance",
    # Repository-driven reports
    "overdue_report",
    "account_assessment",
    "balance_history",
    "account_summaries",
]
