"""Overdue reconstructor.

Transactions are never tagged paid/unpaid, so the set of debts still open is
inferred: starting from the current outstanding balance, walk the history from
the most recent event backwards, consuming activity until the balance is
explained. The debt at which the walk stops is the oldest one still unpaid.

This is a LIFO reconciliation: recent activity is matched first. It differs
from FIFO (oldest-debt-first) matching whenever payments are partial, and
existing reports depend on it, so it must not be "corrected" to FIFO.

Worked example (balance 100)::

    debt 80 @t1, debt 50 @t2, payment 30 @t3
    t3 payment  -> remaining 130
    t2 debt 50  -> remaining  80   (still > 0, continue)
    t1 debt 80  -> remaining   0   stop; oldest unpaid debt = t1
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, timedelta, tzinfo
from decimal import Decimal

from .dates import local_day
from .logging_setup import get_logger
from .models import Account, DebtAssessment, OverdueAccount, Transaction

logger = get_logger("credit_ledger.overdue")


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    # Ties on ``date`` are broken by id so the walk is a total, deterministic order.
    return sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)


def find_oldest_unpaid_debt_date(
    balance: Decimal, transactions: Iterable[Transaction]
) -> datetime | None:
    """Return the date of the oldest debt still explaining ``balance``.

    Returns ``None`` when ``balance <= 0``, when no debt is encountered, or
    when the whole history is consumed without the remaining amount reaching
    zero (an opening balance larger than the recorded debts).
    """

    if balance <= 0:
        return None

    remaining = balance
    oldest: datetime | None = None
    for tx in _newest_first(transactions):
        if tx.type.is_debit:
            oldest = tx.date
            remaining -= tx.amount
        else:
            # Walking backwards: undo the payment.
            remaining += tx.amount
        if remaining <= 0:
            return oldest
    return None


def compute_due_date(debt_date: datetime, payment_terms_days: int, tz: tzinfo = UTC) -> date:
    return local_day(debt_date, tz) + timedelta(days=payment_terms_days)


def assess_account(
    account: Account,
    transactions: Iterable[Transaction],
    payment_terms_days: int,
    tz: tzinfo = UTC,
) -> DebtAssessment:
    """Run the backward walk for one account and derive its due date."""

    oldest = find_oldest_unpaid_debt_date(account.balance, transactions)
    if oldest is None:
        if account.balance > 0:
            logger.debug(
                "account %s: balance %s not attributable to any debt; not overdue",
                account.id,
                account.balance,
            )
        return DebtAssessment(account=account)
    return DebtAssessment(
        account=account,
        oldest_unpaid_debt_date=oldest,
        due_date=compute_due_date(oldest, payment_terms_days, tz),
    )


def compute_overdue_accounts(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    payment_terms_days: int,
    today: date,
    tz: tzinfo = UTC,
) -> list[OverdueAccount]:
    """Return the accounts with a positive balance whose due date has passed.

    ``transactions`` may span many accounts; they are grouped by
    ``account_id``. Output follows the order of ``accounts``. An account is
    overdue iff ``today > due_date`` (strict, calendar days).
    """

    by_account: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        by_account[tx.account_id].append(tx)

    results: list[OverdueAccount] = []
    for account in accounts:
        if account.balance <= 0:
            continue
        assessment = assess_account(account, by_account.get(account.id, ()), payment_terms_days, tz)
        if not assessment.is_overdue(today):
            continue
        assert assessment.oldest_unpaid_debt_date is not None
        assert assessment.due_date is not None
        results.append(
            OverdueAccount(
                account=account,
                oldest_unpaid_debt_date=assessment.oldest_unpaid_debt_date,
                due_date=assessment.due_date,
                days_overdue=assessment.days_overdue(today),
            )
        )
    logger.debug("overdue scan on %s: %d account(s) overdue", today.isoformat(), len(results))
    return results


def most_overdue_first(items: Sequence[OverdueAccount]) -> list[OverdueAccount]:
    return sorted(items, key=lambda o: (-o.days_overdue, o.account.name, o.account.id))


__all__ = [
    "find_oldest_unpaid_debt_date",
    "compute_due_date",
    "assess_account",
    "compute_overdue_accounts",
    "most_overdue_first",
]
