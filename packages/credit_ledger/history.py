"""Balance history replayer: a one-point-per-day balance series for charts.

The opening balance is not stored; it is back-solved from the current balance
and the full transaction list (see :func:`~credit_ledger.balance.derive_initial_balance`),
then the log is replayed forward from the account's creation date.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, tzinfo
from decimal import Decimal

from .balance import derive_initial_balance
from .dates import local_day
from .logging_setup import get_logger
from .models import Account, BalancePoint, Transaction

logger = get_logger("credit_ledger.history")

# Fewer daily points than this cannot be drawn as a line.
MIN_CHART_POINTS = 2


def compute_balance_history(
    account: Account,
    transactions: Iterable[Transaction],
    tz: tzinfo = UTC,
) -> list[BalancePoint]:
    """Replay ``transactions`` into a daily cumulative-balance series.

    Steps:
    1. sort ascending by ``(date, id)``;
    2. derive the opening balance from ``account.balance``;
    3. emit the creation point, then one point per transaction;
    4. bucket by calendar day in ``tz``, the last point of a day wins (the
       creation point comes first, so same-day transactions overwrite it);
    5. return the buckets in ascending date order.
    """

    ordered = sorted(transactions, key=lambda t: (t.date, t.id))
    running = derive_initial_balance(account.balance, ordered)

    raw: list[tuple[datetime, Decimal]] = [(account.created_at, running)]
    for tx in ordered:
        running += tx.signed_amount
        raw.append((tx.date, running))

    daily: dict[date, BalancePoint] = {}
    for moment, balance in raw:
        day = local_day(moment, tz)
        daily[day] = BalancePoint(day=day, date=moment, balance=balance)

    points = sorted(daily.values(), key=lambda p: p.date)
    if not is_chartable(points):
        logger.debug("account %s: %d daily point(s); not enough to chart", account.id, len(points))
    return points


def is_chartable(points: Sequence[BalancePoint]) -> bool:
    return len(points) >= MIN_CHART_POINTS


__all__ = ["MIN_CHART_POINTS", "compute_balance_history", "is_chartable"]
