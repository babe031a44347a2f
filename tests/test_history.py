from __future__ import annotations

from datetime import date
from decimal import Decimal
from zoneinfo import ZoneInfo

from credit_ledger.history import MIN_CHART_POINTS, compute_balance_history, is_chartable
from tests.helpers.ledger import customer, debt, dt, payment, supplier


def _series(points):
    return [(p.day, p.balance) for p in points]


def test_replays_from_creation_point():
    account = customer(60)
    txs = [payment(40, "2024-01-10"), debt(100, "2024-01-05")]

    points = compute_balance_history(account, txs)

    assert _series(points) == [
        (date(2024, 1, 1), Decimal("0.00")),
        (date(2024, 1, 5), Decimal("100.00")),
        (date(2024, 1, 10), Decimal("60.00")),
    ]
    assert points[-1].balance == account.balance


def test_same_day_points_collapse_to_the_later_transaction():
    account = customer(70)
    txs = [
        debt(100, "2024-01-05T09:00"),
        payment(30, "2024-01-05T17:00"),
    ]

    points = compute_balance_history(account, txs)

    assert _series(points) == [
        (date(2024, 1, 1), Decimal("0.00")),
        (date(2024, 1, 5), Decimal("70.00")),
    ]
    assert points[1].date == dt("2024-01-05T17:00")


def test_transaction_on_creation_day_overwrites_creation_point():
    account = customer(25, created="2024-01-01T08:00")
    points = compute_balance_history(account, [debt(25, "2024-01-01T12:00")])

    assert _series(points) == [(date(2024, 1, 1), Decimal("25.00"))]
    assert not is_chartable(points)


def test_no_transactions_gives_single_creation_point():
    account = customer(0, created="2024-02-02")

    points = compute_balance_history(account, [])

    assert _series(points) == [(date(2024, 2, 2), Decimal("0.00"))]
    assert len(points) < MIN_CHART_POINTS
    assert not is_chartable(points)


def test_back_solved_opening_balance_starts_the_series():
    # Supplier opened with 200 already owed, then one purchase and one payment.
    account = supplier(250)
    from credit_ledger.models import Transaction, TransactionType

    txs = [
        Transaction(
            id="p1",
            account_id="s1",
            type=TransactionType.PURCHASE,
            amount=Decimal("150"),
            date=dt("2024-01-03"),
        ),
        payment(100, "2024-01-04", account_id="s1"),
    ]

    points = compute_balance_history(account, txs)

    assert [p.balance for p in points] == [Decimal("200.00"), Decimal("350.00"), Decimal("250.00")]


def test_day_buckets_follow_the_given_timezone():
    account = customer(30, created="2024-01-01")
    # 22:30 and 23:30 UTC on Jan 5: same UTC day, different days in Paris.
    txs = [debt(10, "2024-01-05T22:30"), debt(20, "2024-01-05T23:30")]

    utc_days = [p.day for p in compute_balance_history(account, txs)]
    paris_days = [p.day for p in compute_balance_history(account, txs, ZoneInfo("Europe/Paris"))]

    assert utc_days == [date(2024, 1, 1), date(2024, 1, 5)]
    assert paris_days == [date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 6)]


def test_history_is_stable_across_runs():
    account = customer(60)
    txs = [debt(100, "2024-01-05"), payment(40, "2024-01-10")]

    assert compute_balance_history(account, txs) == compute_balance_history(
        account, list(reversed(txs))
    )
