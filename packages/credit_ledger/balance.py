"""Balance accumulator: fold a transaction set into balances and totals.

All functions are pure and order-independent. They back both the list-view
aggregates and the ledger closure rule::

    balance == initial_balance + compute_net_balance(transactions)
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .amounts import ZERO
from .models import AccountTotals, Transaction


def compute_totals(transactions: Iterable[Transaction]) -> AccountTotals:
    """Sum debit-side (``debt``/``purchase``) and ``payment`` amounts separately."""

    debits = ZERO
    payments = ZERO
    for tx in transactions:
        if tx.type.is_debit:
            debits += tx.amount
        else:
            payments += tx.amount
    return AccountTotals(debits=debits, payments=payments)


def compute_net_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Return ``Σ debits − Σ payments`` over ``transactions``."""

    return compute_totals(transactions).net


def derive_initial_balance(
    current_balance: Decimal, transactions: Iterable[Transaction]
) -> Decimal:
    """Back-solve the balance the account had before any of ``transactions``.

    ``current_balance − Σ debits + Σ payments``. Deriving it twice from the
    same inputs yields the same value; no separately stored opening balance is
    needed.
    """

    return current_balance - compute_net_balance(transactions)


def implied_balance(initial_balance: Decimal, transactions: Iterable[Transaction]) -> Decimal:
    return initial_balance + compute_net_balance(transactions)


__all__ = [
    "compute_totals",
    "compute_net_balance",
    "derive_initial_balance",
    "implied_balance",
]
