"""Data models for ``credit_ledger``.

Records are frozen dataclasses: repositories hand out immutable snapshots and
the :class:`~credit_ledger.ledger.Ledger` service produces new instances (via
:func:`dataclasses.replace`) instead of mutating shared state.

Sign convention
---------------
``Account.balance`` is positive when the customer owes the merchant (customer
ledger) or when the merchant owes the supplier (supplier ledger). A
``Transaction.amount`` is always strictly positive; its direction is carried
solely by ``Transaction.type``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from .amounts import ZERO, to_amount
from .errors import InvalidTransactionError

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class AccountKind(StrEnum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class TransactionType(StrEnum):
    """Direction of a ledger event.

    ``debt`` (customer ledger) and ``purchase`` (supplier ledger) increase the
    outstanding balance; ``payment`` decreases it on either ledger.
    """

    DEBT = "debt"
    PURCHASE = "purchase"
    PAYMENT = "payment"

    @property
    def is_debit(self) -> bool:
        return self is not TransactionType.PAYMENT

    @classmethod
    def allowed_for(cls, kind: AccountKind) -> frozenset[TransactionType]:
        if kind is AccountKind.SUPPLIER:
            return frozenset({cls.PURCHASE, cls.PAYMENT})
        return frozenset({cls.DEBT, cls.PAYMENT})

    @classmethod
    def debit_for(cls, kind: AccountKind) -> TransactionType:
        return cls.PURCHASE if kind is AccountKind.SUPPLIER else cls.DEBT


def _require_aware(value: datetime, what: str) -> None:
    if not isinstance(value, datetime):
        raise InvalidTransactionError(f"{what} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidTransactionError(f"{what} must be timezone-aware: {value!r}")


# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Account:
    """A customer or supplier with a cached running balance.

    ``balance`` is a materialized view of the account's transaction log; only
    the ledger service writes it (see :mod:`credit_ledger.ledger`).
    """

    id: str
    kind: AccountKind
    name: str
    created_at: datetime
    balance: Decimal = ZERO
    email: str = ""
    phone: str = ""
    contact: str = ""
    category: str = ""
    # Free-form label such as "Friday": settlement day for customers, visit
    # day for suppliers.
    settlement_day: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", AccountKind(self.kind))
        object.__setattr__(self, "balance", to_amount(self.balance))
        _require_aware(self.created_at, "Account.created_at")


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single signed monetary event on one account.

    Validation
    ----------
    - ``amount`` is parsed to a 2dp ``Decimal`` and must be ``> 0``.
    - ``date`` must be timezone-aware so that calendar-day bucketing is
      unambiguous.
    """

    id: str
    account_id: str
    type: TransactionType
    amount: Decimal
    date: datetime
    description: str = ""

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "type", TransactionType(self.type))
        except ValueError as e:
            raise InvalidTransactionError(f"Unknown transaction type: {self.type!r}") from e
        amount = to_amount(self.amount)
        if amount <= 0:
            raise InvalidTransactionError(
                f"Transaction amount must be positive, got {amount} (id={self.id!r})"
            )
        object.__setattr__(self, "amount", amount)
        _require_aware(self.date, "Transaction.date")

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type.is_debit else -self.amount


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AccountTotals:
    """Aggregates shown in list views ("total debts", "total payments")."""

    debits: Decimal = ZERO
    payments: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.debits - self.payments


@dataclass(frozen=True, slots=True)
class BalancePoint:
    """One point of a daily balance series.

    ``day`` is the local calendar day used for bucketing; ``date`` is the
    timestamp of the last event that landed in that bucket.
    """

    day: date
    date: datetime
    balance: Decimal


@dataclass(frozen=True, slots=True)
class DebtAssessment:
    """Outcome of the backward (LIFO) walk for one account.

    ``oldest_unpaid_debt_date`` and ``due_date`` are ``None`` when no debt can
    be attributed to the outstanding balance (non-positive balance, no debt
    transactions, or history exhausted before the balance was explained).
    """

    account: Account
    oldest_unpaid_debt_date: datetime | None = None
    due_date: date | None = None

    def is_overdue(self, today: date) -> bool:
        return self.due_date is not None and today > self.due_date

    def days_overdue(self, today: date) -> int:
        if not self.is_overdue(today):
            return 0
        assert self.due_date is not None
        return (today - self.due_date).days


@dataclass(frozen=True, slots=True)
class OverdueAccount:
    account: Account
    oldest_unpaid_debt_date: datetime
    due_date: date
    days_overdue: int


@dataclass(frozen=True, slots=True)
class AccountSummary:
    account: Account
    totals: AccountTotals


# ---------------------------------------------------------------------------
# Change notifications
# ---------------------------------------------------------------------------


class ChangeKind(StrEnum):
    ACCOUNT_OPENED = "account_opened"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_CLOSED = "account_closed"
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_AMENDED = "transaction_amended"
    TRANSACTION_REMOVED = "transaction_removed"


@dataclass(frozen=True, slots=True)
class LedgerChange:
    """Emitted to subscribers after a mutation has been committed.

    ``account`` is the account's new snapshot (its last snapshot for
    ``ACCOUNT_CLOSED``); ``transaction`` is the affected transaction when the
    change concerns one (its previous value for ``TRANSACTION_REMOVED``).
    """

    kind: ChangeKind
    account: Account | None = None
    transaction: Transaction | None = None
    previous: Transaction | None = field(default=None, compare=False)


__all__ = [
    "AccountKind",
    "TransactionType",
    "Account",
    "Transaction",
    "AccountTotals",
    "BalancePoint",
    "DebtAssessment",
    "OverdueAccount",
    "AccountSummary",
    "ChangeKind",
    "LedgerChange",
]
