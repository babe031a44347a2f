"""Ledger mutation service.

:class:`Ledger` is the single writer of accounts and transactions. Every
operation:

1. runs inside ``repository.atomic()`` so the record change and the account's
   cached balance are written together;
2. recomputes the cached balance from the log (opening balance back-solved
   from the pre-mutation state, plus the fold of the post-mutation
   transactions) rather than patching it incrementally;
3. returns the new immutable snapshot;
4. notifies subscribers with a :class:`~credit_ledger.models.LedgerChange`
   once the write has been committed.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeAlias

from .amounts import to_amount
from .balance import derive_initial_balance, implied_balance
from .dates import utc_now
from .errors import InvalidTransactionError, LedgerError
from .logging_setup import get_logger
from .models import (
    Account,
    AccountKind,
    ChangeKind,
    LedgerChange,
    Transaction,
    TransactionType,
)
from .repository import LedgerRepository

logger = get_logger("credit_ledger.ledger")

Listener: TypeAlias = Callable[[LedgerChange], None]

# Descriptive fields that ``update_account`` may change.
_EDITABLE_ACCOUNT_FIELDS = frozenset(
    {"name", "email", "phone", "contact", "category", "settlement_day"}
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise LedgerError("account name must not be empty")
    return cleaned


class Ledger:
    """Write-side service over a :class:`~credit_ledger.repository.LedgerRepository`.

    Parameters
    ----------
    repository:
        Storage used for reads and writes.
    clock:
        Returns the current aware ``datetime``; used for default creation and
        transaction timestamps.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._clock = clock
        self._listeners: list[Listener] = []

    @property
    def repository(self) -> LedgerRepository:
        return self._repo

    # ---- subscriptions -------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: LedgerChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # ---- accounts ------------------------------------------------------------

    def open_account(
        self,
        kind: AccountKind | str,
        name: str,
        *,
        created_at: datetime | None = None,
        opening_balance: Decimal | int | str = 0,
        account_id: str | None = None,
        **details: Any,
    ) -> Account:
        """Create an account.

        ``opening_balance`` seeds the balance carried over from before the
        ledger (money already owed when the account is added). It is not
        stored separately; reports back-solve it from the balance and the log.
        """

        kind = AccountKind(kind)
        unknown = set(details) - _EDITABLE_ACCOUNT_FIELDS
        if unknown:
            raise LedgerError(f"unknown account fields: {sorted(unknown)}")
        name = _clean_name(name)

        account = Account(
            id=account_id or _new_id(),
            kind=kind,
            name=name,
            created_at=created_at or self._clock(),
            balance=to_amount(opening_balance),
            **details,
        )
        with self._repo.atomic():
            self._repo.save_account(account)
        logger.info("opened %s account %s (%s)", kind.value, account.id, account.name)
        self._notify(LedgerChange(kind=ChangeKind.ACCOUNT_OPENED, account=account))
        return account

    def update_account(self, account_id: str, **fields: Any) -> Account:
        """Change descriptive fields. Balance, kind, id and creation date are not editable."""

        forbidden = set(fields) - _EDITABLE_ACCOUNT_FIELDS
        if forbidden:
            raise LedgerError(f"fields cannot be edited: {sorted(forbidden)}")
        if "name" in fields:
            fields["name"] = _clean_name(fields["name"])
        with self._repo.atomic():
            updated = replace(self._repo.get_account(account_id), **fields)
            self._repo.save_account(updated)
        logger.info("updated account %s fields=%s", account_id, sorted(fields))
        self._notify(LedgerChange(kind=ChangeKind.ACCOUNT_UPDATED, account=updated))
        return updated

    def close_account(self, account_id: str) -> Account:
        """Delete the account together with all of its transactions."""

        with self._repo.atomic():
            account = self._repo.get_account(account_id)
            self._repo.delete_account(account_id)
        logger.info("closed account %s (%s)", account.id, account.name)
        self._notify(LedgerChange(kind=ChangeKind.ACCOUNT_CLOSED, account=account))
        return account

    # ---- transactions --------------------------------------------------------

    def _rebalance(
        self,
        account: Account,
        before: Iterable[Transaction],
        after: Iterable[Transaction],
    ) -> Account:
        initial = derive_initial_balance(account.balance, before)
        updated = replace(account, balance=implied_balance(initial, after))
        self._repo.save_account(updated)
        return updated

    def record_transaction(
        self,
        account_id: str,
        type: TransactionType | str,
        amount: Decimal | int | str,
        *,
        date: datetime | None = None,
        description: str = "",
        transaction_id: str | None = None,
    ) -> tuple[Account, Transaction]:
        """Append a transaction and return the updated account and the new record."""

        with self._repo.atomic():
            account = self._repo.get_account(account_id)
            tx_type = TransactionType(type)
            if tx_type not in TransactionType.allowed_for(account.kind):
                raise InvalidTransactionError(
                    f"{tx_type.value!r} transactions do not apply to {account.kind.value} accounts"
                )
            tx = Transaction(
                id=transaction_id or _new_id(),
                account_id=account.id,
                type=tx_type,
                amount=amount,
                date=date or self._clock(),
                description=description,
            )
            before = self._repo.list_transactions(account.id)
            self._repo.save_transaction(tx)
            updated = self._rebalance(account, before, [*before, tx])
        logger.info(
            "recorded %s %s on %s; balance %s -> %s",
            tx.type.value,
            tx.amount,
            account.id,
            account.balance,
            updated.balance,
        )
        self._notify(
            LedgerChange(kind=ChangeKind.TRANSACTION_RECORDED, account=updated, transaction=tx)
        )
        return updated, tx

    def amend_transaction(
        self,
        transaction_id: str,
        *,
        amount: Decimal | int | str | None = None,
        date: datetime | None = None,
        description: str | None = None,
    ) -> tuple[Account, Transaction]:
        """Edit amount, date or description. The type of a transaction is fixed."""

        with self._repo.atomic():
            previous = self._repo.get_transaction(transaction_id)
            changes: dict[str, Any] = {}
            if amount is not None:
                changes["amount"] = amount
            if date is not None:
                changes["date"] = date
            if description is not None:
                changes["description"] = description
            # ``replace`` re-runs validation (positive amount, aware date).
            amended = replace(previous, **changes)
            account = self._repo.get_account(previous.account_id)
            before = self._repo.list_transactions(account.id)
            self._repo.save_transaction(amended)
            after = [amended if t.id == amended.id else t for t in before]
            updated = self._rebalance(account, before, after)
        logger.info(
            "amended transaction %s on %s; balance %s -> %s",
            transaction_id,
            account.id,
            account.balance,
            updated.balance,
        )
        self._notify(
            LedgerChange(
                kind=ChangeKind.TRANSACTION_AMENDED,
                account=updated,
                transaction=amended,
                previous=previous,
            )
        )
        return updated, amended

    def remove_transaction(self, transaction_id: str) -> Account:
        """Delete a transaction and return the owning account's new snapshot."""

        with self._repo.atomic():
            previous = self._repo.get_transaction(transaction_id)
            account = self._repo.get_account(previous.account_id)
            before = self._repo.list_transactions(account.id)
            self._repo.delete_transaction(transaction_id)
            after = [t for t in before if t.id != transaction_id]
            updated = self._rebalance(account, before, after)
        logger.info(
            "removed transaction %s from %s; balance %s -> %s",
            transaction_id,
            account.id,
            account.balance,
            updated.balance,
        )
        self._notify(
            LedgerChange(
                kind=ChangeKind.TRANSACTION_REMOVED,
                account=updated,
                transaction=previous,
                previous=previous,
            )
        )
        return updated


__all__ = ["Ledger", "Listener"]
