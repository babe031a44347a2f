"""Repository interface for ledger storage and an in-memory implementation.

Consumers receive a repository explicitly (no module-level store). Reads
return immutable snapshots; writes replace whole records. ``atomic()`` groups
writes so a ledger mutation and the matching balance update land together or
not at all.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, runtime_checkable

from .errors import AccountNotFoundError, TransactionNotFoundError
from .models import Account, AccountKind, Transaction
from .settings import LedgerSettings


@runtime_checkable
class LedgerRepository(Protocol):
    """Storage contract used by :class:`~credit_ledger.ledger.Ledger` and the reports."""

    def get_account(self, account_id: str) -> Account: ...

    def list_accounts(self, kind: AccountKind | None = None) -> list[Account]: ...

    def get_transaction(self, transaction_id: str) -> Transaction: ...

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]: ...

    def save_account(self, account: Account) -> None: ...

    def delete_account(self, account_id: str) -> None:
        """Delete the account and every transaction that belongs to it."""
        ...

    def save_transaction(self, transaction: Transaction) -> None: ...

    def delete_transaction(self, transaction_id: str) -> None: ...

    def get_settings(self) -> LedgerSettings: ...

    def save_settings(self, settings: LedgerSettings) -> None: ...

    def atomic(self) -> AbstractContextManager[None]: ...


class InMemoryLedgerRepository:
    """Dict-backed repository.

    Records are frozen dataclasses, so handing them out directly is safe; the
    lists returned by ``list_*`` are fresh copies. Accounts list in insertion
    order; transactions list by ``(date, id)``.
    """

    def __init__(
        self,
        accounts: list[Account] | None = None,
        transactions: list[Transaction] | None = None,
        settings: LedgerSettings | None = None,
    ) -> None:
        self._accounts: dict[str, Account] = {a.id: a for a in accounts or ()}
        self._transactions: dict[str, Transaction] = {t.id: t for t in transactions or ()}
        self._settings = settings or LedgerSettings()

    # ---- reads ---------------------------------------------------------------

    def get_account(self, account_id: str) -> Account:
        try:
            return self._accounts[account_id]
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    def list_accounts(self, kind: AccountKind | None = None) -> list[Account]:
        return [a for a in self._accounts.values() if kind is None or a.kind == kind]

    def get_transaction(self, transaction_id: str) -> Transaction:
        try:
            return self._transactions[transaction_id]
        except KeyError:
            raise TransactionNotFoundError(transaction_id) from None

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]:
        rows = [
            t
            for t in self._transactions.values()
            if account_id is None or t.account_id == account_id
        ]
        rows.sort(key=lambda t: (t.date, t.id))
        return rows

    def get_settings(self) -> LedgerSettings:
        return self._settings

    # ---- writes --------------------------------------------------------------

    def save_account(self, account: Account) -> None:
        self._accounts[account.id] = account

    def delete_account(self, account_id: str) -> None:
        if account_id not in self._accounts:
            raise AccountNotFoundError(account_id)
        del self._accounts[account_id]
        self._transactions = {
            k: t for k, t in self._transactions.items() if t.account_id != account_id
        }

    def save_transaction(self, transaction: Transaction) -> None:
        if transaction.account_id not in self._accounts:
            raise AccountNotFoundError(transaction.account_id)
        self._transactions[transaction.id] = transaction

    def delete_transaction(self, transaction_id: str) -> None:
        if self._transactions.pop(transaction_id, None) is None:
            raise TransactionNotFoundError(transaction_id)

    def save_settings(self, settings: LedgerSettings) -> None:
        self._settings = settings

    @contextmanager
    def atomic(self) -> Iterator[None]:
        saved = (dict(self._accounts), dict(self._transactions), self._settings)
        try:
            yield
        except BaseException:
            self._accounts, self._transactions, self._settings = saved
            raise


__all__ = ["LedgerRepository", "InMemoryLedgerRepository"]
