# ruff: noqa: I001
"""SQL-backed :class:`~credit_ledger.repository.LedgerRepository`.

Rows live in the tables owned by ``libs/db`` (``ledger_accounts``,
``ledger_transactions``, ``ledger_settings``) and are converted to the frozen
domain records on every read, so callers never hold live ORM objects.

Scope:
- CRUD over accounts and transactions (account deletion cascades).
- Key/value persistence of :class:`~credit_ledger.settings.LedgerSettings`.
- ``atomic()`` commits the session on success and rolls it back on error.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_db.models.ledger import LedgerAccount, LedgerSetting, LedgerTransaction

from .dates import ensure_aware
from .errors import AccountNotFoundError, TransactionNotFoundError
from .logging_setup import get_logger
from .models import Account, AccountKind, Transaction
from .settings import LedgerSettings

logger = get_logger("credit_ledger.persistence")


def _as_utc(moment: datetime) -> datetime:
    # SQLite's DATETIME drops the offset, so everything is stored as UTC.
    return moment.astimezone(UTC)


def _account_from_row(row: LedgerAccount) -> Account:
    return Account(
        id=row.id,
        kind=AccountKind(row.kind),
        name=row.name,
        created_at=ensure_aware(row.created_at),
        balance=row.balance,
        email=row.email or "",
        phone=row.phone or "",
        contact=row.contact or "",
        category=row.category or "",
        settlement_day=row.settlement_day,
    )


def _transaction_from_row(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        account_id=row.account_id,
        type=row.type,
        amount=row.amount,
        date=ensure_aware(row.date),
        description=row.description or "",
    )


class SqlLedgerRepository:
    """Repository over a caller-provided SQLAlchemy ``Session``.

    The session's lifetime belongs to the caller (typically
    ``ledger_db.client.session_scope``); this class only flushes, commits in
    :meth:`atomic`, and rolls back on failure.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ---- reads ---------------------------------------------------------------

    def _account_row(self, account_id: str) -> LedgerAccount:
        row = self._session.get(LedgerAccount, account_id)
        if row is None:
            raise AccountNotFoundError(account_id)
        return row

    def _transaction_row(self, transaction_id: str) -> LedgerTransaction:
        row = self._session.get(LedgerTransaction, transaction_id)
        if row is None:
            raise TransactionNotFoundError(transaction_id)
        return row

    def get_account(self, account_id: str) -> Account:
        return _account_from_row(self._account_row(account_id))

    def list_accounts(self, kind: AccountKind | None = None) -> list[Account]:
        stmt = select(LedgerAccount).order_by(LedgerAccount.created_at, LedgerAccount.id)
        if kind is not None:
            stmt = stmt.where(LedgerAccount.kind == kind.value)
        return [_account_from_row(r) for r in self._session.scalars(stmt)]

    def get_transaction(self, transaction_id: str) -> Transaction:
        return _transaction_from_row(self._transaction_row(transaction_id))

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]:
        stmt = select(LedgerTransaction).order_by(LedgerTransaction.date, LedgerTransaction.id)
        if account_id is not None:
            stmt = stmt.where(LedgerTransaction.account_id == account_id)
        return [_transaction_from_row(r) for r in self._session.scalars(stmt)]

    def get_settings(self) -> LedgerSettings:
        stored = {
            row.key: row.value for row in self._session.scalars(select(LedgerSetting))
        }
        return LedgerSettings.model_validate(stored)

    # ---- writes --------------------------------------------------------------

    def save_account(self, account: Account) -> None:
        row = self._session.get(LedgerAccount, account.id)
        if row is None:
            row = LedgerAccount(id=account.id)
            self._session.add(row)
        row.kind = account.kind.value
        row.name = account.name
        row.created_at = _as_utc(account.created_at)
        row.balance = account.balance
        row.email = account.email
        row.phone = account.phone
        row.contact = account.contact
        row.category = account.category
        row.settlement_day = account.settlement_day
        self._session.flush()

    def delete_account(self, account_id: str) -> None:
        row = self._account_row(account_id)
        tx_rows = list(
            self._session.scalars(
                select(LedgerTransaction).where(LedgerTransaction.account_id == account_id)
            )
        )
        for tx_row in tx_rows:
            self._session.delete(tx_row)
        self._session.flush()
        # The loaded collection may be stale; children are already gone.
        self._session.expire(row, ["transactions"])
        self._session.delete(row)
        self._session.flush()

    def save_transaction(self, transaction: Transaction) -> None:
        self._account_row(transaction.account_id)
        row = self._session.get(LedgerTransaction, transaction.id)
        if row is None:
            row = LedgerTransaction(id=transaction.id)
            self._session.add(row)
        row.account_id = transaction.account_id
        row.type = transaction.type.value
        row.amount = transaction.amount
        row.date = _as_utc(transaction.date)
        row.description = transaction.description
        self._session.flush()

    def delete_transaction(self, transaction_id: str) -> None:
        self._session.delete(self._transaction_row(transaction_id))
        self._session.flush()

    def save_settings(self, settings: LedgerSettings) -> None:
        for key, value in settings.model_dump().items():
            row = self._session.get(LedgerSetting, key)
            if row is None:
                self._session.add(LedgerSetting(key=key, value=str(value)))
            else:
                row.value = str(value)
        self._session.flush()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except BaseException:
            logger.debug("rolling back ledger write")
            self._session.rollback()
            raise


__all__ = ["SqlLedgerRepository"]
