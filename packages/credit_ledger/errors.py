"""Exception hierarchy for ``credit_ledger``.

The pure algorithms (balance, overdue, history) never raise on well-formed
input. These errors are raised at the boundaries: record construction,
repository lookups, ledger mutations and backup parsing.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by ``credit_ledger``."""


class AccountNotFoundError(LedgerError, LookupError):
    """Raised when an account id does not exist in the repository."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account not found: {account_id!r}")
        self.account_id = account_id


class TransactionNotFoundError(LedgerError, LookupError):
    """Raised when a transaction id does not exist in the repository."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction not found: {transaction_id!r}")
        self.transaction_id = transaction_id


class InvalidAmountError(LedgerError, ValueError):
    """Raised when a value cannot be interpreted as a currency amount."""


class InvalidTransactionError(LedgerError, ValueError):
    """Raised when a transaction violates the ledger's record rules.

    Examples: a non-positive amount, a naive timestamp, or a ``purchase``
    recorded against a customer account.
    """


class BackupFormatError(LedgerError):
    """Raised when a JSON backup cannot be parsed or is internally inconsistent."""


__all__ = [
    "LedgerError",
    "AccountNotFoundError",
    "TransactionNotFoundError",
    "InvalidAmountError",
    "InvalidTransactionError",
    "BackupFormatError",
]
