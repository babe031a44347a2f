"""Public interface for the ``credit_ledger`` package.

This module exposes the package's API functions, the ledger service and the
public models/types as the stable import surface. There is no runtime logic
here, only symbol re-exports.
"""

from .api import (
    account_assessment,
    account_summaries,
    balance_history,
    compute_balance_history,
    compute_net_balance,
    compute_overdue_accounts,
    derive_initial_balance,
    overdue_report,
)
from .errors import (
    AccountNotFoundError,
    BackupFormatError,
    InvalidAmountError,
    InvalidTransactionError,
    LedgerError,
    TransactionNotFoundError,
)
from .ledger import Ledger
from .models import (
    Account,
    AccountKind,
    AccountSummary,
    AccountTotals,
    BalancePoint,
    ChangeKind,
    DebtAssessment,
    LedgerChange,
    OverdueAccount,
    Transaction,
    TransactionType,
)
from .repository import InMemoryLedgerRepository, LedgerRepository
from .settings import LedgerSettings

__all__ = [
    # API
    "compute_net_balance",
    "compute_overdue_accounts",
    "compute_balance_history",
    "derive_initial_balance",
    "overdue_report",
    "account_assessment",
    "balance_history",
    "account_summaries",
    # Service / storage
    "Ledger",
    "LedgerRepository",
    "InMemoryLedgerRepository",
    "LedgerSettings",
    # Models / types
    "Account",
    "AccountKind",
    "AccountSummary",
    "AccountTotals",
    "BalancePoint",
    "ChangeKind",
    "DebtAssessment",
    "LedgerChange",
    "OverdueAccount",
    "Transaction",
    "TransactionType",
    # Errors
    "LedgerError",
    "AccountNotFoundError",
    "TransactionNotFoundError",
    "InvalidAmountError",
    "InvalidTransactionError",
    "BackupFormatError",
]
