"""SQLAlchemy models registry for the ledger database."""

from .ledger import Base, LedgerAccount, LedgerSetting, LedgerTransaction

__all__ = [
    "Base",
    "LedgerAccount",
    "LedgerSetting",
    "LedgerTransaction",
]
