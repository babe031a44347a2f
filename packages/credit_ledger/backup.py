"""JSON backup/restore and CSV export/import of ledger data.

The JSON backup is a versioned, typed document (see :class:`BackupFile`)
holding the settings, every account and every transaction. Restoring replaces
the repository's content in a single atomic write. Stored balances are kept
as-is: opening balances are back-solved from them, never stored separately.
"""

from __future__ import annotations

import csv
import re
import uuid
from datetime import datetime
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import IO, Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError

from .amounts import to_amount
from .dates import parse_timestamp, utc_now
from .errors import BackupFormatError, LedgerError
from .logging_setup import get_logger
from .models import Account, AccountKind, Transaction, TransactionType
from .repository import LedgerRepository
from .settings import LedgerSettings

logger = get_logger("credit_ledger.backup")

SCHEMA_VERSION = 1

# Column order of the accounts CSV export.
ACCOUNT_CSV_HEADERS: tuple[str, ...] = (
    "id",
    "name",
    "email",
    "phone",
    "created_at",
    "balance",
    "settlement_day",
)
# Header spellings accepted on import in addition to ACCOUNT_CSV_HEADERS.
_CSV_HEADER_ALIASES: dict[str, str] = {"createdAt": "created_at"}


# ---------------------------------------------------------------------------
# DTOs for typed backup I/O
# ---------------------------------------------------------------------------


class AccountRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    kind: AccountKind
    name: str = Field(min_length=1)
    created_at: AwareDatetime
    balance: Decimal
    email: str = ""
    phone: str = ""
    contact: str = ""
    category: str = ""
    settlement_day: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> AccountRecord:
        return cls(
            id=account.id,
            kind=account.kind,
            name=account.name,
            created_at=account.created_at,
            balance=account.balance,
            email=account.email,
            phone=account.phone,
            contact=account.contact,
            category=account.category,
            settlement_day=account.settlement_day,
        )

    def to_account(self) -> Account:
        return Account(**self.model_dump())


class TransactionRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    type: TransactionType
    amount: Decimal = Field(gt=0)
    date: AwareDatetime
    description: str = ""

    @classmethod
    def from_transaction(cls, tx: Transaction) -> TransactionRecord:
        return cls(
            id=tx.id,
            account_id=tx.account_id,
            type=tx.type,
            amount=tx.amount,
            date=tx.date,
            description=tx.description,
        )

    def to_transaction(self) -> Transaction:
        return Transaction(**self.model_dump())


class BackupFile(BaseModel):
    """Top-level schema for a JSON backup file."""

    model_config = ConfigDict(extra="forbid")

    schema_version: Literal[1] = SCHEMA_VERSION
    exported_at: AwareDatetime
    settings: LedgerSettings
    accounts: list[AccountRecord]
    transactions: list[TransactionRecord]


# ---------------------------------------------------------------------------
# JSON backup
# ---------------------------------------------------------------------------


def export_backup(
    repository: LedgerRepository, *, exported_at: datetime | None = None
) -> BackupFile:
    return BackupFile(
        exported_at=exported_at or utc_now(),
        settings=repository.get_settings(),
        accounts=[AccountRecord.from_account(a) for a in repository.list_accounts()],
        transactions=[
            TransactionRecord.from_transaction(t) for t in repository.list_transactions()
        ],
    )


def write_backup(path: str | PathLike[str], backup: BackupFile) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(backup.model_dump_json(indent=2), encoding="utf-8")
    logger.info(
        "wrote backup %s (%d accounts, %d transactions)",
        p,
        len(backup.accounts),
        len(backup.transactions),
    )
    return p


def read_backup(path: str | PathLike[str]) -> BackupFile:
    """Load and validate a backup file; schema problems raise :class:`BackupFormatError`."""

    p = Path(path)
    try:
        return BackupFile.model_validate_json(p.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise BackupFormatError(f"invalid backup file {p}: {e}") from e


def restore_backup(repository: LedgerRepository, backup: BackupFile) -> tuple[int, int]:
    """Replace all repository content with ``backup``.

    Returns ``(accounts, transactions)`` restored. Raises
    :class:`BackupFormatError` when a transaction references an unknown
    account, a type does not belong to its account kind, or ids repeat.
    """

    try:
        accounts = [r.to_account() for r in backup.accounts]
        transactions = [r.to_transaction() for r in backup.transactions]
    except LedgerError as e:
        raise BackupFormatError(f"invalid record in backup: {e}") from e

    by_id = {a.id: a for a in accounts}
    if len(by_id) != len(accounts):
        raise BackupFormatError("duplicate account ids in backup")
    if len({t.id for t in transactions}) != len(transactions):
        raise BackupFormatError("duplicate transaction ids in backup")
    for tx in transactions:
        owner = by_id.get(tx.account_id)
        if owner is None:
            raise BackupFormatError(
                f"transaction {tx.id!r} references unknown account {tx.account_id!r}"
            )
        if tx.type not in TransactionType.allowed_for(owner.kind):
            raise BackupFormatError(
                f"transaction {tx.id!r}: {tx.type.value!r} "
                f"does not apply to {owner.kind.value} accounts"
            )

    with repository.atomic():
        for existing in repository.list_accounts():
            repository.delete_account(existing.id)
        repository.save_settings(backup.settings)
        for account in accounts:
            repository.save_account(account)
        for tx in transactions:
            repository.save_transaction(tx)
    logger.info("restored %d accounts and %d transactions", len(accounts), len(transactions))
    return len(accounts), len(transactions)


# ---------------------------------------------------------------------------
# CSV export and import
# ---------------------------------------------------------------------------


def export_accounts_csv(
    repository: LedgerRepository,
    stream: IO[str],
    kind: AccountKind | None = AccountKind.CUSTOMER,
) -> int:
    """Write accounts as CSV (header row first) and return the number of data rows."""

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(ACCOUNT_CSV_HEADERS)
    count = 0
    for account in repository.list_accounts(kind):
        writer.writerow(
            [
                account.id,
                account.name,
                account.email,
                account.phone,
                account.created_at.isoformat(),
                f"{account.balance:.2f}",
                account.settlement_day or "",
            ]
        )
        count += 1
    return count


def _clean_balance_cell(raw: str) -> str:
    # Drop currency symbols, spaces and thousands separators ("1,234.50 €").
    return re.sub(r"[^0-9.\-]", "", raw)


def import_accounts_csv(
    repository: LedgerRepository,
    stream: IO[str],
    kind: AccountKind = AccountKind.CUSTOMER,
    *,
    replace: bool = False,
    now: datetime | None = None,
) -> int:
    """Create ``kind`` accounts from CSV rows and return how many were imported.

    Columns are matched by header name (see :data:`ACCOUNT_CSV_HEADERS`;
    ``createdAt`` is accepted for ``created_at``). Only ``name`` is required:

    - a missing ``id`` is generated;
    - a missing ``created_at`` defaults to ``now``; a bare date is midnight in
      the settings timezone;
    - ``balance`` seeds the opening balance (empty means zero). Imported
      accounts have no transactions, so the whole balance is carried over.

    With ``replace=True`` every existing ``kind`` account is deleted first,
    together with its transactions. Blank rows are skipped. Any bad row
    raises :class:`BackupFormatError` and nothing is written.
    """

    reader = csv.DictReader(stream)
    headers = {_CSV_HEADER_ALIASES.get(h, h) for h in reader.fieldnames or []}
    if not headers:
        raise BackupFormatError("CSV appears to have no header row")
    if "name" not in headers:
        raise BackupFormatError("CSV is missing the required 'name' column")

    tz = repository.get_settings().tzinfo
    created_default = now or utc_now()
    accounts: list[Account] = []
    # Data rows start on line 2, after the header.
    for line, row in enumerate(reader, start=2):
        cells = {
            _CSV_HEADER_ALIASES.get(k, k): (v or "").strip()
            for k, v in row.items()
            if k is not None
        }
        if not any(cells.values()):
            continue
        if not cells.get("name"):
            raise BackupFormatError(f"CSV line {line}: 'name' must not be empty")
        try:
            created = cells.get("created_at")
            balance = cells.get("balance")
            accounts.append(
                Account(
                    id=cells.get("id") or uuid.uuid4().hex,
                    kind=kind,
                    name=cells["name"],
                    created_at=parse_timestamp(created, tz) if created else created_default,
                    balance=to_amount(_clean_balance_cell(balance) if balance else 0),
                    email=cells.get("email", ""),
                    phone=cells.get("phone", ""),
                    settlement_day=cells.get("settlement_day") or None,
                )
            )
        except (LedgerError, ValueError) as e:
            raise BackupFormatError(f"CSV line {line}: {e}") from e

    ids = [a.id for a in accounts]
    if len(set(ids)) != len(ids):
        raise BackupFormatError("duplicate account ids in CSV")

    with repository.atomic():
        existing = repository.list_accounts()
        if replace:
            for account in existing:
                if account.kind == kind:
                    repository.delete_account(account.id)
            existing = [a for a in existing if a.kind != kind]
        clashes = sorted({a.id for a in existing} & set(ids))
        if clashes:
            raise BackupFormatError(f"accounts already exist: {clashes}")
        for account in accounts:
            repository.save_account(account)
    logger.info(
        "imported %d %s account(s) from CSV (replace=%s)", len(accounts), kind.value, replace
    )
    return len(accounts)


__all__ = [
    "SCHEMA_VERSION",
    "ACCOUNT_CSV_HEADERS",
    "AccountRecord",
    "TransactionRecord",
    "BackupFile",
    "export_backup",
    "write_backup",
    "read_backup",
    "restore_backup",
    "export_accounts_csv",
    "import_accounts_csv",
]
