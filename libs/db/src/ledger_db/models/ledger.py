from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_accounts
# ---------------------------


class LedgerAccount(Base):
    __tablename__ = "ledger_accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Cached running balance. Written only by the ledger service, which
    # recomputes it from the transaction log inside the same DB transaction.
    balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    email: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    phone: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    contact: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    category: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    settlement_day: Mapped[str | None] = mapped_column(Text, nullable=True)

    transactions: Mapped[list[LedgerTransaction]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("kind in ('customer','supplier')", name="ck_ledger_account_kind"),
    )


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    account_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("ledger_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    # Always positive; direction lives in ``type`` only.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))

    account: Mapped[LedgerAccount] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("type in ('debt','purchase','payment')", name="ck_ledger_tx_type"),
        CheckConstraint("amount > 0", name="ck_ledger_tx_amount_positive"),
        Index("ix_ledger_tx_account_date", "account_id", "date"),
    )


# ---------------------------
# Settings: ledger_settings
# ---------------------------


class LedgerSetting(Base):
    __tablename__ = "ledger_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


__all__ = [
    "Base",
    "LedgerAccount",
    "LedgerSetting",
    "LedgerTransaction",
]
