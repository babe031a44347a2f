# ruff: noqa: I001
"""Ledger core tables: accounts, transactions, settings.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ledger_accounts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("email", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("contact", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("category", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("settlement_day", sa.Text(), nullable=True),
        sa.CheckConstraint("kind in ('customer','supplier')", name="ck_ledger_account_kind"),
    )

    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(),
            sa.ForeignKey("ledger_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.CheckConstraint("type in ('debt','purchase','payment')", name="ck_ledger_tx_type"),
        sa.CheckConstraint("amount > 0", name="ck_ledger_tx_amount_positive"),
    )
    op.create_index(
        "ix_ledger_tx_account_date",
        "ledger_transactions",
        ["account_id", "date"],
    )

    op.create_table(
        "ledger_settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("ledger_settings")
    op.drop_index("ix_ledger_tx_account_date", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
    op.drop_table("ledger_accounts")
