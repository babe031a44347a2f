"""DB helpers for tests: bootstrap a temporary SQLite database."""

from __future__ import annotations

from pathlib import Path

from ledger_db.client import create_schema


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file with the ledger schema and return its URL.

    A file-backed database lets several SQLAlchemy connections share state
    (in-memory SQLite databases are per-connection).
    """

    db_file.parent.mkdir(parents=True, exist_ok=True)
    url = f"sqlite+pysqlite:///{db_file}"
    create_schema(database_url=url)
    return url
