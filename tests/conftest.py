"""Pytest configuration for test isolation.

The CLI and the settings layer read ``DATABASE_URL`` and ``CREDIT_LEDGER_*``
from the environment (and from a ``.env`` in the working directory). Each
test gets a clean environment, a fresh logging configuration and no cached
database engines so temporary SQLite files never leak between tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from credit_ledger.logging_setup import reset_logging
from ledger_db.client import dispose_engines

_ENV_VARS = (
    "DATABASE_URL",
    "CREDIT_LEDGER_LOG_LEVEL",
    "CREDIT_LEDGER_PAYMENT_TERMS_DAYS",
    "CREDIT_LEDGER_CURRENCY",
    "CREDIT_LEDGER_TIMEZONE",
)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep any developer .env in the repo root out of CLI runs.
    monkeypatch.chdir(tmp_path)
    yield
    reset_logging()
    dispose_engines()
