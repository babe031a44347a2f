from __future__ import annotations

import io
import logging
from datetime import UTC, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from credit_ledger.amounts import format_amount, to_amount
from credit_ledger.dates import ensure_aware, local_day, parse_timestamp
from credit_ledger.errors import InvalidAmountError
from credit_ledger.logging_setup import configure_logging, get_logger
from credit_ledger.settings import LedgerSettings, settings_from_env


def test_defaults():
    s = LedgerSettings()

    assert s.payment_terms_days == 30
    assert s.currency == "€"
    assert s.tzinfo == ZoneInfo("UTC")


@pytest.mark.parametrize(
    "overrides",
    [
        {"payment_terms_days": -1},
        {"currency": ""},
        {"timezone": "Mars/Olympus_Mons"},
        {"unexpected": 1},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        LedgerSettings(**overrides)


def test_environment_overrides_stored_values(monkeypatch: pytest.MonkeyPatch):
    stored = LedgerSettings(payment_terms_days=15, currency="$")
    monkeypatch.setenv("CREDIT_LEDGER_PAYMENT_TERMS_DAYS", "45")
    monkeypatch.setenv("CREDIT_LEDGER_TIMEZONE", "Europe/Paris")
    monkeypatch.setenv("CREDIT_LEDGER_CURRENCY", "  ")

    s = settings_from_env(stored)

    assert s.payment_terms_days == 45
    assert s.timezone == "Europe/Paris"
    assert s.currency == "$"


def test_amount_parsing():
    assert to_amount("12.345") == to_amount("12.35")
    assert str(to_amount(0.1)) == "0.10"
    assert format_amount(to_amount("1234.5"), "€") == "1,234.50 €"
    for bad in (None, True, "abc", "NaN", float("inf")):
        with pytest.raises(InvalidAmountError):
            to_amount(bad)


def test_calendar_day_depends_on_timezone():
    late = datetime(2024, 1, 5, 23, 30, tzinfo=UTC)

    assert local_day(late) == late.date()
    assert local_day(late, ZoneInfo("Europe/Paris")).isoformat() == "2024-01-06"


def test_timestamp_parsing():
    assert parse_timestamp("2024-01-05T10:00:00Z") == datetime(2024, 1, 5, 10, tzinfo=UTC)
    paris = parse_timestamp("2024-01-05", ZoneInfo("Europe/Paris"))
    assert paris.utcoffset() == timedelta(hours=1)
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_ensure_aware_only_fills_missing_offsets():
    plus_two = timezone(timedelta(hours=2))
    aware = datetime(2024, 1, 5, tzinfo=plus_two)

    assert ensure_aware(aware) is aware
    assert ensure_aware(datetime(2024, 1, 5)).tzinfo is UTC


def test_configure_logging_attaches_one_handler(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CREDIT_LEDGER_LOG_LEVEL", "debug")
    stream = io.StringIO()

    configure_logging(stream=stream, fmt="%(levelname)s %(name)s %(message)s")
    configure_logging(level="ERROR")
    get_logger("credit_ledger.tests").debug("hello %s", "ledger")

    pkg = logging.getLogger("credit_ledger")
    assert len(pkg.handlers) == 1
    assert pkg.level == logging.DEBUG
    assert stream.getvalue() == "DEBUG credit_ledger.tests hello ledger\n"


def test_library_logger_is_silent_until_configured():
    get_logger("credit_ledger.tests")

    handlers = logging.getLogger("credit_ledger").handlers
    assert handlers and all(isinstance(h, logging.NullHandler) for h in handlers)
