"""Timestamp and calendar-day helpers shared by the algorithms and the CLI."""

from __future__ import annotations

from datetime import UTC, date, datetime, tzinfo


def local_day(moment: datetime, tz: tzinfo = UTC) -> date:
    """Calendar day of an aware ``moment`` as seen in ``tz``."""

    return moment.astimezone(tz).date()


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(raw: str, tz: tzinfo = UTC) -> datetime:
    """Parse an ISO-8601 date or datetime string into an aware datetime.

    A bare date (``YYYY-MM-DD``) is midnight in ``tz``; a naive datetime is
    interpreted in ``tz``; a trailing ``Z`` is accepted.
    """

    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    parsed = datetime.fromisoformat(s)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def ensure_aware(moment: datetime, tz: tzinfo = UTC) -> datetime:
    """Attach ``tz`` to naive datetimes (as returned by SQLite) and pass aware ones through."""

    return moment if moment.tzinfo is not None else moment.replace(tzinfo=tz)


__all__ = ["local_day", "utc_now", "parse_timestamp", "ensure_aware"]
