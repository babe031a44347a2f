"""Merchant-wide settings consumed by the reports.

Settings are persisted by the repository (see ``get_settings`` /
``save_settings``) and may be overridden per process from the environment:

- ``CREDIT_LEDGER_PAYMENT_TERMS_DAYS``
- ``CREDIT_LEDGER_CURRENCY``
- ``CREDIT_LEDGER_TIMEZONE``
"""

from __future__ import annotations

import os
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAYMENT_TERMS_DAYS = 30

_ENV_OVERRIDES: dict[str, str] = {
    "payment_terms_days": "CREDIT_LEDGER_PAYMENT_TERMS_DAYS",
    "currency": "CREDIT_LEDGER_CURRENCY",
    "timezone": "CREDIT_LEDGER_TIMEZONE",
}


class LedgerSettings(BaseModel):
    """Validated settings model.

    Attributes
    ----------
    payment_terms_days:
        Days after a debt is incurred before it counts as late (``>= 0``).
    currency:
        Display symbol only (1-5 characters); no conversion is performed.
    timezone:
        IANA zone whose midnight defines calendar days for due dates and
        daily history buckets.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    payment_terms_days: int = Field(default=DEFAULT_PAYMENT_TERMS_DAYS, ge=0)
    currency: str = Field(default="€", min_length=1, max_length=5)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v!r}") from e
        return v

    @property
    def tzinfo(self) -> tzinfo:
        return ZoneInfo(self.timezone)


def settings_from_env(base: LedgerSettings | None = None) -> LedgerSettings:
    """Overlay environment overrides on ``base`` (or the defaults)."""

    values = (base or LedgerSettings()).model_dump()
    for name, env_name in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    # Env values are strings; the lax model_validate coerces "15" -> 15.
    return LedgerSettings.model_validate(values)


__all__ = ["DEFAULT_PAYMENT_TERMS_DAYS", "LedgerSettings", "settings_from_env"]
