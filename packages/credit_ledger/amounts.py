"""Currency amount helpers.

Amounts and balances are ``Decimal`` values quantized to two places with
``ROUND_HALF_UP`` so that folding thousands of transactions never drifts the
way binary floats do.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Integer digits that fit the Numeric(18, 2) amount and balance columns.
MAX_INTEGER_DIGITS = 16


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(raw: Any) -> Decimal:
    """Parse ``raw`` into a 2dp ``Decimal``.

    Accepts ``Decimal``, ``int``, ``str`` and ``float`` (floats go through
    ``str()`` so ``0.1`` stays ``0.10``). Booleans, ``None``, NaN/Infinity and
    unparsable strings raise :class:`InvalidAmountError`, and so do values
    with more than ``MAX_INTEGER_DIGITS`` digits before the decimal point.
    """

    if raw is None or isinstance(raw, bool):
        raise InvalidAmountError(f"Not a currency amount: {raw!r}")
    if isinstance(raw, Decimal):
        d = raw
    else:
        text = str(raw).strip()
        try:
            d = Decimal(text)
        except (InvalidOperation, ValueError) as e:
            raise InvalidAmountError(f"Not a currency amount: {raw!r}") from e
    if not d.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {raw!r}")
    try:
        q = quantize(d)
    except InvalidOperation as e:
        raise InvalidAmountError(f"Amount out of range: {raw!r}") from e
    if q.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidAmountError(f"Amount out of range: {raw!r}")
    return q


def format_amount(value: Decimal, currency: str = "") -> str:
    """Render ``value`` with two decimals and an optional trailing symbol."""

    text = f"{quantize(value):,.2f}"
    return f"{text} {currency}" if currency else text


__all__ = ["CENT", "ZERO", "MAX_INTEGER_DIGITS", "quantize", "to_amount", "format_amount"]
