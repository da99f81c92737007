from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# Currencies displayed without minor units.
ZERO_DECIMAL_CURRENCIES = {"CLP", "JPY", "KRW", "PYG", "VND"}


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code.")
    return normalized


def format_amount(amount: Decimal | int | float | str, currency: str | None = None) -> str:
    """Format an amount for display, e.g. ``CLP 1,500,000`` or ``USD 12.50``."""
    coerced = _coerce_amount(amount)
    if currency is None:
        return f"{coerced.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"
    normalized = normalize_currency(currency)
    exponent = Decimal("1") if normalized in ZERO_DECIMAL_CURRENCIES else Decimal("0.01")
    return f"{normalized} {coerced.quantize(exponent, rounding=ROUND_HALF_UP):,}"


def _coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
