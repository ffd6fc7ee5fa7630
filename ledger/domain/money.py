"""
Money and currency helpers: precision-aware rounding, epsilon comparison and
FX triangulation.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_EPS = Decimal("0.01")
RATE_DECIMALS = 6

_ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW"})
_THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "KWD", "OMR", "JOD"})


def to_decimal(value: object) -> Decimal:
    """Coerce ints, floats, strings and Decimals to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc


def currency_decimals(currency: str) -> int:
    code = (currency or "").upper()
    if code in _ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in _THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def quantize(value: Decimal, decimals: int) -> Decimal:
    """Round half away from zero to a fixed number of places."""
    return to_decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def round_money(value: object, currency: str | None = None) -> Decimal:
    decimals = currency_decimals(currency) if currency else 2
    return quantize(to_decimal(value), decimals)


def money_equals(a: object, b: object, eps: Decimal = MONEY_EPS) -> bool:
    """True when two amounts differ by no more than eps."""
    return abs(to_decimal(a) - to_decimal(b)) <= eps


@dataclass(frozen=True, slots=True)
class Triangulation:
    """Outcome of converting a line amount into base currency."""
    effective_rate: Decimal
    base_amount: Decimal


def triangulate(
    amount: object,
    parity: object,
    header_rate: object,
    base_currency: str,
) -> Triangulation:
    """
    Convert a line amount through the voucher header rate.

    parity converts line currency to voucher currency, header_rate converts
    voucher currency to base currency. base_amount is computed from the
    unrounded product so that rounding happens exactly once.
    """
    amount_d = to_decimal(amount)
    parity_d = to_decimal(parity)
    header_d = to_decimal(header_rate)
    if parity_d <= 0 or header_d <= 0:
        raise ValueError("Exchange rates must be positive")
    product = parity_d * header_d
    return Triangulation(
        effective_rate=quantize(product, RATE_DECIMALS),
        base_amount=quantize(amount_d * product, currency_decimals(base_currency)),
    )


def normalize_accounting_date(value: date | datetime | str) -> date:
    """
    Reduce a date-like value to a calendar date.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.
    Strings may be ISO dates or ISO datetimes.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return normalize_accounting_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Unsupported date value: {value!r}")
