"""
Money helpers: exact decimal arithmetic, integer rounding and display formatting.

Amounts are integer currency units. Intermediate values are Decimals so that
multipliers such as 1.2 and 0.1 behave exactly as written.
"""
from decimal import Decimal, ROUND_HALF_UP

from pricing import config


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 1.2 becomes Decimal("1.2") and not its binary expansion
        return Decimal(str(value))
    return Decimal(value)


def round_amount(value) -> int:
    """Round half away from zero to a whole currency unit."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount, percentage) -> Decimal:
    return to_decimal(amount) * to_decimal(percentage) / Decimal(100)


def as_number(value):
    """Decimal -> int when integral, float otherwise. Used for JSON/display payloads."""
    value = to_decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_currency(amount, symbol: str = config.CURRENCY_SYMBOL) -> str:
    """
    Render an integer amount the way the marketplace displays prices, e.g. "Rp 150.000".
    Purely cosmetic: the amount is rounded to whole units and grouped with dots.
    """
    value = round_amount(amount)
    grouped = f"{abs(value):,}".replace(",", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {grouped}"
