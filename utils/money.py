"""
Money helpers.

All internal amounts are integer cents. Decimal pesos only appear at the
display boundary (format_cents) and in admin input (pesos_to_cents).
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

import config


def round_half_up(value: float | Decimal) -> int:
    """
    Round to the nearest integer cent, halves away from zero.

    Python's round() uses banker's rounding (round(0.5) == 0); prices must
    round like the database procedure does (ROUND(0.5) == 1).

    Examples:
        >>> round_half_up(1499.5)
        1500
        >>> round_half_up(0.5)
        1
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_cents(cents: int | None) -> str:
    """
    Format integer cents as pesos for display.

    Examples:
        >>> format_cents(41000)
        '₱410.00'
        >>> format_cents(123456)
        '₱1,234.56'
    """
    amount = Decimal(int(cents or 0)) / 100
    sign = "-" if amount < 0 else ""
    return f"{sign}{config.CURRENCY_SYMBOL}{abs(amount):,.2f}"


def pesos_to_cents(value: str | float | int | Decimal) -> int:
    """
    Convert an admin-entered peso amount ("410", "410.50", 12.5) to cents.

    Raises:
        ValueError: If value is not a number or is negative
    """
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"Invalid peso amount '{value}'")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Peso amount must be a non-negative number (got: {value})")
    return round_half_up(amount * 100)
