"""Number parsing and formatting utilities for prices and quantities."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

CENTS = Decimal('0.01')

Numeric = Union[int, float, Decimal, str, None]


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents (half up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_money(value: Numeric) -> Decimal:
    """
    Parse a price such as "150.00", 150 or 12.5 into a Decimal with 2 places.

    Booleans, blanks, negatives and non-numbers are rejected.

    Raises:
        ValueError: if the value is not a valid non-negative amount.
    """
    if value is None or isinstance(value, bool):
        raise ValueError('A price is required')

    if isinstance(value, str):
        value = value.strip().replace('$', '')
        if not value:
            raise ValueError('A price is required')

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid price: {value}')

    if not amount.is_finite():
        raise ValueError(f'Invalid price: {value}')
    if amount < 0:
        raise ValueError('Price cannot be negative')

    return quantize_money(amount)


def parse_quantity(value: Numeric) -> Optional[int]:
    """
    Parse a whole-unit quantity; returns None when the value is not an integer.

    Accepts ints, integral floats (2.0) and digit strings ("2").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else None
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned.lstrip('-').isdigit():
            return int(cleaned)
    return None


def parse_decimal(value: Numeric) -> Decimal:
    """Parse a signed decimal (stock adjustments, proof, ABV)."""
    if value is None or isinstance(value, bool):
        raise ValueError('A number is required')
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid number: {value}')
    if not number.is_finite():
        raise ValueError(f'Invalid number: {value}')
    return number


def format_money(value: Numeric) -> Optional[str]:
    """Render an amount as a plain two-decimal string ("360.00")."""
    if value is None:
        return None
    return f"{quantize_money(Decimal(str(value))):.2f}"


def format_quantity(value: Numeric) -> Optional[str]:
    """Render a stock quantity without trailing zeros ("12", "12.5")."""
    if value is None:
        return None
    number = Decimal(str(value))
    if number == number.to_integral_value():
        return str(number.quantize(Decimal('1')))
    return format(number.normalize(), 'f')
