"""Number parsing utilities for money amounts and unit quantities."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal('0.01')


def to_money(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Decimal:
    """
    Parse a non-negative decimal amount, keeping every digit the caller sent.

    Floats go through str() so 4.1 stays 4.1 rather than its binary expansion.

    Raises:
        ValueError: if the value is empty, not a number, not finite or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f'Invalid amount: {value!r}')

    cleaned = value.strip() if isinstance(value, str) else str(value)
    if not cleaned:
        raise ValueError('Invalid amount: empty value')

    try:
        decimal_value = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid amount: {value!r}')

    if not decimal_value.is_finite():
        raise ValueError(f'Invalid amount: {value!r}')
    if decimal_value < 0:
        raise ValueError('Amount cannot be negative')

    return decimal_value


def parse_money(value) -> Decimal:
    """
    Parse a non-negative price with at most two decimal places (e.g. 4.5, "4.50").

    The result is scaled to cents without changing its value; sub-cent
    input is refused, never rounded.

    Raises:
        ValueError: if the value is not a valid amount or has fractions of a cent.
    """
    decimal_value = parse_amount(value)
    try:
        cents = decimal_value.quantize(CENT)
    except InvalidOperation:
        raise ValueError(f'Invalid amount: {value!r}')
    if cents != decimal_value:
        raise ValueError(f'Amount {value!r} has more than 2 decimal places')
    return cents


def parse_quantity(value) -> int:
    """
    Parse a strictly positive whole unit count.

    Accepts ints and digit strings ("3"); rejects bools, fractions and zero.

    Raises:
        ValueError: if the value is not a positive integer.
    """
    if isinstance(value, bool):
        raise ValueError(f'Invalid quantity: {value!r}')

    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned.lstrip('-').isdigit():
            raise ValueError(f'Invalid quantity: {value!r}')
        value = int(cleaned)

    if not isinstance(value, int):
        raise ValueError(f'Invalid quantity: {value!r}')
    if value <= 0:
        raise ValueError('Quantity must be greater than 0')

    return value
