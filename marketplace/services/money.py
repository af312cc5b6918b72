"""
Money Utilities - Safe Decimal operations for prices.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

Numeric = Union[str, int, float, Decimal, None]


def parse_decimal(value: Numeric) -> Optional[Decimal]:
    """
    Convert a value to Decimal, or None if it is missing or unparsable.
    """
    if value is None:
        return None

    if isinstance(value, Decimal):
        return value

    try:
        # Convert via string to avoid float precision issues
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    parsed = parse_decimal(value)
    return Decimal("0") if parsed is None else parsed


def to_json_precision(value: Numeric) -> Decimal:
    """
    Decimal holding exactly what survives a JSON number round-trip.

    Stored snapshots carry prices as JSON numbers (floats), so in-memory
    prices are kept at the same precision.
    """
    return to_decimal(to_float(value))


def round_money(value: Numeric) -> Decimal:
    """Round monetary value to 2 decimal places."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_float(value: Numeric) -> float:
    """
    Convert Decimal to float for JSON serialization.

    Use only at storage/API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def multiply(value: Numeric, factor: Numeric) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)
