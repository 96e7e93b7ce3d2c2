"""
Decimal Helpers

Prices and quantities travel as strings on the wire (exchange-mandated
decimal encoding). These helpers convert them to Decimal and back without
going through float.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from core.errors import NumberParseError


def parse_decimal(value: Union[str, int, Decimal]) -> Decimal:
    """
    Parse a wire decimal string.

    Raises:
        NumberParseError: If the value is not a finite decimal number

    Example:
        >>> parse_decimal("50000.5")
        Decimal('50000.5')
    """
    if isinstance(value, float):
        # Floats would smuggle binary rounding into the wire format
        raise NumberParseError(f"float values are not accepted: {value!r}")
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise NumberParseError(f"invalid number: {value!r}", e) from e

    if not result.is_finite():
        raise NumberParseError(f"invalid number: {value!r}")
    return result


def format_decimal(value: Union[str, int, Decimal]) -> str:
    """
    Render a quantity or price as the plain string the venue expects.

    Strings pass through untouched, so "1.50" stays "1.50".
    """
    if isinstance(value, str):
        return value
    return format(parse_decimal(value), "f")
