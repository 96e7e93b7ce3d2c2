"""
Core Utilities Package

Modules:
    - time: Timestamp conversion to UTC datetimes
    - numbers: Wire decimal string parsing and formatting
"""

from core.utils.numbers import format_decimal, parse_decimal
from core.utils.time import current_utc_timestamp, to_utc_datetime

__all__ = ["to_utc_datetime", "current_utc_timestamp", "parse_decimal", "format_decimal"]
