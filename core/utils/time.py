"""
Time Utilities

OKEx push messages carry timestamps as strings of milliseconds since epoch
(e.g., "1704110400000"). The helpers here turn those into timezone-aware UTC
datetimes and report malformed values as TimestampError.
"""

from datetime import datetime, timezone
from typing import Union

from core.errors import TimestampError


def to_utc_datetime(timestamp: Union[int, float, str]) -> datetime:
    """
    Convert a timestamp (seconds or milliseconds) to UTC datetime.

    Detection Logic:
        - If timestamp > 1e12 (1 trillion): Assumed to be milliseconds
        - Otherwise: Assumed to be seconds

    Args:
        timestamp: Unix timestamp in seconds or milliseconds, numeric or text

    Returns:
        datetime: Timezone-aware datetime object in UTC

    Raises:
        TimestampError: If the value is not a number, negative or out of range

    Examples:
        >>> to_utc_datetime("1704110400000")
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)

        >>> to_utc_datetime(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if isinstance(timestamp, str):
        try:
            timestamp = float(timestamp)
        except ValueError as e:
            raise TimestampError(f"Invalid timestamp: {timestamp!r}", e) from e

    if timestamp < 0:
        raise TimestampError(f"Timestamp cannot be negative: {timestamp}")

    # Seconds are ~1.7e9 today, milliseconds ~1.7e12
    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise TimestampError(f"Invalid timestamp: {timestamp}. Error: {e}", e) from e


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """
    Get current UTC timestamp.

    Raises:
        TimestampError: If the system clock cannot be read as a Unix timestamp
    """
    try:
        timestamp = datetime.now(timezone.utc).timestamp()
    except (OSError, OverflowError) as e:
        raise TimestampError(f"System clock error: {e}", e) from e

    if milliseconds:
        return int(timestamp * 1000)
    return int(timestamp)
