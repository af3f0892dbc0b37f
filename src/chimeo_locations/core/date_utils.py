"""
Date and timezone utilities.

Centralizes timestamp parsing for Firestore values with proper timezone handling.
"""

import re
from datetime import datetime
import pytz


# RFC 3339 with optional fractional seconds (Firestore emits up to nanoseconds)
_RFC3339_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})$"
)


class DateUtils:
    """Utilities for date and timezone handling."""

    @staticmethod
    def utc_now() -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        return datetime.now(pytz.UTC)

    @staticmethod
    def to_utc(dt: datetime) -> datetime:
        """
        Convert datetime to UTC.

        Naive datetimes are assumed to already be in UTC.
        """
        if dt.tzinfo is None:
            return pytz.UTC.localize(dt)
        return dt.astimezone(pytz.UTC)

    @staticmethod
    def parse_timestamp(value: str) -> datetime:
        """
        Parse an RFC 3339 timestamp as returned by Firestore.

        Args:
            value: Timestamp string (e.g., '2024-05-01T12:30:00.123456789Z')

        Returns:
            Timezone-aware UTC datetime (sub-microsecond precision is dropped)

        Raises:
            ValueError: If the timestamp cannot be parsed
        """
        match = _RFC3339_PATTERN.match(value.strip()) if value else None
        if not match:
            raise ValueError(f"Invalid timestamp: {value!r}")

        fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
        offset = match.group("offset")
        if offset == "Z":
            offset = "+00:00"

        parsed = datetime.fromisoformat(f"{match.group('base')}.{fraction}{offset}")
        return parsed.astimezone(pytz.UTC)

