"""
UTC datetime utilities for timestamp values.

The remote API sends RFC 3339 timestamps with up to nanosecond precision
and a trailing ``Z``; Python's datetime holds microseconds, so extra
fraction digits are truncated before parsing.
"""

import re
from datetime import UTC, datetime

_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 / RFC 3339 timestamp into an aware datetime.

    A trailing ``Z`` is read as UTC; a value without any offset is
    assumed to be UTC.

    Args:
        value: Timestamp string, e.g. ``2024-01-15T10:30:00.123456789Z``

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is not a real instant (e.g. month 13)
    """
    text = _FRACTION_RE.sub(r".\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_timestamp(dt: datetime) -> str:
    """
    Format a datetime as a UTC ISO string ending in ``Z``.

    Millisecond precision is used unless the value carries sub-millisecond
    digits, in which case microseconds are kept. Naive datetimes are
    assumed to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    dt = dt.astimezone(UTC)
    timespec = "milliseconds" if dt.microsecond % 1000 == 0 else "microseconds"
    return dt.replace(tzinfo=None).isoformat(timespec=timespec) + "Z"
