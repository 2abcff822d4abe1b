"""Conversion from the service's FILETIME ticks to Python datetimes.

The tag manager reports ``lastComm`` as a Windows FILETIME:

    - FILETIME counts 100-nanosecond intervals since 1601-01-01 (UTC)
    - Unix time counts seconds since 1970-01-01 (UTC)
    - The two epochs are 11,644,473,600,000 ms apart

The smallest resolution returned is one millisecond.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

TICKS_PER_MILLISECOND = 10_000

# Milliseconds between 1601-01-01 and 1970-01-01
EPOCH_OFFSET_MS = 11_644_473_600_000

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Millisecond bounds of what a datetime can represent, relative to 1970
_MIN_UNIX_MS = (datetime.min.replace(tzinfo=timezone.utc) - _UNIX_EPOCH) // timedelta(milliseconds=1)
_MAX_UNIX_MS = (datetime.max.replace(tzinfo=timezone.utc) - _UNIX_EPOCH) // timedelta(milliseconds=1)

#: Tick range that converts without clamping (years 1 through 9999).
MIN_TICKS = (_MIN_UNIX_MS + EPOCH_OFFSET_MS) * TICKS_PER_MILLISECOND
MAX_TICKS = (_MAX_UNIX_MS + EPOCH_OFFSET_MS + 1) * TICKS_PER_MILLISECOND - 1


def filetime_to_unix_ms(ticks: int) -> int:
    """Return milliseconds since the Unix epoch for a FILETIME tick count.

    Sub-millisecond precision is dropped before the epoch shift.
    """
    return ticks // TICKS_PER_MILLISECOND - EPOCH_OFFSET_MS


def filetime_to_datetime(ticks: int) -> datetime:
    """Convert FILETIME ticks to a timezone-aware UTC datetime.

    Ticks outside ``MIN_TICKS``..``MAX_TICKS`` are clamped to the first or
    last millisecond a datetime can hold, so every int converts.

    Args:
        ticks: 100-nanosecond intervals since 1601-01-01 UTC.

    Returns:
        UTC datetime with millisecond resolution.

    Example::

        >>> filetime_to_datetime(131557748239379584).timestamp()
        1511301223.937
    """
    unix_ms = min(max(filetime_to_unix_ms(ticks), _MIN_UNIX_MS), _MAX_UNIX_MS)
    return _UNIX_EPOCH + timedelta(milliseconds=unix_ms)
