"""
Time utilities for epoch-millisecond timestamps and local calendar dates.

Provider timestamps are UTC epoch milliseconds. Calendar cells are keyed by
the viewer's local date, so the timezone used for conversion decides which
cell counts as "today".
"""

import time
from datetime import date, datetime, timezone, tzinfo
from typing import Optional


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def local_datetime(timestamp_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert an epoch-ms timestamp to an aware datetime.

    Args:
        timestamp_ms: Epoch milliseconds
        tz: Target timezone; None means the system local timezone

    Returns:
        Timezone-aware datetime
    """
    utc_dt = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    return utc_dt.astimezone(tz) if tz is not None else utc_dt.astimezone()


def local_date(timestamp_ms: int, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of an epoch-ms timestamp in ``tz`` (system local by default)."""
    return local_datetime(timestamp_ms, tz).date()


def local_today(tz: Optional[tzinfo] = None) -> date:
    """Today's calendar date in ``tz`` (system local by default)."""
    return local_date(now_ms(), tz)


def sunday_based_weekday(day: date) -> int:
    """Weekday index with Sunday == 0 and Saturday == 6."""
    return day.isoweekday() % 7


def format_last_updated(moment: datetime) -> str:
    """Format the "last updated" stamp shown next to the calendars."""
    return f"Last updated: {moment.strftime('%Y-%m-%d %H:%M:%S')}"
