"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime.

    Naive values are assumed to already be UTC (some drivers drop tzinfo on
    read).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def week_window(
    now: datetime, tz_name: str, rollover_hour: int
) -> tuple[datetime, datetime]:
    """Return the [monday 00:00, sunday 23:59:59] window containing ``now``.

    From Saturday ``rollover_hour`` onwards (and all of Sunday) the window
    also covers the following week so upcoming sessions show up before the
    weekend ends. Bounds are computed in ``tz_name`` and returned in UTC.
    """
    local_tz = ZoneInfo(tz_name)
    local_now = ensure_utc(now).astimezone(local_tz)

    monday = (local_now - timedelta(days=local_now.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    sunday = monday + timedelta(days=6)

    weekday = local_now.weekday()  # Monday == 0
    if (weekday == 5 and local_now.hour >= rollover_hour) or weekday == 6:
        sunday += timedelta(days=7)

    sunday = sunday.replace(hour=23, minute=59, second=59, microsecond=999999)
    return monday.astimezone(timezone.utc), sunday.astimezone(timezone.utc)
