from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

DEFAULT_USAGE_TIMEZONE = "Asia/Manila"


def usage_local_date(now_utc: datetime, *, tz_name: str = DEFAULT_USAGE_TIMEZONE) -> date:
    """Converts UTC datetime to the calendar date all usage counters are keyed by."""
    return now_utc.astimezone(ZoneInfo(tz_name)).date()


def usage_month_start_utc(now_utc: datetime, *, tz_name: str = DEFAULT_USAGE_TIMEZONE) -> datetime:
    """Returns the UTC instant of local midnight on the first day of the current month."""
    zone = ZoneInfo(tz_name)
    local_now = now_utc.astimezone(zone)
    local_start = datetime(local_now.year, local_now.month, 1, tzinfo=zone)
    return local_start.astimezone(now_utc.tzinfo)
