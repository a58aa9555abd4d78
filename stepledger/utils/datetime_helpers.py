"""
Calendar Date Handling Utilities

Step records are keyed by calendar-local dates (YYYY-MM-DD). This module
centralizes how "today", day boundaries and date keys are computed so every
engine agrees on what a day is.

RULES:
- Calendar days are local to config.LOCAL_TIMEZONE
- Health source windows run from local midnight to the last instant of the day
- Stored timestamps (updatedAt, awardedAt) are UTC
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from stepledger import config

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"


def local_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Get the timezone that defines calendar days

    Args:
        tz_name: IANA name overriding config.LOCAL_TIMEZONE

    Returns:
        ZoneInfo object
    """
    tz_str = tz_name or config.LOCAL_TIMEZONE
    try:
        return ZoneInfo(tz_str)
    except Exception as e:
        logger.error(f"Invalid timezone '{tz_str}': {e}")
        return ZoneInfo("UTC")


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(ZoneInfo("UTC"))


def today_local(tz: Optional[ZoneInfo] = None) -> date:
    """Today's calendar date in the local timezone"""
    return datetime.now(tz or local_timezone()).date()


def to_date_str(day: Union[date, str]) -> str:
    """Format a date as its YYYY-MM-DD key"""
    if isinstance(day, str):
        return parse_date_str(day).strftime(DATE_FORMAT)
    return day.strftime(DATE_FORMAT)


def parse_date_str(date_str: str) -> date:
    """
    Parse a YYYY-MM-DD key

    Raises:
        ValueError: If date_str is not in YYYY-MM-DD format
    """
    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date format '{date_str}'. Expected YYYY-MM-DD") from e


def month_key(day: date) -> str:
    """YYYY-MM key for the month containing day"""
    return day.strftime(MONTH_FORMAT)


def days_between(earlier: Union[date, str], later: Union[date, str]) -> int:
    """Whole calendar days from earlier to later (negative if later is before earlier)"""
    if isinstance(earlier, str):
        earlier = parse_date_str(earlier)
    if isinstance(later, str):
        later = parse_date_str(later)
    return (later - earlier).days


def window_dates(end: date, days: int) -> list[date]:
    """
    Calendar dates of a rolling window, oldest first

    Example:
        window_dates(date(2024, 6, 8), 3) -> [2024-06-06, 2024-06-07, 2024-06-08]
    """
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def get_day_start(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """Local midnight at the start of day"""
    return datetime.combine(day, time.min).replace(tzinfo=tz or local_timezone())


def get_day_end(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """Last instant (23:59:59.999999) of day in local time"""
    return datetime.combine(day, time.max).replace(tzinfo=tz or local_timezone())


def day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> tuple[datetime, datetime]:
    """Local midnight-to-midnight window for day, both ends inclusive"""
    tz = tz or local_timezone()
    return get_day_start(day, tz), get_day_end(day, tz)


def ensure_aware(dt: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """
    Attach the local timezone to a naive datetime

    Health sources report sample times in device-local time when they
    omit an offset.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz or local_timezone())
    return dt
