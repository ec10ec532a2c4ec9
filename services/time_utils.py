from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union
import pytz
from loguru import logger

from core.config import BUSINESS_TIMEZONE

TimeLike = Union[time, timedelta, str, None]

def business_tz(name: Optional[str] = None) -> pytz.BaseTzInfo:
    tz_name = name or BUSINESS_TIMEZONE
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        logger.error(f"Invalid timezone '{tz_name}', using UTC")
        return pytz.UTC

def parse_time(value: TimeLike) -> Optional[time]:
    """
    Parse "HH:MM" / "HH:MM:SS" strings, time objects or timedelta since midnight.
    Returns None for anything unparseable so the caller can treat the record as non-matching.
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        if value < timedelta(0) or value >= timedelta(days=1):
            return None
        return (datetime.min + value).time()
    if isinstance(value, str):
        for fmt in ("%H:%M:%S", "%H:%M"):
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
    return None

def format_time(value: time) -> str:
    return value.strftime("%H:%M:%S")

def day_of_week(d: date) -> int:
    # 0=Sunday .. 6=Saturday
    return (d.weekday() + 1) % 7

def is_weekend(d: date) -> bool:
    return d.weekday() >= 5

def horizon_dates(start: date, days: int) -> List[date]:
    return [start + timedelta(days=i) for i in range(max(days, 0))]

def to_local(dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
    # naive timestamps are taken as already provider-local
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)

def local_date(dt: datetime, tz: pytz.BaseTzInfo) -> date:
    return to_local(dt, tz).date()

def local_hhmm(dt: datetime, tz: pytz.BaseTzInfo) -> str:
    return to_local(dt, tz).strftime("%H:%M")

def combine_local(d: date, t: time, tz: pytz.BaseTzInfo) -> datetime:
    return tz.localize(datetime.combine(d, t))

def today_local(now: datetime, tz: pytz.BaseTzInfo) -> date:
    return to_local(now, tz).date()

def overlaps(start1, end1, start2, end2) -> bool:
    return max(start1, start2) < min(end1, end2)

def contains(outer_start: time, outer_end: time, inner_start: time, inner_end: time) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end
